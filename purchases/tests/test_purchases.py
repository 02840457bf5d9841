# purchases/tests/test_purchases.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from accounting.models.exchange_rate import ExchangeRate
from accounting.models.journal import JournalEntry
from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from accounting.services.exceptions import NoExchangeRateError, UnbalancedEntryError
from permissions.roles import ROLE_CONTADOR
from products.models import Product, StockMovement
from products.services.exceptions import InsufficientStockError, StockImpactError
from products.services.inventory import record_stock_movement
from purchases.models import PurchaseInvoice, Supplier
from purchases.services.credit_note_service import ReturnLineInput, issue_credit_note
from purchases.services.exceptions import CreditNoteError, PurchaseApprovalError
from purchases.services.purchase_service import (
    PerceptionInput,
    PurchaseLineInput,
    apply_purchase_inventory,
    approve_purchase_invoice,
    create_purchase_invoice,
)

User = get_user_model()


def _line_amounts(entry: JournalEntry) -> dict:
    """{account code: (debit, credit)} for an entry's lines."""
    return {line.account.code: (line.debit, line.credit) for line in entry.lines.select_related("account")}


class PurchaseInvoiceFlowTests(TestCase):
    """
    Purchase side integration tests.

    GUARANTEES:
    - totals are recomputed server-side (discount per line, tax from net)
    - approval posts one balanced entry, applies stock once, updates supplier balance
    - the stock impact of an invoice can never be applied twice
    """

    def setUp(self):
        account_registry.clear_registry_cache()
        self.user = User.objects.create_user(
            email="contador@example.com", password="password123", role=ROLE_CONTADOR
        )
        self.supplier = Supplier.objects.create(name="Distribuidora Norte SA", cuit="30-71234567-1")
        self.bolts = Product.objects.create(sku="BUL-10", name="Bulón 10mm")
        self.nuts = Product.objects.create(sku="TUE-10", name="Tuerca 10mm")

    def _create_invoice(self, **overrides):
        params = dict(
            supplier=self.supplier,
            number="0003-00001234",
            issue_date=date(2024, 3, 1),
            general_discount=Decimal("10"),
            items=[
                PurchaseLineInput(
                    product=self.bolts,
                    quantity=Decimal("10"),
                    unit_price=Decimal("100.00"),
                    tax_rate=Decimal("21"),
                ),
                PurchaseLineInput(
                    product=self.nuts,
                    quantity=Decimal("5"),
                    unit_price=Decimal("50.00"),
                    tax_rate=Decimal("10.5"),
                ),
            ],
            perceptions=[PerceptionInput(jurisdiction="IIBB_CABA", amount=Decimal("30.00"))],
            user=self.user,
        )
        params.update(overrides)
        return create_purchase_invoice(**params)

    # ---------------------------------------------------------
    # Create
    # ---------------------------------------------------------
    def test_totals_are_computed_from_lines(self):
        invoice = self._create_invoice()

        self.assertEqual(invoice.status, PurchaseInvoice.STATUS_DRAFT)
        self.assertEqual(invoice.subtotal, Decimal("1250.00"))
        self.assertEqual(invoice.discount_amount, Decimal("125.00"))
        self.assertEqual(invoice.net_amount, Decimal("1125.00"))
        self.assertEqual(invoice.tax_amount, Decimal("212.63"))
        self.assertEqual(invoice.perceptions_amount, Decimal("30.00"))
        self.assertEqual(invoice.total, Decimal("1367.63"))
        self.assertEqual(invoice.balance, invoice.total)
        self.assertEqual(invoice.items.count(), 2)

    def test_foreign_currency_invoice_needs_a_rate(self):
        with self.assertRaises(NoExchangeRateError):
            self._create_invoice(currency="USD")

    # ---------------------------------------------------------
    # Approve
    # ---------------------------------------------------------
    def test_approval_posts_balanced_entry(self):
        invoice = self._create_invoice()

        invoice = approve_purchase_invoice(invoice.pk, user=self.user)

        self.assertEqual(invoice.status, PurchaseInvoice.STATUS_APPROVED)
        entry = invoice.journal_entry
        self.assertEqual(entry.status, JournalEntry.STATUS_POSTED)
        self.assertEqual(entry.reference, f"PURCHASE_INVOICE:{invoice.pk}")

        lines = _line_amounts(entry)
        payable = account_registry.resolve(AccountKey.ACCOUNTS_PAYABLE).code
        vat = account_registry.resolve(AccountKey.VAT_CREDIT).code
        goods = account_registry.resolve(AccountKey.MERCHANDISE_INVENTORY).code
        iibb = account_registry.resolve(AccountKey.WITHHOLDINGS_IIBB).code

        self.assertEqual(lines[payable], (Decimal("0.00"), Decimal("1367.63")))
        self.assertEqual(lines[vat], (Decimal("212.63"), Decimal("0.00")))
        # both items fall back to Mercaderías and merge into one debit
        self.assertEqual(lines[goods], (Decimal("1125.00"), Decimal("0.00")))
        self.assertEqual(lines[iibb], (Decimal("30.00"), Decimal("0.00")))
        self.assertEqual(len(lines), 4)

    def test_approval_applies_stock_and_supplier_balance(self):
        invoice = self._create_invoice()

        approve_purchase_invoice(invoice.pk, user=self.user)

        self.bolts.refresh_from_db()
        self.nuts.refresh_from_db()
        self.supplier.refresh_from_db()
        invoice.refresh_from_db()

        self.assertEqual(self.bolts.quantity, Decimal("10"))
        self.assertEqual(self.bolts.last_cost, Decimal("100.00"))
        self.assertEqual(self.nuts.quantity, Decimal("5"))
        self.assertTrue(invoice.stock_impacted)
        self.assertIsNotNone(invoice.stock_impacted_at)
        self.assertEqual(self.supplier.balance, Decimal("1367.63"))

        movement = StockMovement.objects.get(product=self.bolts)
        self.assertEqual(movement.movement_type, StockMovement.MovementType.COMPRA)
        self.assertEqual(movement.journal_entry_id, invoice.journal_entry_id)

    def test_second_approval_is_rejected(self):
        invoice = self._create_invoice()
        approve_purchase_invoice(invoice.pk, user=self.user)

        with self.assertRaises(PurchaseApprovalError):
            approve_purchase_invoice(invoice.pk, user=self.user)

        self.assertEqual(JournalEntry.objects.filter(reference=f"PURCHASE_INVOICE:{invoice.pk}").count(), 1)

    def test_stored_total_that_disagrees_with_lines_is_not_posted(self):
        invoice = self._create_invoice()
        PurchaseInvoice.objects.filter(pk=invoice.pk).update(total=Decimal("1400.00"))

        with self.assertRaises(UnbalancedEntryError):
            approve_purchase_invoice(invoice.pk, user=self.user)

        invoice.refresh_from_db()
        self.supplier.refresh_from_db()
        self.bolts.refresh_from_db()
        self.assertEqual(invoice.status, PurchaseInvoice.STATUS_DRAFT)
        self.assertIsNone(invoice.journal_entry_id)
        self.assertFalse(invoice.stock_impacted)
        self.assertFalse(JournalEntry.objects.filter(reference=f"PURCHASE_INVOICE:{invoice.pk}").exists())
        self.assertEqual(self.supplier.balance, Decimal("0.00"))
        self.assertEqual(self.bolts.quantity, Decimal("0"))

    def test_total_within_a_cent_of_the_lines_is_posted_as_stored(self):
        invoice = self._create_invoice()
        PurchaseInvoice.objects.filter(pk=invoice.pk).update(total=Decimal("1367.64"))

        invoice = approve_purchase_invoice(invoice.pk, user=self.user)

        lines = _line_amounts(invoice.journal_entry)
        payable = account_registry.resolve(AccountKey.ACCOUNTS_PAYABLE).code
        self.assertEqual(lines[payable], (Decimal("0.00"), Decimal("1367.64")))

    def test_stock_impact_cannot_be_applied_twice(self):
        invoice = self._create_invoice()
        approve_purchase_invoice(invoice.pk, user=self.user)

        with self.assertRaises(StockImpactError):
            apply_purchase_inventory(invoice, user=self.user)

        self.bolts.refresh_from_db()
        self.assertEqual(self.bolts.quantity, Decimal("10"))
        self.assertEqual(StockMovement.objects.filter(product=self.bolts).count(), 1)

    def test_foreign_currency_invoice_is_posted_in_ledger_currency(self):
        ExchangeRate.objects.create(
            from_currency="USD",
            to_currency="ARS",
            rate=Decimal("850.0000"),
            valid_from=date(2024, 1, 1),
        )
        invoice = self._create_invoice(
            currency="USD",
            general_discount=Decimal("0"),
            perceptions=[],
            items=[
                PurchaseLineInput(
                    product=self.bolts,
                    quantity=Decimal("2"),
                    unit_price=Decimal("10.00"),
                    tax_rate=Decimal("21"),
                )
            ],
        )
        self.assertEqual(invoice.exchange_rate, Decimal("850.0000"))

        invoice = approve_purchase_invoice(invoice.pk, user=self.user)

        lines = _line_amounts(invoice.journal_entry)
        payable = account_registry.resolve(AccountKey.ACCOUNTS_PAYABLE).code
        self.assertEqual(lines[payable][1], Decimal("20570.00"))


class PurchaseCreditNoteTests(TestCase):
    """
    GUARANTEES:
    - a return is the structural inverse of the purchase entry
    - stock and supplier balance go down in the same transaction
    - quantities can never be returned twice
    """

    def setUp(self):
        account_registry.clear_registry_cache()
        self.user = User.objects.create_user(
            email="compras@example.com", password="password123", role=ROLE_CONTADOR
        )
        self.supplier = Supplier.objects.create(name="Ferretera Sur SRL")
        self.product = Product.objects.create(sku="CAN-20", name="Caño 20mm")
        invoice = create_purchase_invoice(
            supplier=self.supplier,
            number="0001-00000077",
            issue_date=date(2024, 4, 2),
            general_discount=Decimal("10"),
            items=[
                PurchaseLineInput(
                    product=self.product,
                    quantity=Decimal("10"),
                    unit_price=Decimal("100.00"),
                    tax_rate=Decimal("21"),
                )
            ],
            user=self.user,
        )
        self.invoice = approve_purchase_invoice(invoice.pk, user=self.user)
        self.item = self.invoice.items.get()

    def _return(self, quantity, number="0001-00000001"):
        return issue_credit_note(
            self.invoice.pk,
            number=number,
            issue_date=date(2024, 4, 10),
            items=[ReturnLineInput(original_item_id=self.item.pk, quantity=Decimal(quantity))],
            user=self.user,
        )

    def test_credit_note_reverses_purchase(self):
        credit_note = self._return("4")

        self.assertEqual(credit_note.document_type, PurchaseInvoice.DOC_NOTA_CREDITO)
        self.assertEqual(credit_note.status, PurchaseInvoice.STATUS_APPROVED)
        self.assertEqual(credit_note.net_amount, Decimal("360.00"))
        self.assertEqual(credit_note.tax_amount, Decimal("75.60"))
        self.assertEqual(credit_note.total, Decimal("435.60"))
        self.assertEqual(credit_note.balance, Decimal("0.00"))

        lines = _line_amounts(credit_note.journal_entry)
        payable = account_registry.resolve(AccountKey.ACCOUNTS_PAYABLE).code
        vat = account_registry.resolve(AccountKey.VAT_CREDIT).code
        goods = account_registry.resolve(AccountKey.MERCHANDISE_INVENTORY).code
        self.assertEqual(lines[payable], (Decimal("435.60"), Decimal("0.00")))
        self.assertEqual(lines[vat], (Decimal("0.00"), Decimal("75.60")))
        self.assertEqual(lines[goods], (Decimal("0.00"), Decimal("360.00")))

    def test_credit_note_updates_stock_and_balances(self):
        self._return("4")

        self.product.refresh_from_db()
        self.supplier.refresh_from_db()
        self.invoice.refresh_from_db()

        self.assertEqual(self.product.quantity, Decimal("6"))
        self.assertEqual(self.supplier.balance, Decimal("1089.00") - Decimal("435.60"))
        self.assertEqual(self.invoice.balance, Decimal("653.40"))
        movement = StockMovement.objects.filter(product=self.product).order_by("-id").first()
        self.assertEqual(movement.movement_type, StockMovement.MovementType.DEVOLUCION_PROVEEDOR)
        self.assertEqual(movement.quantity, Decimal("-4"))

    def test_cannot_return_more_than_purchased(self):
        self._return("7")

        with self.assertRaises(CreditNoteError):
            self._return("4", number="0001-00000002")

        self.assertEqual(self.invoice.credit_notes.count(), 1)

    def test_draft_invoice_does_not_accept_returns(self):
        draft = create_purchase_invoice(
            supplier=self.supplier,
            number="0001-00000078",
            issue_date=date(2024, 4, 3),
            items=[PurchaseLineInput(product=self.product, quantity=Decimal("1"), unit_price=Decimal("5"))],
        )

        with self.assertRaises(CreditNoteError):
            issue_credit_note(
                draft.pk,
                number="0001-00000003",
                items=[ReturnLineInput(original_item_id=draft.items.get().pk, quantity=Decimal("1"))],
            )

    def test_return_without_stock_rolls_back(self):
        record_stock_movement(product=self.product, movement_type="VENTA", quantity=9)

        with self.assertRaises(InsufficientStockError):
            self._return("4")

        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.balance, Decimal("1089.00"))
        self.assertFalse(PurchaseInvoice.objects.filter(document_type=PurchaseInvoice.DOC_NOTA_CREDITO).exists())
