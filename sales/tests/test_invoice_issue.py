# sales/tests/test_invoice_issue.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from accounting.models.exchange_rate import ExchangeRate
from accounting.models.journal import JournalEntry
from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from permissions.roles import ROLE_VENDEDOR
from products.models import Product, StockMovement
from products.services.exceptions import InsufficientStockError, MissingUnitCostError
from products.services.inventory import record_stock_movement
from sales.models import Customer, Invoice, Quote
from sales.services.exceptions import InvoiceStateError
from sales.services.fulfillment_service import InvoiceLineRequest, generate_invoice_from_quote
from sales.services.invoice_service import cancel_invoice, issue_invoice, mark_overdue_invoices
from sales.services.quote_lifecycle import change_quote_status
from sales.services.quote_service import QuoteLineInput, create_quote

User = get_user_model()

SALE_DATE = date(2024, 7, 1)


class InvoiceIssueTests(TestCase):
    """
    Issuing a sales invoice.

    GUARANTEES:
    - stock leaves through VENTA movements in the same transaction as the CMV entry
    - CMV = quantity x latest unit cost, converted to ledger currency when needed
    - a failure anywhere leaves the invoice DRAFT with no entry and no movement
    """

    def setUp(self):
        account_registry.clear_registry_cache()
        self.user = User.objects.create_user(email="vendedor@example.com", password="x", role=ROLE_VENDEDOR)
        self.customer = Customer.objects.create(
            name="Constructora Oeste SA", tax_condition=Customer.TAX_RESPONSABLE_INSCRIPTO
        )
        self.product = Product.objects.create(sku="CAN-20", name="Caño 20mm")
        record_stock_movement(
            product=self.product,
            movement_type=StockMovement.MovementType.COMPRA,
            quantity=Decimal("20"),
            unit_cost=Decimal("100.00"),
            reference="PURCHASE_INVOICE:seed",
            update_last_cost=True,
        )
        self.cmv = account_registry.resolve(AccountKey.COST_OF_GOODS_SOLD)
        self.inventory = account_registry.resolve(AccountKey.MERCHANDISE_INVENTORY)

    def _draft_invoice(self, product=None, quantity="5", unit_price="180.00"):
        quote = create_quote(
            customer=self.customer,
            items=[
                QuoteLineInput(
                    product=product or self.product,
                    quantity=Decimal(quantity),
                    unit_price=Decimal(unit_price),
                )
            ],
            user=self.user,
        )
        change_quote_status(quote.pk, Quote.STATUS_ACCEPTED, user=self.user)
        return generate_invoice_from_quote(
            quote.pk,
            items=[InvoiceLineRequest(quote_item_id=quote.items.get().pk, quantity=Decimal(quantity))],
            user=self.user,
            issue_date=SALE_DATE,
        )

    def _lines(self, entry):
        return {line.account_id: (line.debit, line.credit) for line in entry.lines.all()}

    # ------------------------------------------------------------------
    # CMV
    # ------------------------------------------------------------------
    def test_issue_posts_cmv_and_moves_stock(self):
        invoice = self._draft_invoice()

        issued = issue_invoice(invoice.pk, user=self.user)

        entry = issued.journal_entry
        self.assertIsNotNone(entry)
        self.assertEqual(entry.status, JournalEntry.STATUS_POSTED)
        self.assertEqual(entry.reference, f"SALES_INVOICE_CMV:{invoice.pk}")
        self.assertEqual(
            self._lines(entry),
            {
                self.cmv.pk: (Decimal("500.00"), Decimal("0.00")),
                self.inventory.pk: (Decimal("0.00"), Decimal("500.00")),
            },
        )

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, Decimal("15"))
        sale = StockMovement.objects.get(movement_type=StockMovement.MovementType.VENTA)
        self.assertEqual(sale.quantity, Decimal("-5"))
        self.assertEqual(sale.stock_before, Decimal("20"))
        self.assertEqual(sale.stock_after, Decimal("15"))
        self.assertEqual(sale.journal_entry_id, entry.pk)

        self.assertEqual(issued.status, Invoice.STATUS_PENDING)
        self.assertTrue(issued.stock_impacted)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal("1089.00"))

    def test_foreign_cost_is_converted_at_issue_date(self):
        imported = Product.objects.create(sku="IMP-1", name="Bomba importada", currency="USD")
        record_stock_movement(
            product=imported,
            movement_type=StockMovement.MovementType.COMPRA,
            quantity=Decimal("10"),
            unit_cost=Decimal("12.50"),
            currency="USD",
        )
        ExchangeRate.objects.create(from_currency="USD", rate=Decimal("900"), valid_from=date(2024, 6, 1))

        issued = issue_invoice(self._draft_invoice(product=imported, quantity="2").pk, user=self.user)

        # 2 x 12.50 USD x 900
        self.assertEqual(self._lines(issued.journal_entry)[self.cmv.pk], (Decimal("22500.00"), Decimal("0.00")))

    def test_zero_cost_sale_writes_no_entry(self):
        free = Product.objects.create(sku="MUE-1", name="Muestra")
        record_stock_movement(
            product=free,
            movement_type=StockMovement.MovementType.AJUSTE_POSITIVO,
            quantity=Decimal("3"),
            unit_cost=Decimal("0"),
        )

        issued = issue_invoice(self._draft_invoice(product=free, quantity="1").pk, user=self.user)

        self.assertIsNone(issued.journal_entry)
        self.assertEqual(issued.status, Invoice.STATUS_PENDING)

    def test_missing_cost_blocks_issue(self):
        uncosted = Product.objects.create(sku="SIN-1", name="Sin costo", allow_negative=True)
        invoice = self._draft_invoice(product=uncosted, quantity="1")

        with self.assertRaises(MissingUnitCostError):
            issue_invoice(invoice.pk, user=self.user)

    # ------------------------------------------------------------------
    # Atomicity / idempotency
    # ------------------------------------------------------------------
    def test_insufficient_stock_rolls_back_everything(self):
        invoice = self._draft_invoice(quantity="25")

        with self.assertRaises(InsufficientStockError):
            issue_invoice(invoice.pk, user=self.user)

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_DRAFT)
        self.assertFalse(JournalEntry.objects.filter(reference=f"SALES_INVOICE_CMV:{invoice.pk}").exists())
        self.assertFalse(StockMovement.objects.filter(movement_type=StockMovement.MovementType.VENTA).exists())
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal("0.00"))

    def test_second_issue_is_rejected(self):
        invoice = self._draft_invoice()
        issue_invoice(invoice.pk, user=self.user)

        with self.assertRaises(InvoiceStateError):
            issue_invoice(invoice.pk, user=self.user)

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, Decimal("15"))

    # ------------------------------------------------------------------
    # Cancellation of an issued invoice
    # ------------------------------------------------------------------
    def test_cancel_pending_invoice_returns_stock_and_voids_cmv(self):
        invoice = issue_invoice(self._draft_invoice().pk, user=self.user)
        entry_id = invoice.journal_entry_id

        cancel_invoice(invoice.pk, user=self.user, reason="Cliente desistió")

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, Decimal("20"))
        self.assertEqual(JournalEntry.objects.get(pk=entry_id).status, JournalEntry.STATUS_VOIDED)
        returned = StockMovement.objects.get(movement_type=StockMovement.MovementType.DEVOLUCION_CLIENTE)
        self.assertEqual(returned.quantity, Decimal("5"))
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal("0.00"))

    def test_paid_invoice_cannot_be_cancelled(self):
        invoice = issue_invoice(self._draft_invoice().pk, user=self.user)
        Invoice.objects.filter(pk=invoice.pk).update(paid_amount=Decimal("100.00"))

        with self.assertRaises(InvoiceStateError):
            cancel_invoice(invoice.pk, user=self.user)

    def test_overdue_marking(self):
        invoice = issue_invoice(self._draft_invoice().pk, user=self.user)

        self.assertEqual(mark_overdue_invoices(today=invoice.due_date), 0)
        self.assertEqual(mark_overdue_invoices(today=date(2024, 12, 31)), 1)

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, Invoice.STATUS_OVERDUE)
