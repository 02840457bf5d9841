# accounting/tests/test_generators.py

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.models.exchange_rate import ExchangeRate
from accounting.models.journal import JournalEntry
from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from accounting.services.exceptions import (
    IdempotencyError,
    MissingAccountError,
    NoExchangeRateError,
    UnbalancedEntryError,
)
from accounting.services.posting_rules_cmv import (
    CostLine,
    CostOfSalesEvent,
    build_cmv_lines,
    post_cost_of_goods_sold,
)
from accounting.services.posting_rules_credit_note import (
    CreditNoteEvent,
    ReturnedItem,
    build_credit_note_lines,
    compute_credit_note,
)
from accounting.services.posting_rules_purchase import (
    PerceptionAmount,
    PurchaseInvoiceEvent,
    PurchaseItemAmount,
    build_purchase_invoice_lines,
    post_purchase_invoice,
)
from accounting.services.posting_rules_receipt import (
    PaymentAmount,
    ReceiptEvent,
    WithholdingAmount,
    build_receipt_lines,
)

DAY = date(2024, 6, 3)


def _by_code(postings):
    return {(p.account.code, "D" if p.is_debit else "C"): (p.debit or p.credit) for p in postings}


class GeneratorTestCase(TestCase):
    def setUp(self):
        account_registry.clear_registry_cache()
        self.codes = account_registry.ACCOUNT_CODES


# ----------------------------------------------------------------------
# CMV
# ----------------------------------------------------------------------
class CostOfGoodsSoldTests(GeneratorTestCase):
    """
    GUARANTEES:
    - DEBIT CMV / CREDIT Mercaderías for sum(quantity * unit cost)
    - foreign unit costs use the rate valid on the issue date
    - zero cost produces no entry; the same sale never posts twice
    """

    def _event(self, *lines):
        return CostOfSalesEvent(document_id=7, document_number="0001-00000007", issue_date=DAY, lines=list(lines))

    def test_five_units_at_one_hundred(self):
        postings = build_cmv_lines(self._event(CostLine("Yerba 1kg", Decimal("5"), Decimal("100"))))

        self.assertEqual(
            _by_code(postings),
            {
                (self.codes[AccountKey.COST_OF_GOODS_SOLD], "D"): Decimal("500.00"),
                (self.codes[AccountKey.MERCHANDISE_INVENTORY], "C"): Decimal("500.00"),
            },
        )

    def test_foreign_cost_converted_at_issue_date(self):
        ExchangeRate.objects.create(from_currency="USD", rate=Decimal("850"), valid_from=date(2024, 1, 1))
        event = self._event(
            CostLine("Importado", Decimal("2"), Decimal("10"), currency="USD"),
            CostLine("Nacional", Decimal("5"), Decimal("100")),
        )
        self.assertEqual(build_cmv_lines(event)[0].debit, Decimal("17500.00"))

    def test_missing_rate_fails(self):
        event = self._event(CostLine("Importado", Decimal("1"), Decimal("10"), currency="EUR"))
        with self.assertRaises(NoExchangeRateError):
            build_cmv_lines(event)

    def test_zero_cost_posts_nothing(self):
        event = self._event(CostLine("Muestra gratis", Decimal("3"), Decimal("0")))
        self.assertEqual(build_cmv_lines(event), [])
        self.assertIsNone(post_cost_of_goods_sold(event))
        self.assertFalse(JournalEntry.objects.exists())

    def test_posting_is_idempotent(self):
        event = self._event(CostLine("Yerba 1kg", Decimal("5"), Decimal("100")))
        entry = post_cost_of_goods_sold(event)
        self.assertEqual(entry.reference, "SALES_INVOICE_CMV:7")

        with self.assertRaises(IdempotencyError):
            post_cost_of_goods_sold(event)


# ----------------------------------------------------------------------
# Purchase invoice
# ----------------------------------------------------------------------
class PurchaseInvoiceRuleTests(GeneratorTestCase):
    """
    GUARANTEES:
    - CREDIT Proveedores total; DEBIT IVA CF, items and perceptions
    - every IIBB jurisdiction lands on the single IIBB account
    - an unbalanced invoice is rejected and nothing is posted
    """

    def _event(self, total="1265.00"):
        rent = account_registry.get_account_by_code("5.2.05")
        return PurchaseInvoiceEvent(
            document_id=3,
            document_label="FC A 0002-00001234",
            supplier_name="Distribuidora Norte",
            issue_date=DAY,
            total=Decimal(total),
            tax_amount=Decimal("210.00"),
            items=[
                PurchaseItemAmount(amount=Decimal("600.00")),
                PurchaseItemAmount(amount=Decimal("400.00"), account=rent, description="Alquiler depósito"),
            ],
            perceptions=[
                PerceptionAmount("IIBB_CABA", Decimal("15.00")),
                PerceptionAmount("IIBB_BUENOS_AIRES", Decimal("10.00")),
                PerceptionAmount("IVA", Decimal("30.00")),
            ],
        )

    def test_lines(self):
        postings = build_purchase_invoice_lines(self._event())

        self.assertEqual(
            _by_code(postings),
            {
                (self.codes[AccountKey.ACCOUNTS_PAYABLE], "C"): Decimal("1265.00"),
                (self.codes[AccountKey.VAT_CREDIT], "D"): Decimal("210.00"),
                (self.codes[AccountKey.MERCHANDISE_INVENTORY], "D"): Decimal("600.00"),
                ("5.2.05", "D"): Decimal("400.00"),
                (self.codes[AccountKey.WITHHOLDINGS_IIBB], "D"): Decimal("25.00"),
                (self.codes[AccountKey.WITHHOLDINGS_VAT], "D"): Decimal("30.00"),
            },
        )

    def test_unbalanced_invoice_is_rejected(self):
        with self.assertRaises(UnbalancedEntryError):
            post_purchase_invoice(self._event(total="1300.00"))
        self.assertFalse(JournalEntry.objects.exists())

    def test_unmapped_perception(self):
        event = PurchaseInvoiceEvent(
            document_id=4,
            document_label="FC A 0002-00001235",
            supplier_name="Distribuidora Norte",
            issue_date=DAY,
            total=Decimal("110.00"),
            tax_amount=Decimal("0"),
            items=[PurchaseItemAmount(amount=Decimal("100.00"))],
            perceptions=[PerceptionAmount("TASA_MUNICIPAL", Decimal("10.00"))],
        )
        with self.assertRaises(MissingAccountError):
            build_purchase_invoice_lines(event)


# ----------------------------------------------------------------------
# Credit note
# ----------------------------------------------------------------------
class CreditNoteRuleTests(GeneratorTestCase):
    """
    GUARANTEES:
    - the original general discount applies to each returned line
    - DEBIT Proveedores / CREDIT IVA CF and the returned items
    """

    def test_discounted_return(self):
        event = CreditNoteEvent(
            document_id=9,
            document_label="NC A 0002-00000045",
            supplier_name="Distribuidora Norte",
            issue_date=DAY,
            items=[
                ReturnedItem(unit_price=Decimal("100"), quantity=Decimal("3"), tax_rate=Decimal("21")),
                ReturnedItem(unit_price=Decimal("200"), quantity=Decimal("1"), tax_rate=Decimal("10.5")),
            ],
            general_discount=Decimal("10"),
        )

        totals = compute_credit_note(event.items, event.general_discount)
        self.assertEqual((totals.net, totals.tax, totals.total), (Decimal("450.00"), Decimal("75.60"), Decimal("525.60")))

        self.assertEqual(
            _by_code(build_credit_note_lines(event, totals)),
            {
                (self.codes[AccountKey.ACCOUNTS_PAYABLE], "D"): Decimal("525.60"),
                (self.codes[AccountKey.VAT_CREDIT], "C"): Decimal("75.60"),
                (self.codes[AccountKey.MERCHANDISE_INVENTORY], "C"): Decimal("450.00"),
            },
        )


# ----------------------------------------------------------------------
# Receipt
# ----------------------------------------------------------------------
class ReceiptRuleTests(GeneratorTestCase):
    """
    GUARANTEES:
    - CREDIT Deudores por Ventas for the applied total
    - withholdings collapse to one line per ledger account
    """

    def _event(self, payment="925.00"):
        bank = account_registry.resolve(AccountKey.BANK)
        return ReceiptEvent(
            document_id="r-1",
            receipt_number="0001-00000010",
            customer_name="Almacén Sur",
            issue_date=DAY,
            total_applied=Decimal("1000.00"),
            payments=[PaymentAmount(bank, Decimal(payment), "Transferencia")],
            withholdings=[
                WithholdingAmount("IIBB_CABA", Decimal("30.00"), "0001-1"),
                WithholdingAmount("IIBB_BUENOS_AIRES", Decimal("45.00")),
                WithholdingAmount("GANANCIAS", Decimal("0")),
            ],
        )

    def test_iibb_jurisdictions_collapse(self):
        postings = build_receipt_lines(self._event())

        self.assertEqual(len(postings), 3)
        self.assertEqual(
            _by_code(postings),
            {
                (self.codes[AccountKey.ACCOUNTS_RECEIVABLE], "C"): Decimal("1000.00"),
                (self.codes[AccountKey.BANK], "D"): Decimal("925.00"),
                (self.codes[AccountKey.WITHHOLDINGS_IIBB], "D"): Decimal("75.00"),
            },
        )
        self.assertEqual(postings[2].description, "Retenciones: IIBB CABA (Cert. 0001-1), IIBB Buenos Aires")

    def test_unbalanced_receipt(self):
        with self.assertRaises(UnbalancedEntryError):
            build_receipt_lines(self._event(payment="900.00"))
