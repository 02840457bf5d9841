# accounting/tests/test_document_totals.py

from decimal import Decimal

from django.test import SimpleTestCase

from accounting.services.document_totals import LineInput, compute_totals


class DocumentTotalsTests(SimpleTestCase):
    def test_totals_with_vat(self):
        totals = compute_totals(
            [
                LineInput(unit_price=Decimal("100.00"), quantity=Decimal("3"), tax_rate=Decimal("21")),
                LineInput(unit_price=Decimal("50.00"), quantity=Decimal("2"), tax_rate=Decimal("10.5")),
            ]
        )

        self.assertEqual(totals.subtotal, Decimal("400.00"))
        self.assertEqual(totals.tax, Decimal("73.50"))
        self.assertEqual(totals.total, Decimal("473.50"))

    def test_general_discount_is_applied_per_line(self):
        totals = compute_totals(
            [LineInput(unit_price=Decimal("33.33"), quantity=Decimal("3"), tax_rate=Decimal("21"))],
            Decimal("10"),
        )

        line = totals.lines[0]
        self.assertEqual(line.subtotal, Decimal("99.99"))
        self.assertEqual(line.net, Decimal("89.99"))
        self.assertEqual(line.discount, Decimal("10.00"))
        self.assertEqual(line.tax, Decimal("18.90"))
        self.assertEqual(totals.total, line.net + line.tax)

    def test_discount_out_of_range(self):
        with self.assertRaises(ValueError):
            compute_totals([LineInput(unit_price=Decimal("1"), quantity=Decimal("1"))], Decimal("101"))
