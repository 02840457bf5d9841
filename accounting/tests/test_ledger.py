# accounting/tests/test_ledger.py

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from accounting.services.balance_calculator import ACREEDOR, DEUDOR
from accounting.services.journal_entry_service import create_draft, post_entry, void_entry
from accounting.services.ledger_service import account_balance, general_ledger, trial_balance


class LedgerProjectionTests(TestCase):
    """
    Libro Mayor and Sumas y Saldos.

    GUARANTEES:
    - movements are ordered by date then entry number, with a running balance
    - the opening balance summarizes everything before date_from
    - drafts never show up; a voided entry and its reversal both do
    - the trial balance always balances
    """

    def setUp(self):
        account_registry.clear_registry_cache()
        self.bank = account_registry.resolve(AccountKey.BANK)
        self.sales = account_registry.resolve(AccountKey.SALES_REVENUE)
        self.ap = account_registry.resolve(AccountKey.ACCOUNTS_PAYABLE)

        self._post(date(2024, 5, 20), "Venta mayo", self.bank, self.sales, "500.00")
        self._post(date(2024, 6, 2), "Venta junio", self.bank, self.sales, "1200.00")
        self._post(date(2024, 6, 15), "Pago proveedor", self.ap, self.bank, "300.00")

    def _post(self, day, description, debit_account, credit_account, amount):
        return post_entry(
            date=day,
            description=description,
            lines=[
                {"account": debit_account.code, "debit": amount},
                {"account": credit_account.code, "credit": amount},
            ],
        )

    def test_general_ledger_running_balance(self):
        ledger = general_ledger(self.bank, date_from=date(2024, 6, 1), date_to=date(2024, 6, 30))

        self.assertEqual(ledger["opening_balance"]["amount"], Decimal("500.00"))
        self.assertEqual(
            [(m["description"], m["balance"]) for m in ledger["movements"]],
            [("Venta junio", Decimal("1700.00")), ("Pago proveedor", Decimal("1400.00"))],
        )
        self.assertEqual(ledger["totals"], {"debit": Decimal("1200.00"), "credit": Decimal("300.00")})
        self.assertEqual(ledger["closing_balance"]["amount"], Decimal("1400.00"))
        self.assertEqual(ledger["closing_balance"]["nature"], DEUDOR)

    def test_credit_nature_account(self):
        ledger = general_ledger(self.sales)
        self.assertEqual(ledger["closing_balance"]["amount"], Decimal("1700.00"))
        self.assertEqual(ledger["closing_balance"]["nature"], ACREEDOR)
        self.assertTrue(ledger["closing_balance"]["is_normal"])

    def test_drafts_are_excluded(self):
        create_draft(
            date=date(2024, 6, 10),
            description="Borrador pendiente",
            lines=[
                {"account": self.bank.code, "debit": "9999.00"},
                {"account": self.sales.code, "credit": "9999.00"},
            ],
        )
        ledger = general_ledger(self.bank)
        self.assertEqual(len(ledger["movements"]), 3)
        self.assertEqual(account_balance(self.bank).amount, Decimal("1400.00"))

    def test_voided_entry_and_reversal_both_listed(self):
        entry = self._post(date(2024, 6, 20), "Venta errónea", self.bank, self.sales, "50.00")
        void_entry(entry.pk, on_date=date(2024, 6, 21))

        ledger = general_ledger(self.bank, date_from=date(2024, 6, 20))
        self.assertEqual([m["debit"] for m in ledger["movements"]], [Decimal("50.00"), Decimal("0.00")])
        self.assertEqual(ledger["closing_balance"]["amount"], Decimal("1400.00"))

    def test_trial_balance(self):
        report = trial_balance()

        rows = {row["code"]: row for row in report["accounts"]}
        self.assertEqual(set(rows), {self.bank.code, self.sales.code, self.ap.code})
        self.assertEqual(rows[self.bank.code]["balance"], Decimal("1400.00"))
        self.assertEqual(rows[self.ap.code]["nature"], DEUDOR)
        self.assertFalse(rows[self.ap.code]["is_normal"])
        self.assertEqual(report["totals"]["debit"], Decimal("2000.00"))
        self.assertEqual(report["totals"]["credit"], Decimal("2000.00"))
        self.assertTrue(report["totals"]["balanced"])

    def test_trial_balance_as_of(self):
        report = trial_balance(as_of=date(2024, 5, 31))
        self.assertEqual(report["totals"]["debit"], Decimal("500.00"))
        self.assertEqual(len(report["accounts"]), 2)
