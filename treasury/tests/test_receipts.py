# treasury/tests/test_receipts.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from accounting.models.journal import JournalEntry
from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from permissions.roles import ROLE_TESORERIA
from sales.models import Customer, Invoice
from treasury.models import Receipt, TreasuryAccount, WithholdingGroup
from treasury.services.exceptions import ReceiptError, ReceiptStateError
from treasury.services.receipt_service import (
    ApplicationInput,
    PaymentInput,
    WithholdingInput,
    approve_receipt,
    create_receipt,
    next_receipt_number,
    void_receipt,
)

User = get_user_model()

RECEIPT_DATE = date(2024, 8, 10)


def make_invoice(customer, number, total, status=Invoice.STATUS_PENDING, currency="ARS"):
    total = Decimal(total)
    return Invoice.objects.create(
        number=number,
        invoice_type=Invoice.TYPE_A,
        status=status,
        customer=customer,
        currency=currency,
        issue_date=date(2024, 7, 1),
        due_date=date(2024, 7, 31),
        subtotal=total,
        total=total,
        balance=total,
    )


class ReceiptTests(TestCase):
    """
    Customer collections.

    GUARANTEES:
    - approval needs applied == collected + withholdings within tolerance
    - withholdings post one line per ledger account, whatever the jurisdiction
    - invoices and customer balance move only on approval, and move back on void
    """

    def setUp(self):
        account_registry.clear_registry_cache()
        self.user = User.objects.create_user(email="tesoreria@example.com", password="x", role=ROLE_TESORERIA)
        self.customer = Customer.objects.create(name="Ferretería Sur SRL", balance=Decimal("1500.00"))
        self.invoice = make_invoice(self.customer, "0001-00000001", "1000.00")
        self.second = make_invoice(self.customer, "0001-00000002", "500.00")
        self.bank = TreasuryAccount.objects.create(
            name="Banco Nación", kind=TreasuryAccount.KIND_BANK, account=account_registry.resolve(AccountKey.BANK)
        )
        self.cash = TreasuryAccount.objects.create(
            name="Caja", kind=TreasuryAccount.KIND_CASH, account=account_registry.resolve(AccountKey.CASH)
        )

    def _receipt(self, applications=None, payments=None, withholdings=None):
        return create_receipt(
            customer=self.customer,
            date=RECEIPT_DATE,
            applications=applications or [ApplicationInput(invoice_id=self.invoice.pk, amount=Decimal("1000.00"))],
            payments=payments
            if payments is not None
            else [PaymentInput(treasury_account_id=self.bank.pk, amount=Decimal("925.00"))],
            withholdings=withholdings
            if withholdings is not None
            else [
                WithholdingInput(tax_type="IIBB_CABA", amount=Decimal("30.00"), certificate_number="C-1"),
                WithholdingInput(tax_type="IIBB_BUENOS_AIRES", amount=Decimal("45.00"), certificate_number="B-7"),
            ],
            user=self.user,
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def test_create_computes_totals_and_groups_withholdings(self):
        receipt = self._receipt()

        self.assertEqual(receipt.status, Receipt.STATUS_BORRADOR)
        self.assertEqual(receipt.number, "0001-00000001")
        self.assertEqual(receipt.total_applied, Decimal("1000.00"))
        self.assertEqual(receipt.total_withholdings, Decimal("75.00"))
        self.assertEqual(receipt.total_to_collect, Decimal("925.00"))
        self.assertEqual(receipt.total_collected, Decimal("925.00"))

        group = receipt.withholding_groups.get()
        self.assertEqual(group.group_type, WithholdingGroup.GROUP_IIBB)
        self.assertEqual(group.total_amount, Decimal("75.00"))
        self.assertEqual(group.lines.count(), 2)

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal("0.00"))
        self.assertIsNone(receipt.journal_entry)

    def test_numbering_is_sequential(self):
        self._receipt()
        self.assertEqual(next_receipt_number(), "0001-00000002")
        self.assertEqual(next_receipt_number("3"), "0003-00000001")

    def test_invoice_of_another_customer_is_rejected(self):
        other = Customer.objects.create(name="Otro SA")
        foreign = make_invoice(other, "0001-00000009", "200.00")

        with self.assertRaises(ReceiptError) as ctx:
            self._receipt(applications=[ApplicationInput(invoice_id=foreign.pk, amount=Decimal("200.00"))])
        self.assertTrue(any("does not belong" in e for e in ctx.exception.errors))
        self.assertFalse(Receipt.objects.exists())

    def test_amount_above_invoice_balance_is_rejected(self):
        with self.assertRaises(ReceiptError) as ctx:
            self._receipt(applications=[ApplicationInput(invoice_id=self.invoice.pk, amount=Decimal("1000.02"))])
        self.assertTrue(any("exceeds its balance" in e for e in ctx.exception.errors))

    def test_amount_within_tolerance_is_accepted(self):
        receipt = self._receipt(
            applications=[ApplicationInput(invoice_id=self.invoice.pk, amount=Decimal("1000.01"))],
            payments=[PaymentInput(treasury_account_id=self.bank.pk, amount=Decimal("1000.01"))],
            withholdings=[],
        )
        self.assertEqual(receipt.total_applied, Decimal("1000.01"))

    def test_paid_draft_and_cancelled_invoices_are_rejected(self):
        for status in (Invoice.STATUS_PAID, Invoice.STATUS_CANCELLED, Invoice.STATUS_DRAFT):
            Invoice.objects.filter(pk=self.invoice.pk).update(status=status)
            with self.assertRaises(ReceiptError):
                self._receipt()

    def test_inactive_treasury_account_is_rejected(self):
        self.bank.is_active = False
        self.bank.save()
        with self.assertRaises(ReceiptError) as ctx:
            self._receipt()
        self.assertIn("Treasury account Banco Nación is inactive", ctx.exception.errors)

    def test_all_problems_are_reported_together(self):
        with self.assertRaises(ReceiptError) as ctx:
            self._receipt(
                applications=[ApplicationInput(invoice_id=self.invoice.pk, amount=Decimal("5000.00"))],
                payments=[PaymentInput(treasury_account_id=999999, amount=Decimal("10.00"))],
            )
        self.assertEqual(len(ctx.exception.errors), 2)

    # ------------------------------------------------------------------
    # Approve
    # ------------------------------------------------------------------
    def test_approve_posts_single_iibb_line(self):
        receipt = self._receipt()

        approved = approve_receipt(receipt.pk, user=self.user)

        entry = approved.journal_entry
        self.assertEqual(entry.status, JournalEntry.STATUS_POSTED)
        self.assertEqual(entry.reference, f"RECEIPT:{receipt.pk}")

        lines = list(entry.lines.all())
        self.assertEqual(len(lines), 3)
        by_account = {line.account_id: (line.debit, line.credit) for line in lines}
        receivable = account_registry.resolve(AccountKey.ACCOUNTS_RECEIVABLE)
        iibb = account_registry.resolve(AccountKey.WITHHOLDINGS_IIBB)
        self.assertEqual(by_account[receivable.pk], (Decimal("0.00"), Decimal("1000.00")))
        self.assertEqual(by_account[self.bank.account_id], (Decimal("925.00"), Decimal("0.00")))
        self.assertEqual(by_account[iibb.pk], (Decimal("75.00"), Decimal("0.00")))

        self.assertEqual(approved.status, Receipt.STATUS_APROBADO)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal("1000.00"))
        self.assertEqual(self.invoice.balance, Decimal("0.00"))
        self.assertEqual(self.invoice.status, Invoice.STATUS_PAID)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal("500.00"))

    def test_partial_collection_keeps_invoice_open(self):
        receipt = self._receipt(
            applications=[ApplicationInput(invoice_id=self.invoice.pk, amount=Decimal("400.00"))],
            payments=[
                PaymentInput(treasury_account_id=self.bank.pk, amount=Decimal("300.00")),
                PaymentInput(treasury_account_id=self.cash.pk, amount=Decimal("100.00"), method="EFECTIVO"),
            ],
            withholdings=[],
        )
        approve_receipt(receipt.pk, user=self.user)

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, Invoice.STATUS_PENDING)
        self.assertEqual(self.invoice.paid_amount, Decimal("400.00"))
        self.assertEqual(self.invoice.balance, Decimal("600.00"))

    def test_unbalanced_receipt_cannot_be_approved(self):
        receipt = self._receipt(withholdings=[WithholdingInput(tax_type="IIBB_CABA", amount=Decimal("30.00"))])

        with self.assertRaises(ReceiptError):
            approve_receipt(receipt.pk, user=self.user)

        receipt.refresh_from_db()
        self.assertEqual(receipt.status, Receipt.STATUS_BORRADOR)
        self.assertFalse(JournalEntry.objects.filter(reference=f"RECEIPT:{receipt.pk}").exists())

    def test_difference_within_tolerance_is_approved(self):
        receipt = self._receipt(payments=[PaymentInput(treasury_account_id=self.bank.pk, amount=Decimal("924.99"))])
        receipt = approve_receipt(receipt.pk, user=self.user)
        self.assertEqual(receipt.status, Receipt.STATUS_APROBADO)

    def test_second_approval_is_rejected(self):
        receipt = self._receipt()
        approve_receipt(receipt.pk, user=self.user)
        with self.assertRaises(ReceiptStateError):
            approve_receipt(receipt.pk, user=self.user)

    def test_balance_is_rechecked_at_approval(self):
        first = self._receipt()
        second = self._receipt()
        approve_receipt(first.pk, user=self.user)

        with self.assertRaises(ReceiptError):
            approve_receipt(second.pk, user=self.user)

    def test_withholding_families_post_to_their_own_accounts(self):
        receipt = self._receipt(
            withholdings=[
                WithholdingInput(tax_type="IIBB_CORDOBA", amount=Decimal("25.00")),
                WithholdingInput(tax_type="IVA", amount=Decimal("30.00")),
                WithholdingInput(tax_type="GANANCIAS", amount=Decimal("20.00")),
            ]
        )
        entry = approve_receipt(receipt.pk, user=self.user).journal_entry

        debits = {line.account_id: line.debit for line in entry.lines.filter(debit__gt=0)}
        self.assertEqual(debits[account_registry.resolve(AccountKey.WITHHOLDINGS_IIBB).pk], Decimal("25.00"))
        self.assertEqual(debits[account_registry.resolve(AccountKey.WITHHOLDINGS_VAT).pk], Decimal("30.00"))
        self.assertEqual(debits[account_registry.resolve(AccountKey.WITHHOLDINGS_INCOME_TAX).pk], Decimal("20.00"))
        self.assertEqual(receipt.withholding_groups.count(), 3)

    # ------------------------------------------------------------------
    # Void
    # ------------------------------------------------------------------
    def test_void_approved_receipt_restores_invoice_and_customer(self):
        receipt = self._receipt()
        approved = approve_receipt(receipt.pk, user=self.user)

        voided = void_receipt(receipt.pk, user=self.user, reason="Cheque rechazado")

        self.assertEqual(voided.status, Receipt.STATUS_ANULADO)
        approved.journal_entry.refresh_from_db()
        self.assertEqual(approved.journal_entry.status, JournalEntry.STATUS_VOIDED)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal("0.00"))
        self.assertEqual(self.invoice.balance, Decimal("1000.00"))
        self.assertEqual(self.invoice.status, Invoice.STATUS_OVERDUE)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.balance, Decimal("1500.00"))

    def test_void_draft_has_no_ledger_impact(self):
        receipt = self._receipt()
        void_receipt(receipt.pk, user=self.user)
        self.assertFalse(JournalEntry.objects.exists())

        with self.assertRaises(ReceiptStateError):
            void_receipt(receipt.pk, user=self.user)
