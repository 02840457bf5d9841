# treasury/tests/test_api.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from permissions.roles import ROLE_CONTADOR, ROLE_TESORERIA, ROLE_VENDEDOR, ROLE_VIEWER
from sales.models import Customer, Invoice
from treasury.models import Receipt, TreasuryAccount

User = get_user_model()


class TreasuryApiTests(APITestCase):
    """
    GUARANTEES:
    - treasury.view reads, treasury.collect creates, treasury.approve approves
    - validation failures answer 400 with every problem listed
    """

    def setUp(self):
        account_registry.clear_registry_cache()
        self.cashier = User.objects.create_user(email="tesoreria@example.com", password="x", role=ROLE_TESORERIA)
        self.accountant = User.objects.create_user(email="contador@example.com", password="x", role=ROLE_CONTADOR)
        self.viewer = User.objects.create_user(email="consulta@example.com", password="x", role=ROLE_VIEWER)
        self.seller = User.objects.create_user(email="vendedor@example.com", password="x", role=ROLE_VENDEDOR)

        self.customer = Customer.objects.create(name="Cliente Cobranza", balance=Decimal("1000.00"))
        self.invoice = Invoice.objects.create(
            number="0001-00000001",
            invoice_type=Invoice.TYPE_B,
            status=Invoice.STATUS_PENDING,
            customer=self.customer,
            issue_date=date(2024, 7, 1),
            due_date=date(2024, 7, 31),
            subtotal=Decimal("1000.00"),
            total=Decimal("1000.00"),
            balance=Decimal("1000.00"),
        )
        self.bank = TreasuryAccount.objects.create(
            name="Banco Galicia", account=account_registry.resolve(AccountKey.BANK)
        )

    def _payload(self, payment="955.00"):
        return {
            "customer_id": str(self.customer.pk),
            "date": "2024-08-05",
            "applications": [{"invoice_id": str(self.invoice.pk), "amount": "1000.00"}],
            "payments": [{"treasury_account_id": self.bank.pk, "amount": payment, "reference": "TRF 8812"}],
            "withholdings": [{"tax_type": "IIBB_CABA", "amount": "45.00", "certificate_number": "0001-555"}],
        }

    def test_seller_cannot_see_receipts(self):
        self.client.force_authenticate(self.seller)
        response = self.client.get("/api/treasury/receipts/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_viewer_lists_but_cannot_create(self):
        self.client.force_authenticate(self.viewer)
        self.assertEqual(self.client.get("/api/treasury/accounts/").status_code, status.HTTP_200_OK)

        response = self.client.post("/api/treasury/receipts/", self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_and_approve(self):
        self.client.force_authenticate(self.cashier)

        created = self.client.post("/api/treasury/receipts/", self._payload(), format="json")
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)
        self.assertEqual(created.data["status"], Receipt.STATUS_BORRADOR)
        self.assertEqual(created.data["total_withholdings"], "45.00")
        self.assertEqual(created.data["withholding_groups"][0]["group_type"], "IIBB")

        approved = self.client.post(f"/api/treasury/receipts/{created.data['id']}/approve/")
        self.assertEqual(approved.status_code, status.HTTP_200_OK, approved.data)
        self.assertEqual(approved.data["status"], Receipt.STATUS_APROBADO)
        self.assertIsNotNone(approved.data["journal_entry"])

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, Invoice.STATUS_PAID)

    def test_unbalanced_approval_answers_400(self):
        self.client.force_authenticate(self.cashier)
        created = self.client.post("/api/treasury/receipts/", self._payload(payment="900.00"), format="json")

        self.client.force_authenticate(self.accountant)
        response = self.client.post(f"/api/treasury/receipts/{created.data['id']}/approve/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("does not balance", response.data["detail"])

    def test_over_application_lists_errors(self):
        self.client.force_authenticate(self.cashier)
        payload = self._payload()
        payload["applications"][0]["amount"] = "1500.00"

        response = self.client.post("/api/treasury/receipts/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.data["errors"])

    def test_treasury_account_needs_leaf_ledger_account(self):
        self.client.force_authenticate(self.accountant)
        parent = account_registry.resolve(AccountKey.BANK).parent

        response = self.client.post(
            "/api/treasury/accounts/",
            {"name": "Cuenta madre", "kind": "BANK", "account": parent.pk},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
