# accounting/tests/test_api.py

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from accounting.models.account import Account
from accounting.models.exchange_rate import ExchangeRate
from accounting.models.journal import JournalEntry
from accounting.services import account_registry
from accounting.services.account_registry import AccountKey
from permissions.roles import ROLE_CONTADOR, ROLE_VENDEDOR, ROLE_VIEWER

User = get_user_model()


class AccountingApiTests(APITestCase):
    """
    GUARANTEES:
    - ledger.view reads, ledger.post writes
    - business-rule failures answer 400 with {"detail", "errors"}
    """

    def setUp(self):
        account_registry.clear_registry_cache()
        self.accountant = User.objects.create_user(email="contador@example.com", password="x", role=ROLE_CONTADOR)
        self.viewer = User.objects.create_user(email="consulta@example.com", password="x", role=ROLE_VIEWER)
        self.seller = User.objects.create_user(email="vendedor@example.com", password="x", role=ROLE_VENDEDOR)

        self.cash = account_registry.resolve(AccountKey.CASH)
        self.capital = account_registry.get_account_by_code("3.1.01")

    def _payload(self, debit="1000.00", credit="1000.00", **extra):
        return {
            "date": "2024-06-03",
            "description": "Aporte de capital",
            "lines": [
                {"account": self.cash.code, "debit": debit},
                {"account": self.capital.code, "credit": credit},
            ],
            **extra,
        }

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------
    def test_anonymous_is_rejected(self):
        response = self.client.get("/api/accounting/accounts/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_seller_has_no_ledger_access(self):
        self.client.force_authenticate(self.seller)
        response = self.client.get("/api/accounting/journal-entries/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_viewer_reads_but_cannot_write(self):
        self.client.force_authenticate(self.viewer)

        self.assertEqual(self.client.get("/api/accounting/accounts/").status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get("/api/accounting/journal-entries/").status_code, status.HTTP_200_OK)

        response = self.client.post("/api/accounting/journal-entries/", self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(JournalEntry.objects.exists())

    # ------------------------------------------------------------------
    # Journal entries
    # ------------------------------------------------------------------
    def test_draft_then_confirm(self):
        self.client.force_authenticate(self.accountant)

        response = self.client.post("/api/accounting/journal-entries/", self._payload(credit="900.00"), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], JournalEntry.STATUS_DRAFT)
        entry_id = response.data["id"]

        response = self.client.post(f"/api/accounting/journal-entries/{entry_id}/confirm/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("not balanced", response.data["detail"])

        response = self.client.patch(
            f"/api/accounting/journal-entries/{entry_id}/",
            {"lines": self._payload()["lines"]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post(f"/api/accounting/journal-entries/{entry_id}/confirm/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], JournalEntry.STATUS_POSTED)
        self.assertEqual(response.data["total_debit"], "1000.00")

        response = self.client.delete(f"/api/accounting/journal-entries/{entry_id}/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_post_immediately_unbalanced(self):
        self.client.force_authenticate(self.accountant)
        response = self.client.post(
            "/api/accounting/journal-entries/",
            self._payload(credit="999.00", post_immediately=True),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(JournalEntry.objects.exists())

    def test_line_with_both_sides_is_a_validation_error(self):
        self.client.force_authenticate(self.accountant)
        payload = self._payload()
        payload["lines"][0]["credit"] = "5.00"

        response = self.client.post("/api/accounting/journal-entries/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_void_returns_reversal(self):
        self.client.force_authenticate(self.accountant)
        response = self.client.post(
            "/api/accounting/journal-entries/", self._payload(post_immediately=True), format="json"
        )
        entry_id = response.data["id"]

        response = self.client.post(
            f"/api/accounting/journal-entries/{entry_id}/void/",
            {"reason": "Carga duplicada", "date": "2024-06-04"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["reversal_of"], entry_id)
        self.assertEqual(JournalEntry.objects.get(pk=entry_id).status, JournalEntry.STATUS_VOIDED)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def test_account_balance_and_trial_balance(self):
        self.client.force_authenticate(self.accountant)
        self.client.post("/api/accounting/journal-entries/", self._payload(post_immediately=True), format="json")

        self.client.force_authenticate(self.viewer)
        response = self.client.get(f"/api/accounting/accounts/{self.cash.pk}/balance/", {"as_of": "2024-06-30"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data["amount"]), Decimal("1000.00"))
        self.assertEqual(response.data["nature"], "DEUDOR")

        response = self.client.get(f"/api/accounting/accounts/{self.cash.pk}/balance/", {"as_of": "2024-06-01"})
        self.assertEqual(Decimal(response.data["amount"]), Decimal("0.00"))

        response = self.client.get("/api/accounting/trial-balance/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["totals"]["balanced"])

        response = self.client.get(f"/api/accounting/ledger/{self.cash.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["movements"]), 1)

    def test_exchange_rate_lookup(self):
        ExchangeRate.objects.create(from_currency="USD", rate=Decimal("870.5"), valid_from=date(2024, 1, 1))
        self.client.force_authenticate(self.viewer)

        response = self.client.get("/api/accounting/exchange-rates/lookup/", {"currency": "USD", "date": "2024-06-01"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data["rate"]), Decimal("870.5"))

        response = self.client.get("/api/accounting/exchange-rates/lookup/", {"currency": "EUR", "date": "2024-06-01"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_health_reports_chart(self):
        response = self.client.get("/api/health/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["chart"], "ok")

        Account.objects.filter(code=self.cash.code).update(is_active=False)
        response = self.client.get("/api/health/")
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["chart"], "incomplete")
