# purchases/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from accounting.services import account_registry
from permissions.roles import ROLE_COMPRAS, ROLE_CONTADOR
from products.models import Product
from purchases.models import PurchaseInvoice, Supplier

User = get_user_model()


class PurchaseApiTests(APITestCase):
    def setUp(self):
        account_registry.clear_registry_cache()
        self.buyer = User.objects.create_user(email="compras@example.com", password="x", role=ROLE_COMPRAS)
        self.accountant = User.objects.create_user(email="contador@example.com", password="x", role=ROLE_CONTADOR)
        self.supplier = Supplier.objects.create(name="Proveedor Uno")
        self.product = Product.objects.create(sku="ABC-1", name="Producto ABC")

    def _payload(self, **overrides):
        body = {
            "supplier_id": str(self.supplier.pk),
            "number": "0002-00000010",
            "issue_date": "2024-05-02",
            "items": [
                {"product_id": str(self.product.pk), "quantity": "3", "unit_price": "200.00", "tax_rate": "21"},
            ],
            "perceptions": [{"jurisdiction": "IIBB_BUENOS_AIRES", "rate": "3", "base_amount": "600.00"}],
        }
        body.update(overrides)
        return body

    def test_buyer_creates_draft_invoice(self):
        self.client.force_authenticate(self.buyer)

        response = self.client.post("/api/purchases/invoices/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], PurchaseInvoice.STATUS_DRAFT)
        self.assertEqual(Decimal(response.data["perceptions_amount"]), Decimal("18.00"))
        self.assertEqual(Decimal(response.data["total"]), Decimal("744.00"))

    def test_unknown_account_code_is_a_field_error(self):
        self.client.force_authenticate(self.buyer)
        payload = self._payload(
            items=[{"description": "Flete", "quantity": "1", "unit_price": "10", "account_code": "9.9.99"}]
        )

        response = self.client.post("/api/purchases/invoices/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_buyer_cannot_approve(self):
        self.client.force_authenticate(self.buyer)
        created = self.client.post("/api/purchases/invoices/", self._payload(), format="json")

        response = self.client.post(f"/api/purchases/invoices/{created.data['id']}/approve/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_accountant_approves_and_second_attempt_is_400(self):
        self.client.force_authenticate(self.buyer)
        created = self.client.post("/api/purchases/invoices/", self._payload(), format="json")
        self.client.force_authenticate(self.accountant)
        url = f"/api/purchases/invoices/{created.data['id']}/approve/"

        first = self.client.post(url)
        second = self.client.post(url)

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data["status"], PurchaseInvoice.STATUS_APPROVED)
        self.assertTrue(first.data["stock_impacted"])
        self.assertEqual(second.status_code, status.HTTP_400_BAD_REQUEST)
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, Decimal("3"))
