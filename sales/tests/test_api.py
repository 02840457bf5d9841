# sales/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from accounting.services import account_registry
from permissions.roles import ROLE_COMPRAS, ROLE_VENDEDOR, ROLE_VIEWER
from products.models import Product, StockMovement
from products.services.inventory import record_stock_movement
from sales.models import Customer, Invoice, Quote
from sales.services.invoice_service import cancel_invoice

User = get_user_model()


class SalesApiTests(APITestCase):
    """
    GUARANTEES:
    - capability checks per action (viewer reads, seller quotes and invoices)
    - business-rule failures answer 400 with a detail message
    """

    def setUp(self):
        account_registry.clear_registry_cache()
        self.seller = User.objects.create_user(email="vendedor@example.com", password="x", role=ROLE_VENDEDOR)
        self.viewer = User.objects.create_user(email="consulta@example.com", password="x", role=ROLE_VIEWER)
        self.buyer = User.objects.create_user(email="compras@example.com", password="x", role=ROLE_COMPRAS)
        self.customer = Customer.objects.create(name="Cliente API")
        self.product = Product.objects.create(sku="API-1", name="Producto API")
        record_stock_movement(
            product=self.product,
            movement_type=StockMovement.MovementType.COMPRA,
            quantity=Decimal("50"),
            unit_cost=Decimal("40.00"),
        )

    def _create_quote(self):
        payload = {
            "customer_id": str(self.customer.pk),
            "items": [
                {"product_id": str(self.product.pk), "quantity": "10", "unit_price": "75.00", "delivery_time": "stock"},
            ],
        }
        return self.client.post("/api/sales/quotes/", payload, format="json")

    def _accept(self, quote_id):
        return self.client.post(f"/api/sales/quotes/{quote_id}/status/", {"status": "ACCEPTED"}, format="json")

    def test_buyer_without_sales_capability_is_forbidden(self):
        self.client.force_authenticate(self.buyer)

        response = self.client.get("/api/sales/quotes/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_viewer_reads_but_cannot_quote(self):
        self.client.force_authenticate(self.viewer)

        self.assertEqual(self.client.get("/api/sales/quotes/").status_code, status.HTTP_200_OK)
        self.assertEqual(self._create_quote().status_code, status.HTTP_403_FORBIDDEN)

    def test_quote_to_invoice_flow(self):
        self.client.force_authenticate(self.seller)

        created = self._create_quote()
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        quote_id = created.data["id"]
        self.assertEqual(Decimal(created.data["subtotal"]), Decimal("750.00"))
        item_id = created.data["items"][0]["id"]

        accepted = self._accept(quote_id)
        self.assertEqual(accepted.data["status"], Quote.STATUS_ACCEPTED)

        invoice = self.client.post(
            f"/api/sales/quotes/{quote_id}/invoices/",
            {"items": [{"quote_item_id": item_id, "quantity": "6"}]},
            format="json",
        )
        self.assertEqual(invoice.status_code, status.HTTP_201_CREATED)
        self.assertEqual(invoice.data["number"], "0001-00000001")

        progress = self.client.get(f"/api/sales/quotes/{quote_id}/progress/")
        self.assertEqual(Decimal(progress.data["items"][0]["remaining_quantity"]), Decimal("4"))

        over = self.client.post(
            f"/api/sales/quotes/{quote_id}/invoices/",
            {"items": [{"quote_item_id": item_id, "quantity": "5"}]},
            format="json",
        )
        self.assertEqual(over.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("exceeds", over.data["detail"])

        issued = self.client.post(f"/api/sales/invoices/{invoice.data['id']}/issue/")
        self.assertEqual(issued.status_code, status.HTTP_200_OK)
        self.assertEqual(issued.data["status"], "PENDING")
        self.assertIsNotNone(issued.data["journal_entry"])

        board = self.client.get("/api/sales/quotes/kanban/")
        self.assertEqual(board.status_code, status.HTTP_200_OK)
        self.assertEqual(board.data["ready"]["count"], 1)

    def test_invalid_status_change_is_400(self):
        self.client.force_authenticate(self.seller)
        quote_id = self._create_quote().data["id"]
        self.client.post(f"/api/sales/quotes/{quote_id}/status/", {"status": "REJECTED"}, format="json")

        response = self._accept(quote_id)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_draft_quote_cannot_be_deleted(self):
        self.client.force_authenticate(self.seller)
        quote_id = self._create_quote().data["id"]
        self._accept(quote_id)

        response = self.client.delete(f"/api/sales/quotes/{quote_id}/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Quote.objects.filter(pk=quote_id).exists())

    def test_invoiced_quote_cannot_be_reworked_as_draft(self):
        self.client.force_authenticate(self.seller)
        created = self._create_quote()
        quote_id = created.data["id"]
        item_id = created.data["items"][0]["id"]
        self._accept(quote_id)
        invoice = self.client.post(
            f"/api/sales/quotes/{quote_id}/invoices/",
            {"items": [{"quote_item_id": item_id, "quantity": "6"}]},
            format="json",
        )

        revert = self.client.post(f"/api/sales/quotes/{quote_id}/status/", {"status": "DRAFT"}, format="json")
        self.assertEqual(revert.status_code, status.HTTP_400_BAD_REQUEST)

        cancel_invoice(invoice.data["id"], user=self.seller, reason="Rehacer cotización")
        revert = self.client.post(f"/api/sales/quotes/{quote_id}/status/", {"status": "DRAFT"}, format="json")
        self.assertEqual(revert.status_code, status.HTTP_200_OK)

        replaced = self.client.patch(
            f"/api/sales/quotes/{quote_id}/",
            {"items": [{"product_id": str(self.product.pk), "quantity": "3", "unit_price": "80.00"}]},
            format="json",
        )
        self.assertEqual(replaced.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("detail", replaced.data)

        deleted = self.client.delete(f"/api/sales/quotes/{quote_id}/")
        self.assertEqual(deleted.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Invoice.objects.filter(quote_id=quote_id).count(), 1)
        self.assertEqual(Quote.objects.get(pk=quote_id).items.count(), 1)
