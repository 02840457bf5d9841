# products/tests/test_inventory.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from permissions.roles import ROLE_COMPRAS
from products.models import Product, StockMovement
from products.services.exceptions import (
    InsufficientStockError,
    InventoryError,
    MissingUnitCostError,
)
from products.services.inventory import latest_unit_cost, record_stock_movement
from products.services.stock_adjustments import adjust_stock

User = get_user_model()


class StockMovementTests(TestCase):
    """
    Inventory ledger tests.

    GUARANTEES:
    - stock_after = stock_before + quantity on every movement
    - outbound movements never drive stock negative unless allowed
    - purchases refresh last_cost
    - movements are immutable
    """

    def setUp(self):
        self.user = User.objects.create_user(
            email="deposito@example.com",
            password="password123",
            role=ROLE_COMPRAS,
        )
        self.product = Product.objects.create(
            sku="TOR-M8",
            name="Tornillo M8",
            sale_price=Decimal("150.00"),
        )

    # ---------------------------------------------------------
    # Before / after snapshots
    # ---------------------------------------------------------
    def test_purchase_increases_stock_with_snapshots(self):
        movement = record_stock_movement(
            product=self.product,
            movement_type=StockMovement.MovementType.COMPRA,
            quantity=10,
            unit_cost=Decimal("80.00"),
            reference="PURCHASE_INVOICE:1",
            user=self.user,
            update_last_cost=True,
        )

        self.assertEqual(movement.stock_before, Decimal("0"))
        self.assertEqual(movement.stock_after, Decimal("10"))
        self.assertEqual(movement.quantity, Decimal("10"))
        self.assertEqual(movement.total_cost, Decimal("800.00"))

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, Decimal("10"))
        self.assertEqual(self.product.last_cost, Decimal("80.00"))

    def test_sale_quantity_is_stored_negative(self):
        record_stock_movement(
            product=self.product,
            movement_type=StockMovement.MovementType.COMPRA,
            quantity=10,
            unit_cost=Decimal("80.00"),
        )
        movement = record_stock_movement(
            product=self.product,
            movement_type=StockMovement.MovementType.VENTA,
            quantity=4,
        )

        self.assertEqual(movement.quantity, Decimal("-4"))
        self.assertEqual(movement.stock_before, Decimal("10"))
        self.assertEqual(movement.stock_after, Decimal("6"))
        self.assertEqual(self.product.quantity, Decimal("6"))

    def test_chain_of_movements_is_consistent(self):
        record_stock_movement(product=self.product, movement_type="COMPRA", quantity=5, unit_cost=10)
        record_stock_movement(product=self.product, movement_type="VENTA", quantity=2)
        record_stock_movement(product=self.product, movement_type="DEVOLUCION_CLIENTE", quantity=1)
        record_stock_movement(product=self.product, movement_type="DEVOLUCION_PROVEEDOR", quantity=3)

        previous_after = Decimal("0")
        for movement in StockMovement.objects.filter(product=self.product).order_by("created_at", "id"):
            self.assertEqual(movement.stock_before, previous_after)
            self.assertEqual(movement.stock_after, movement.stock_before + movement.quantity)
            previous_after = movement.stock_after

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, previous_after)
        self.assertEqual(self.product.quantity, Decimal("1"))

    # ---------------------------------------------------------
    # Negative stock
    # ---------------------------------------------------------
    def test_outbound_beyond_stock_is_rejected(self):
        record_stock_movement(product=self.product, movement_type="COMPRA", quantity=3, unit_cost=10)

        with self.assertRaises(InsufficientStockError) as ctx:
            record_stock_movement(product=self.product, movement_type="VENTA", quantity=5)

        self.assertIn("TOR-M8", str(ctx.exception))
        self.assertEqual(ctx.exception.available, Decimal("3"))

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, Decimal("3"))
        self.assertEqual(StockMovement.objects.filter(product=self.product).count(), 1)

    def test_allow_negative_product_can_go_below_zero(self):
        self.product.allow_negative = True
        self.product.save()

        movement = record_stock_movement(product=self.product, movement_type="VENTA", quantity=2)

        self.assertEqual(movement.stock_after, Decimal("-2"))

    def test_zero_or_negative_quantity_is_rejected(self):
        with self.assertRaises(InventoryError):
            record_stock_movement(product=self.product, movement_type="COMPRA", quantity=0)
        with self.assertRaises(InventoryError):
            record_stock_movement(product=self.product, movement_type="COMPRA", quantity=-1)

    def test_unknown_movement_type_is_rejected(self):
        with self.assertRaises(InventoryError):
            record_stock_movement(product=self.product, movement_type="ROBO", quantity=1)

    # ---------------------------------------------------------
    # Immutability
    # ---------------------------------------------------------
    def test_movements_cannot_be_edited_or_deleted(self):
        movement = record_stock_movement(product=self.product, movement_type="COMPRA", quantity=1, unit_cost=5)

        movement.notes = "edited"
        with self.assertRaises(ValidationError):
            movement.save()
        with self.assertRaises(ValidationError):
            movement.delete()


class UnitCostTests(TestCase):
    """
    GUARANTEES:
    - latest COMPRA / AJUSTE_POSITIVO movement wins
    - cost_price is the fallback
    - no cost at all is an explicit error
    """

    def setUp(self):
        self.product = Product.objects.create(sku="CAB-2X1", name="Cable 2x1")

    def test_missing_cost_raises(self):
        with self.assertRaises(MissingUnitCostError):
            latest_unit_cost(self.product)

    def test_cost_price_fallback(self):
        self.product.cost_price = Decimal("42.00")
        self.product.save()

        cost = latest_unit_cost(self.product)

        self.assertEqual(cost.amount, Decimal("42.00"))
        self.assertEqual(cost.source, "cost_price")

    def test_latest_purchase_movement_wins(self):
        self.product.cost_price = Decimal("42.00")
        self.product.save()
        record_stock_movement(product=self.product, movement_type="COMPRA", quantity=1, unit_cost=50)
        record_stock_movement(
            product=self.product, movement_type="COMPRA", quantity=1, unit_cost=55, currency="USD"
        )
        record_stock_movement(product=self.product, movement_type="VENTA", quantity=1, unit_cost=99)

        cost = latest_unit_cost(self.product)

        self.assertEqual(cost.amount, Decimal("55.00"))
        self.assertEqual(cost.currency, "USD")
        self.assertEqual(cost.source, "movement")


class StockAdjustmentTests(TestCase):
    def setUp(self):
        self.product = Product.objects.create(
            sku="PIN-BL",
            name="Pintura blanca 4L",
            cost_price=Decimal("1000.00"),
        )

    def test_positive_adjustment(self):
        result = adjust_stock(product=self.product, new_quantity=12, reason="Conteo anual")

        self.assertEqual(result.difference, Decimal("12"))
        self.assertEqual(result.movement.movement_type, StockMovement.MovementType.AJUSTE_POSITIVO)
        self.assertEqual(result.movement.reference, "AJUSTE_MANUAL")
        self.assertEqual(result.movement.notes, "Ajuste de inventario: Conteo anual")
        self.assertEqual(result.movement.unit_cost, Decimal("1000.00"))
        self.assertEqual(self.product.quantity, Decimal("12"))

    def test_negative_adjustment_uses_explicit_cost(self):
        adjust_stock(product=self.product, new_quantity=10, reason="Alta inicial")

        result = adjust_stock(
            product=self.product, new_quantity=7, reason="Rotura", unit_cost=Decimal("900.00")
        )

        self.assertEqual(result.movement.movement_type, StockMovement.MovementType.AJUSTE_NEGATIVO)
        self.assertEqual(result.movement.quantity, Decimal("-3"))
        self.assertEqual(result.movement.unit_cost, Decimal("900.00"))
        self.assertEqual(result.movement.stock_after, Decimal("7"))

    def test_same_quantity_is_rejected(self):
        with self.assertRaises(InventoryError):
            adjust_stock(product=self.product, new_quantity=0, reason="Nada")

    def test_reason_is_required(self):
        with self.assertRaises(InventoryError):
            adjust_stock(product=self.product, new_quantity=5, reason="  ")
