# sales/models/quote.py

import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Quote(models.Model):
    """
    Commercial offer to a customer.

    Status changes go through sales.services.quote_lifecycle so every change
    leaves a QuoteStatusHistory row. Items are editable only while DRAFT.
    """

    STATUS_DRAFT = "DRAFT"
    STATUS_SENT = "SENT"
    STATUS_ACCEPTED = "ACCEPTED"
    STATUS_CONVERTED = "CONVERTED"
    STATUS_REJECTED = "REJECTED"
    STATUS_EXPIRED = "EXPIRED"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Borrador"),
        (STATUS_SENT, "Enviada"),
        (STATUS_ACCEPTED, "Aceptada"),
        (STATUS_CONVERTED, "Facturada"),
        (STATUS_REJECTED, "Rechazada"),
        (STATUS_EXPIRED, "Vencida"),
        (STATUS_CANCELLED, "Cancelada"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    number = models.CharField(max_length=32, unique=True)
    customer = models.ForeignKey(
        "sales.Customer",
        on_delete=models.PROTECT,
        related_name="quotes",
    )
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT)

    issue_date = models.DateField(default=timezone.localdate)
    valid_until = models.DateField(null=True, blank=True)

    currency = models.CharField(max_length=3, default="ARS")
    exchange_rate = models.DecimalField(
        max_digits=16,
        decimal_places=6,
        null=True,
        blank=True,
        help_text="Ledger currency per unit of `currency`; required to invoice a foreign-currency quote",
    )

    subtotal = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    responded_at = models.DateTimeField(null=True, blank=True)
    response_notes = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")

    status_changed_at = models.DateTimeField(null=True, blank=True)
    status_changed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quotes",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-issue_date", "-created_at"]
        indexes = [
            models.Index(fields=["status", "issue_date"], name="quote_status_date_idx"),
            models.Index(fields=["customer", "issue_date"], name="quote_customer_date_idx"),
        ]

    def __str__(self):
        return f"{self.number} ({self.status})"

    @property
    def is_editable(self) -> bool:
        return self.status == self.STATUS_DRAFT


class QuoteItem(models.Model):
    """
    Quoted line. `is_alternative` lines are offered options: they are not
    invoiced and do not count towards the quote total or its conversion.
    """

    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="items")
    position = models.PositiveIntegerField(default=1)

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="quote_items",
    )
    description = models.CharField(max_length=255, blank=True, default="")

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)

    is_alternative = models.BooleanField(default=False)
    delivery_time = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text='"Inmediato" / "stock" or a lead time such as "15 días"',
    )

    class Meta:
        ordering = ["position", "id"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="quoteitem_quantity_positive"),
            models.CheckConstraint(condition=Q(unit_price__gte=0), name="quoteitem_price_non_negative"),
        ]

    def __str__(self):
        return f"{self.quote.number} #{self.position}"

    @property
    def label(self) -> str:
        if self.description:
            return self.description
        return self.product.name if self.product_id else f"Item {self.position}"

    @property
    def total_price(self) -> Decimal:
        return (self.quantity * self.unit_price).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class QuoteStatusHistory(models.Model):
    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="status_history")
    from_status = models.CharField(max_length=16)
    to_status = models.CharField(max_length=16)
    changed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.quote.number}: {self.from_status} -> {self.to_status}"
