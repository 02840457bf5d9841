# sales/models/invoice.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q

User = settings.AUTH_USER_MODEL


class Invoice(models.Model):
    """
    Sales invoice (`PPPP-NNNNNNNN`, unique per letter).

    Lifecycle (services only):
    - DRAFT      : created from a quote, no stock or ledger impact
    - PENDING    : issued; VENTA movements and CMV entry written
    - AUTHORIZED / SENT : fiscal authorization and delivery to the customer
    - PAID       : settled by receipts
    - OVERDUE    : past due with an open balance
    - CANCELLED  : releases its quantities back to the quote

    Amounts are in the invoice currency; `exchange_rate` converts them to
    ledger currency.
    """

    TYPE_A = "A"
    TYPE_B = "B"
    TYPE_C = "C"
    TYPE_E = "E"

    INVOICE_TYPES = [
        (TYPE_A, "Factura A"),
        (TYPE_B, "Factura B"),
        (TYPE_C, "Factura C"),
        (TYPE_E, "Factura E (exportación)"),
    ]

    STATUS_DRAFT = "DRAFT"
    STATUS_PENDING = "PENDING"
    STATUS_AUTHORIZED = "AUTHORIZED"
    STATUS_SENT = "SENT"
    STATUS_PAID = "PAID"
    STATUS_OVERDUE = "OVERDUE"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Borrador"),
        (STATUS_PENDING, "Pendiente"),
        (STATUS_AUTHORIZED, "Autorizada"),
        (STATUS_SENT, "Enviada"),
        (STATUS_PAID, "Pagada"),
        (STATUS_OVERDUE, "Vencida"),
        (STATUS_CANCELLED, "Anulada"),
    ]

    OPEN_STATUSES = (STATUS_PENDING, STATUS_AUTHORIZED, STATUS_SENT, STATUS_OVERDUE)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    number = models.CharField(max_length=13)
    invoice_type = models.CharField(max_length=1, choices=INVOICE_TYPES)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT)

    customer = models.ForeignKey(
        "sales.Customer",
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    quote = models.ForeignKey(
        "sales.Quote",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoices",
    )

    currency = models.CharField(max_length=3, default="ARS")
    exchange_rate = models.DecimalField(max_digits=16, decimal_places=6, default=Decimal("1"))

    issue_date = models.DateField()
    due_date = models.DateField()

    subtotal = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    # CMV entry written on issue
    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales_invoices",
    )
    stock_impacted = models.BooleanField(default=False)
    stock_impacted_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales_invoices",
    )
    issued_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-issue_date", "-number"]
        constraints = [
            models.UniqueConstraint(fields=["invoice_type", "number"], name="uniq_invoice_type_number"),
            models.CheckConstraint(condition=Q(total__gte=0), name="invoice_total_non_negative"),
            models.CheckConstraint(condition=Q(paid_amount__gte=0), name="invoice_paid_non_negative"),
            models.CheckConstraint(
                condition=Q(due_date__gte=F("issue_date")),
                name="invoice_due_after_issue",
            ),
        ]
        indexes = [
            models.Index(fields=["customer", "issue_date"], name="invoice_customer_date_idx"),
            models.Index(fields=["status", "due_date"], name="invoice_status_due_idx"),
        ]

    def __str__(self):
        return self.label

    @property
    def label(self) -> str:
        return f"FC {self.invoice_type} {self.number}"

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES


class InvoiceItem(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")
    position = models.PositiveIntegerField(default=1)

    quote_item = models.ForeignKey(
        "sales.QuoteItem",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoice_items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoice_items",
    )
    description = models.CharField(max_length=255, blank=True, default="")

    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("21.00"))
    subtotal = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["position", "id"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="invoiceitem_quantity_positive"),
            models.CheckConstraint(condition=Q(unit_price__gte=0), name="invoiceitem_price_non_negative"),
        ]

    def __str__(self):
        return f"{self.invoice.number} #{self.position}"
