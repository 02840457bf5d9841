# purchases/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from accounting.services.account_registry import TAX_TYPE_CHOICES

User = settings.AUTH_USER_MODEL


class Supplier(models.Model):
    """
    Supplier master.

    `balance` is the amount owed to the supplier in ledger currency:
    approved invoices add to it, credit notes subtract.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    cuit = models.CharField(max_length=13, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    balance = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="supplier_name_idx"),
            models.Index(fields=["cuit"], name="supplier_cuit_idx"),
        ]

    def __str__(self):
        return self.name


class PurchaseInvoice(models.Model):
    """
    Supplier document header: invoices (FACTURA) and credit notes
    (NOTA_CREDITO, linked to the invoice they return against).

    Lifecycle (services only):
    - DRAFT     : editable, no ledger or stock impact
    - APPROVED  : journal entry posted, stock applied, supplier balance updated
    - PAID      : settled
    - CANCELLED : never approved
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    DOC_FACTURA = "FACTURA"
    DOC_NOTA_CREDITO = "NOTA_CREDITO"

    DOCUMENT_TYPES = [
        (DOC_FACTURA, "Factura"),
        (DOC_NOTA_CREDITO, "Nota de crédito"),
    ]

    STATUS_DRAFT = "DRAFT"
    STATUS_APPROVED = "APPROVED"
    STATUS_PAID = "PAID"
    STATUS_CANCELLED = "CANCELLED"

    STATUSES = [
        (STATUS_DRAFT, "Borrador"),
        (STATUS_APPROVED, "Aprobada"),
        (STATUS_PAID, "Pagada"),
        (STATUS_CANCELLED, "Anulada"),
    ]

    INVOICE_TYPES = [
        ("A", "A"),
        ("B", "B"),
        ("C", "C"),
        ("M", "M"),
        ("E", "E"),
    ]

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    document_type = models.CharField(max_length=16, choices=DOCUMENT_TYPES, default=DOC_FACTURA)
    invoice_type = models.CharField(max_length=1, choices=INVOICE_TYPES, default="A")
    number = models.CharField(max_length=32, help_text="Supplier numbering, e.g. 0003-00012345")

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_DRAFT)

    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)

    currency = models.CharField(max_length=3, default="ARS")
    exchange_rate = models.DecimalField(
        max_digits=16,
        decimal_places=6,
        null=True,
        blank=True,
        help_text="Ledger currency per unit of `currency` (required when not ARS)",
    )

    general_discount = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"), help_text="Percent"
    )

    subtotal = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    net_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    perceptions_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    # Idempotency guard for the inventory impact.
    stock_impacted = models.BooleanField(default=False)
    stock_impacted_at = models.DateTimeField(null=True, blank=True)

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_invoices",
    )

    original_invoice = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="credit_notes",
    )

    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_invoices_created",
    )
    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_invoices_approved",
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-issue_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["supplier", "document_type", "number"],
                name="uniq_supplier_document_number",
            ),
            models.CheckConstraint(
                condition=models.Q(total__gte=Decimal("0.00")),
                name="purchase_invoice_total_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(balance__gte=Decimal("0.00")),
                name="purchase_invoice_balance_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "issue_date"], name="pinv_supplier_date_idx"),
            models.Index(fields=["status", "issue_date"], name="pinv_status_date_idx"),
        ]

    def clean(self):
        if not (self.number or "").strip():
            raise ValidationError({"number": "number is required"})

        if self.due_date and self.issue_date and self.due_date < self.issue_date:
            raise ValidationError({"due_date": "due_date cannot be before issue_date"})

        if self.document_type == self.DOC_NOTA_CREDITO and not self.original_invoice_id:
            raise ValidationError({"original_invoice": "credit notes must reference an invoice"})

    @property
    def is_credit_note(self) -> bool:
        return self.document_type == self.DOC_NOTA_CREDITO

    @property
    def label(self) -> str:
        prefix = "NC" if self.is_credit_note else "FC"
        return f"{prefix} {self.invoice_type} {self.number}"

    def __str__(self):
        return f"{self.label} - {getattr(self.supplier, 'name', '')}"


class PurchaseInvoiceItem(models.Model):
    """
    One document line. `account` overrides the default inventory account
    (expenses, fixed assets); `product` drives the stock impact.
    """

    invoice = models.ForeignKey(PurchaseInvoice, on_delete=models.CASCADE, related_name="items")

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_items",
    )
    account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_items",
    )
    # Credit note lines point back at the invoice line they return.
    original_item = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="returns",
    )

    position = models.PositiveIntegerField(default=0)
    description = models.CharField(max_length=255, blank=True, default="")
    quantity = models.DecimalField(max_digits=14, decimal_places=3)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("21.00"))
    subtotal = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["position", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=Decimal("0")),
                name="purchase_item_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=Decimal("0.00")),
                name="purchase_item_price_nonnegative",
            ),
        ]

    def __str__(self):
        return f"{self.description or self.product} x {self.quantity}"


class PurchasePerception(models.Model):
    """
    Tax perception suffered on a purchase (IIBB by jurisdiction, IVA,
    Ganancias, SUSS). Jurisdictions of the same tax share one ledger account
    unless `account` overrides it.
    """

    invoice = models.ForeignKey(PurchaseInvoice, on_delete=models.CASCADE, related_name="perceptions")

    jurisdiction = models.CharField(max_length=32, choices=TAX_TYPE_CHOICES)
    rate = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal("0.000"))
    base_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    amount = models.DecimalField(max_digits=16, decimal_places=2)

    account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_perceptions",
    )

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.get_jurisdiction_display()} {self.amount}"


class PurchasePayment(models.Model):
    """
    Money paid to a supplier out of a treasury account (orden de pago).

    With `invoice` set the payment settles that invoice; without it the
    payment is on account and only lowers the supplier balance. Amounts are
    in ledger currency.

    Lifecycle (services only):
    - APPLIED : journal entry posted, balances lowered
    - VOIDED  : entry reversed, balances restored
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    STATUS_APPLIED = "APPLIED"
    STATUS_VOIDED = "VOIDED"

    STATUSES = [
        (STATUS_APPLIED, "Aplicado"),
        (STATUS_VOIDED, "Anulado"),
    ]

    METHOD_TRANSFER = "TRANSFERENCIA"
    METHOD_CHECK = "CHEQUE"
    METHOD_CASH = "EFECTIVO"
    METHOD_DEBIT = "DEBITO"
    METHOD_OTHER = "OTROS"

    METHOD_CHOICES = [
        (METHOD_TRANSFER, "Transferencia"),
        (METHOD_CHECK, "Cheque"),
        (METHOD_CASH, "Efectivo"),
        (METHOD_DEBIT, "Débito automático"),
        (METHOD_OTHER, "Otros"),
    ]

    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="payments")
    invoice = models.ForeignKey(
        PurchaseInvoice,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments",
    )
    treasury_account = models.ForeignKey(
        "treasury.TreasuryAccount",
        on_delete=models.PROTECT,
        related_name="supplier_payments",
    )

    date = models.DateField(default=timezone.localdate)
    method = models.CharField(max_length=16, choices=METHOD_CHOICES, default=METHOD_TRANSFER)
    amount = models.DecimalField(max_digits=16, decimal_places=2)
    status = models.CharField(max_length=10, choices=STATUSES, default=STATUS_APPLIED)

    reference = models.CharField(max_length=100, blank=True, default="")
    notes = models.CharField(max_length=255, blank=True, default="")

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="supplier_payments",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="supplier_payments",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    voided_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="purchase_payment_amount_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "date"], name="ppay_supplier_date_idx"),
        ]

    def __str__(self):
        target = self.invoice.label if self.invoice_id else "a cuenta"
        return f"Pago {self.amount} - {target}"
