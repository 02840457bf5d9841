# treasury/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.services.account_registry import TAX_TYPE_CHOICES

User = settings.AUTH_USER_MODEL


class TreasuryAccount(models.Model):
    """
    Cash box, bank account or check portfolio that receives collections.
    Each one posts to its own leaf ledger account.
    """

    KIND_CASH = "CASH"
    KIND_BANK = "BANK"
    KIND_CHECKS = "CHECKS"
    KIND_OTHER = "OTHER"

    KIND_CHOICES = [
        (KIND_CASH, "Caja"),
        (KIND_BANK, "Banco"),
        (KIND_CHECKS, "Valores a depositar"),
        (KIND_OTHER, "Otra"),
    ]

    name = models.CharField(max_length=120, unique=True)
    kind = models.CharField(max_length=10, choices=KIND_CHOICES, default=KIND_BANK)
    account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        related_name="treasury_accounts",
        limit_choices_to={"accepts_entries": True},
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def clean(self):
        if self.account_id and not self.account.accepts_entries:
            raise ValidationError({"account": f"Account {self.account.code} is not a leaf account"})


class Receipt(models.Model):
    """
    Customer collection (recibo).

    BORRADOR : editable, no ledger impact
    APROBADO : entry posted, invoices and customer balance updated
    ANULADO  : discarded draft, or approved receipt reversed

    total_applied = total_collected + total_withholdings (within tolerance)
    is required to approve.
    """

    STATUS_BORRADOR = "BORRADOR"
    STATUS_APROBADO = "APROBADO"
    STATUS_ANULADO = "ANULADO"

    STATUS_CHOICES = [
        (STATUS_BORRADOR, "Borrador"),
        (STATUS_APROBADO, "Aprobado"),
        (STATUS_ANULADO, "Anulado"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    number = models.CharField(max_length=13, unique=True)
    customer = models.ForeignKey(
        "sales.Customer",
        on_delete=models.PROTECT,
        related_name="receipts",
    )
    date = models.DateField()
    description = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_BORRADOR)

    total_applied = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    total_withholdings = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    total_to_collect = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    total_collected = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="receipts",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="receipts",
    )
    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-number"]
        indexes = [
            models.Index(fields=["customer", "date"], name="receipt_customer_date_idx"),
            models.Index(fields=["status", "date"], name="receipt_status_date_idx"),
        ]

    def __str__(self):
        return f"RC {self.number}"


class ReceiptApplication(models.Model):
    receipt = models.ForeignKey(Receipt, on_delete=models.CASCADE, related_name="applications")
    invoice = models.ForeignKey(
        "sales.Invoice",
        on_delete=models.PROTECT,
        related_name="receipt_applications",
    )
    invoice_total = models.DecimalField(max_digits=16, decimal_places=2)
    amount = models.DecimalField(max_digits=16, decimal_places=2)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="receiptapp_amount_positive"),
            models.UniqueConstraint(fields=["receipt", "invoice"], name="uniq_receipt_invoice"),
        ]


class ReceiptPayment(models.Model):
    METHOD_TRANSFER = "TRANSFERENCIA"
    METHOD_CHECK = "CHEQUE"
    METHOD_CASH = "EFECTIVO"
    METHOD_DEPOSIT = "DEPOSITO"
    METHOD_OTHER = "OTROS"

    METHOD_CHOICES = [
        (METHOD_TRANSFER, "Transferencia"),
        (METHOD_CHECK, "Cheque"),
        (METHOD_CASH, "Efectivo"),
        (METHOD_DEPOSIT, "Depósito"),
        (METHOD_OTHER, "Otros"),
    ]

    receipt = models.ForeignKey(Receipt, on_delete=models.CASCADE, related_name="payments")
    treasury_account = models.ForeignKey(
        TreasuryAccount,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    method = models.CharField(max_length=16, choices=METHOD_CHOICES, default=METHOD_TRANSFER)
    amount = models.DecimalField(max_digits=16, decimal_places=2)

    check_number = models.CharField(max_length=32, blank=True, default="")
    check_date = models.DateField(null=True, blank=True)
    check_bank = models.CharField(max_length=80, blank=True, default="")
    reference = models.CharField(max_length=100, blank=True, default="")
    notes = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="receiptpay_amount_positive"),
        ]


class WithholdingGroup(models.Model):
    """One row per tax family (IIBB, IVA, GANANCIAS, SUSS) on a receipt."""

    GROUP_IIBB = "IIBB"
    GROUP_IVA = "IVA"
    GROUP_GANANCIAS = "GANANCIAS"
    GROUP_SUSS = "SUSS"

    GROUP_CHOICES = [
        (GROUP_IIBB, "Ingresos Brutos"),
        (GROUP_IVA, "IVA"),
        (GROUP_GANANCIAS, "Ganancias"),
        (GROUP_SUSS, "SUSS"),
    ]

    receipt = models.ForeignKey(Receipt, on_delete=models.CASCADE, related_name="withholding_groups")
    group_type = models.CharField(max_length=10, choices=GROUP_CHOICES)
    total_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["receipt", "group_type"], name="uniq_receipt_withholding_group"),
        ]


class WithholdingLine(models.Model):
    group = models.ForeignKey(WithholdingGroup, on_delete=models.CASCADE, related_name="lines")
    tax_type = models.CharField(max_length=32, choices=TAX_TYPE_CHOICES)
    jurisdiction_label = models.CharField(max_length=80, blank=True, default="")
    certificate_number = models.CharField(max_length=40, blank=True, default="")
    amount = models.DecimalField(max_digits=16, decimal_places=2)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name="withholding_amount_positive"),
        ]
