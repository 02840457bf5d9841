# sales/models/customer.py

import uuid
from decimal import Decimal

from django.db import models


class Customer(models.Model):
    """
    Customer master.

    `tax_condition` decides the invoice letter; `balance` is what the
    customer owes in ledger currency (issued invoices add, receipts subtract).
    """

    TAX_RESPONSABLE_INSCRIPTO = "RESPONSABLE_INSCRIPTO"
    TAX_MONOTRIBUTO = "MONOTRIBUTO"
    TAX_EXENTO = "EXENTO"
    TAX_CONSUMIDOR_FINAL = "CONSUMIDOR_FINAL"
    TAX_EXTERIOR = "EXTERIOR"

    TAX_CONDITION_CHOICES = [
        (TAX_RESPONSABLE_INSCRIPTO, "Responsable Inscripto"),
        (TAX_MONOTRIBUTO, "Monotributo"),
        (TAX_EXENTO, "Exento"),
        (TAX_CONSUMIDOR_FINAL, "Consumidor Final"),
        (TAX_EXTERIOR, "Cliente del Exterior"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    cuit = models.CharField(max_length=13, blank=True, default="")
    tax_condition = models.CharField(
        max_length=32,
        choices=TAX_CONDITION_CHOICES,
        default=TAX_RESPONSABLE_INSCRIPTO,
    )
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")

    payment_terms_days = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Days until due; empty uses the default due interval",
    )

    balance = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="customer_name_idx"),
            models.Index(fields=["cuit"], name="customer_cuit_idx"),
        ]

    def __str__(self):
        return self.name
