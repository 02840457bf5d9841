# accounting/apps.py

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Contabilidad"

    def ready(self):
        # Registers the account-registry system check.
        from accounting import checks  # noqa: F401
