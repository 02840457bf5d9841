# accounting/management/commands/seed_chart_of_accounts.py

from django.core.management.base import BaseCommand
from django.db import transaction

from accounting.chart_of_accounts import seed_chart
from accounting.models.account import Account
from accounting.services.account_registry import validate_registry


class Command(BaseCommand):
    help = "Seed the Argentine chart of accounts (idempotent) and validate the account registry"

    # Must be runnable while the registry check is still failing.
    requires_system_checks = []

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding Argentine chart of accounts...")

        created_count, updated_count = seed_chart(Account)
        validate_registry()

        self.stdout.write(
            self.style.SUCCESS(
                f"✔ Chart of accounts seeded ({created_count} new accounts, {updated_count} updated)."
            )
        )
