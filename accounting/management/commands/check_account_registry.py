# accounting/management/commands/check_account_registry.py

from django.core.management.base import BaseCommand, CommandError

from accounting.services.account_registry import ACCOUNT_CODES, validate_registry
from accounting.services.exceptions import AccountNotLeafError, MissingAccountError


class Command(BaseCommand):
    help = "Verify that every ledger account key maps to an active leaf account"

    requires_system_checks = []

    def handle(self, *args, **options):
        try:
            validate_registry()
        except (MissingAccountError, AccountNotLeafError) as exc:
            raise CommandError(str(exc)) from exc

        for key, code in ACCOUNT_CODES.items():
            self.stdout.write(f"  {key.value:<26} -> {code}")
        self.stdout.write(self.style.SUCCESS("✔ Account registry is complete."))
