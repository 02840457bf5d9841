# accounting/checks.py

"""
STARTUP CHECK: ACCOUNT REGISTRY

Every AccountKey must resolve to an active leaf account before the ledger can
post anything. Runs with the Django system checks (runserver, migrate,
`manage.py check`) when LEDGER["VALIDATE_ACCOUNT_REGISTRY"] is on.
"""

from __future__ import annotations

from django.conf import settings
from django.core import checks
from django.db import DatabaseError

from accounting.services.exceptions import AccountNotLeafError, MissingAccountError


@checks.register("ledger")
def account_registry_check(app_configs=None, **kwargs):
    if not settings.LEDGER.get("VALIDATE_ACCOUNT_REGISTRY", False):
        return []

    from accounting.services.account_registry import validate_registry

    try:
        validate_registry()
    except (MissingAccountError, AccountNotLeafError) as exc:
        return [
            checks.Error(
                str(exc),
                hint="Run `python manage.py seed_chart_of_accounts` or fix the chart of accounts.",
                id="accounting.E001",
            )
        ]
    except DatabaseError as exc:
        return [
            checks.Warning(
                f"Account registry could not be validated: {exc}",
                hint="Apply migrations, then run `python manage.py check_account_registry`.",
                id="accounting.W001",
            )
        ]
    return []
