"""
======================================================
PATH: accounting/migrations/0002_seed_chart_of_accounts.py
======================================================
MIGRATION: SEED ARGENTINE CHART OF ACCOUNTS

Purpose:
- Every AccountKey of the account registry must exist as an active leaf
  account before anything is posted; seeding here keeps fresh databases
  (and test databases) consistent with the startup registry check.
- Reverse is a no-op: accounts may already carry journal lines.
"""

from __future__ import annotations

from django.db import migrations


def forwards(apps, schema_editor):
    from accounting.chart_of_accounts import seed_chart

    Account = apps.get_model("accounting", "Account")
    seed_chart(Account)


class Migration(migrations.Migration):
    dependencies = [
        ("accounting", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(forwards, migrations.RunPython.noop),
    ]
