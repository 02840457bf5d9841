# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- in-memory SQLite (migrations seed the chart of accounts)
- fast password hashing
- no throttling, no external credentials
"""

from __future__ import annotations

from datetime import timedelta

from .base import *  # noqa: F403
from .base import LEDGER, REST_FRAMEWORK

TESTING = True
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

LEDGER = {
    **LEDGER,
    "VALIDATE_ACCOUNT_REGISTRY": False,
}

COLPPY = {
    "ENDPOINT": "https://colppy.test/service.php",
    "USER": "tester@example.com",
    "PASSWORD": "secret",
    "COMPANY_ID": "1234",
    "TIMEOUT": 5.0,
    "SESSION_TTL": timedelta(minutes=20),
}

TAX_LOOKUP = {
    "URL": "https://padron.test/api",
    "TOKEN": "",
    "TIMEOUT": 5.0,
}
