"""
PATH: backend/settings/base.py

BASE SETTINGS (shared by dev + prod + test)

Operational maturity:
- Throttling
- Sentry (optional): error visibility in production
- LEDGER: balance tolerance, ledger currency, registry startup check
- Structured logging (LOG_LEVEL)
- External collaborators: Colppy (accounting SaaS) and the CUIT lookup
  service; credentials come from the environment only
"""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import environ
from corsheaders.defaults import default_headers, default_methods

# -----------------------------------------
# BASE DIRECTORY
# -----------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# -----------------------------------------
# TEST MODE DETECTION
# -----------------------------------------
TESTING = "test" in sys.argv or "pytest" in sys.modules

# -----------------------------------------
# ENV (django-environ)
# -----------------------------------------
env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "America/Argentina/Buenos_Aires"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    CORS_ALLOWED_ORIGINS=(list, ["http://localhost:5173"]),
    CSRF_TRUSTED_ORIGINS=(list, ["http://localhost:5173"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    LOG_LEVEL=(str, "INFO"),
    ADMIN_PATH=(str, "admin/"),
    # Throttling
    THROTTLE_ANON_RATE=(str, "60/min"),
    THROTTLE_USER_RATE=(str, "600/min"),
    # Sentry (optional; enable by setting SENTRY_DSN)
    SENTRY_DSN=(str, ""),
    SENTRY_ENVIRONMENT=(str, "development"),
    SENTRY_TRACES_SAMPLE_RATE=(float, 0.0),
    SENTRY_SEND_PII=(bool, False),
    # Ledger
    LEDGER_BALANCE_TOLERANCE=(str, "0.01"),
    LEDGER_CURRENCY=(str, "ARS"),
    LEDGER_DEFAULT_DUE_DAYS=(int, 30),
    LEDGER_POINT_OF_SALE=(str, "0001"),
    # Default: skip the registry startup check in tests (migrations seed the chart).
    LEDGER_VALIDATE_ACCOUNT_REGISTRY=(bool, not TESTING),
    # Colppy (external accounting system)
    COLPPY_ENDPOINT=(str, "https://login.colppy.com/lib/frontera2/service.php"),
    COLPPY_USER=(str, ""),
    COLPPY_PASSWORD=(str, ""),
    COLPPY_COMPANY_ID=(str, ""),
    COLPPY_TIMEOUT=(float, 30.0),
    COLPPY_SESSION_TTL_MINUTES=(int, 20),
    # CUIT / taxpayer lookup
    TAX_LOOKUP_URL=(str, ""),
    TAX_LOOKUP_TOKEN=(str, ""),
    TAX_LOOKUP_TIMEOUT=(float, 10.0),
)

# -----------------------------------------
# LOAD .env
# -----------------------------------------
env_file_1 = BASE_DIR / ".env"
env_file_2 = BASE_DIR.parent / ".env"

if env_file_1.exists():
    env.read_env(str(env_file_1))
elif env_file_2.exists():
    env.read_env(str(env_file_2))

# -----------------------------------------
# CORE SECURITY
# -----------------------------------------
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

# Non-obvious admin path in production, e.g. ADMIN_PATH=backoffice-7h2x/
ADMIN_PATH = (env("ADMIN_PATH") or "admin/").strip().lstrip("/")

# -----------------------------------------
# I18N / TZ
# -----------------------------------------
LANGUAGE_CODE = "es-ar"
TIME_ZONE = (env("TIME_ZONE") or "America/Argentina/Buenos_Aires").strip()
USE_I18N = True
USE_TZ = True

# -----------------------------------------
# AUTH USER MODEL (custom)
# -----------------------------------------
AUTH_USER_MODEL = "users.User"

# -----------------------------------------
# INSTALLED APPS
# -----------------------------------------
INSTALLED_APPS = [
    "corsheaders",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "django_filters",
    "users.apps.UsersConfig",
    "accounting.apps.AccountingConfig",
    "products.apps.ProductsConfig",
    "purchases.apps.PurchasesConfig",
    "sales.apps.SalesConfig",
    "treasury.apps.TreasuryConfig",
    "integrations.apps.IntegrationsConfig",
]

# -----------------------------------------
# MIDDLEWARE
# -----------------------------------------
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"
APPEND_SLASH = True

# -----------------------------------------
# TEMPLATES (required for Django admin)
# -----------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(BASE_DIR / "templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# -----------------------------------------
# REST FRAMEWORK
# -----------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "backend.exceptions.domain_exception_handler",
    "DEFAULT_THROTTLE_CLASSES": (
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ),
    "DEFAULT_THROTTLE_RATES": {
        "anon": env("THROTTLE_ANON_RATE"),
        "user": env("THROTTLE_USER_RATE"),
    },
}

# -----------------------------------------
# SIMPLE JWT
# -----------------------------------------
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
    "ROTATE_REFRESH_TOKENS": True,
    "BLACKLIST_AFTER_ROTATION": False,
}

# -----------------------------------------
# DATABASE
# -----------------------------------------
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# -----------------------------------------
# CACHE (token cache for external sessions)
# -----------------------------------------
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "mayorista-default",
    }
}

# -----------------------------------------
# LEDGER
# -----------------------------------------
LEDGER = {
    # One tolerance for every balance check (entries, generators, reports)
    "BALANCE_TOLERANCE": env("LEDGER_BALANCE_TOLERANCE"),
    "LEDGER_CURRENCY": (env("LEDGER_CURRENCY") or "ARS").strip().upper(),
    "DEFAULT_DUE_DAYS": env.int("LEDGER_DEFAULT_DUE_DAYS"),
    "DEFAULT_POINT_OF_SALE": (env("LEDGER_POINT_OF_SALE") or "0001").strip(),
    "VALIDATE_ACCOUNT_REGISTRY": env.bool("LEDGER_VALIDATE_ACCOUNT_REGISTRY"),
}

# -----------------------------------------
# EXTERNAL COLLABORATORS
# -----------------------------------------
COLPPY = {
    "ENDPOINT": (env("COLPPY_ENDPOINT") or "").strip(),
    "USER": (env("COLPPY_USER") or "").strip(),
    "PASSWORD": env("COLPPY_PASSWORD") or "",
    "COMPANY_ID": (env("COLPPY_COMPANY_ID") or "").strip(),
    "TIMEOUT": env.float("COLPPY_TIMEOUT"),
    "SESSION_TTL": timedelta(minutes=env.int("COLPPY_SESSION_TTL_MINUTES")),
}

TAX_LOOKUP = {
    "URL": (env("TAX_LOOKUP_URL") or "").strip(),
    "TOKEN": (env("TAX_LOOKUP_TOKEN") or "").strip(),
    "TIMEOUT": env.float("TAX_LOOKUP_TIMEOUT"),
}

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOG_LEVEL = (env("LOG_LEVEL") or "INFO").strip().upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "ledger": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "ledger",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "integrations": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}

# -----------------------------------------
# SENTRY (optional)
# -----------------------------------------
SENTRY_DSN = (env("SENTRY_DSN") or "").strip()
SENTRY_ENVIRONMENT = (env("SENTRY_ENVIRONMENT") or "development").strip()
SENTRY_TRACES_SAMPLE_RATE = float(env("SENTRY_TRACES_SAMPLE_RATE"))
SENTRY_SEND_PII = env.bool("SENTRY_SEND_PII")

if SENTRY_DSN:
    try:
        import sentry_sdk
        from sentry_sdk.integrations.django import DjangoIntegration
    except ImportError:
        sentry_sdk = None

    if sentry_sdk is not None:
        sentry_sdk.init(
            dsn=SENTRY_DSN,
            environment=SENTRY_ENVIRONMENT,
            integrations=[DjangoIntegration()],
            traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
            send_default_pii=SENTRY_SEND_PII,
        )

# -----------------------------------------
# CORS / CSRF
# -----------------------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = list(default_methods)
CORS_ALLOW_HEADERS = list(default_headers)

CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS")

# -----------------------------------------
# STATIC FILES
# -----------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------------------
# SWAGGER
# -----------------------------------------
SPECTACULAR_SETTINGS = {
    "TITLE": "Mayorista Backend API",
    "DESCRIPTION": "Double-entry ledger, quotes, invoicing, purchases, treasury and inventory",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}
