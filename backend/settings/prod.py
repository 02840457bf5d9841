# backend/settings/prod.py
"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS

Fail closed on anything that would corrupt the books or leak credentials:
- DEBUG forced off; SECRET_KEY, ALLOWED_HOSTS, CORS/CSRF origins required
- Postgres only: the journal engine relies on select_for_update
- the account registry is always validated at startup
- the token cache must be shared across workers (CACHE_URL), otherwise every
  worker logs in to Colppy on its own
- Colppy credentials are all-or-nothing
"""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import BASE_DIR, COLPPY, LEDGER, MIDDLEWARE, env

DEBUG = False

# ----------------------------
# Secrets / hosts
# ----------------------------
SECRET_KEY = (env("SECRET_KEY", default="") or "").strip()
if not SECRET_KEY or SECRET_KEY == "dev-insecure-change-me":
    raise ImproperlyConfigured("SECRET_KEY must be set to a strong value in production.")

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
if not ALLOWED_HOSTS:
    raise ImproperlyConfigured("ALLOWED_HOSTS must be set in production.")

# ----------------------------
# Database
# ----------------------------
if (env("DATABASE_URL", default="") or "").strip().startswith("sqlite"):
    raise ImproperlyConfigured("Production requires PostgreSQL (row locks on journal posting).")

DATABASES = {"default": env.db("DATABASE_URL")}
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)
DATABASES["default"]["ATOMIC_REQUESTS"] = False

# ----------------------------
# Ledger
# ----------------------------
LEDGER = {**LEDGER, "VALIDATE_ACCOUNT_REGISTRY": True}

# ----------------------------
# Shared cache (external session tokens)
# ----------------------------
# e.g. CACHE_URL=dbcache://mayorista_cache (then: manage.py createcachetable)
_cache_url = (env("CACHE_URL", default="") or "").strip()
if not _cache_url or _cache_url.startswith("locmem"):
    raise ImproperlyConfigured("CACHE_URL must point at a cache shared by every worker.")
CACHES = {"default": env.cache("CACHE_URL")}

_colppy_credentials = [COLPPY["USER"], COLPPY["PASSWORD"], COLPPY["COMPANY_ID"]]
if any(_colppy_credentials) and not all(_colppy_credentials):
    raise ImproperlyConfigured(
        "COLPPY_USER, COLPPY_PASSWORD and COLPPY_COMPANY_ID must be set together."
    )

# ----------------------------
# Static files (WhiteNoise)
# ----------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))
MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ----------------------------
# Transport security
# ----------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True)
SECURE_HSTS_PRELOAD = env.bool("SECURE_HSTS_PRELOAD", default=False)

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_HTTPONLY = True

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"

# ----------------------------
# CORS / CSRF
# ----------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=[])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=[])
CORS_ALLOW_CREDENTIALS = False

for _name, _origins in (("CORS_ALLOWED_ORIGINS", CORS_ALLOWED_ORIGINS), ("CSRF_TRUSTED_ORIGINS", CSRF_TRUSTED_ORIGINS)):
    if not _origins:
        raise ImproperlyConfigured(f"{_name} must be set in production.")
    if any(not origin.startswith("https://") or "localhost" in origin for origin in _origins):
        raise ImproperlyConfigured(f"{_name} must list public https:// origins only.")
