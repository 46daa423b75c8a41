"""
Production settings – security-hardened overrides over base settings.
All sensitive values come from environment variables.
"""
from decouple import Csv, config

from .base import *  # noqa: F401, F403

DEBUG = False

ALLOWED_HOSTS = config("ALLOWED_HOSTS", cast=Csv())

# No baked-in credentials in production
DATABASES["default"]["PASSWORD"] = config("POSTGRES_PASSWORD")  # noqa: F405

# ---------------------------------------------------------------------------
# Resolution cache: every worker must see the same entries and tokens, or an
# invalidation only reaches the worker that handled the write.
# ---------------------------------------------------------------------------
CACHES[PROCESS_MAPPING_CACHE_ALIAS] = process_mapping_cache(  # noqa: F405
    config("PROCESS_MAPPING_CACHE_BACKEND", default="django.core.cache.backends.redis.RedisCache"),
    config("PROCESS_MAPPING_CACHE_LOCATION"),
    timeout=PROCESS_MAPPING_CACHE_TTL,  # noqa: F405
    max_entries=PROCESS_MAPPING_CACHE_MAX_ENTRIES,  # noqa: F405
    require_shared=True,
)

# ---------------------------------------------------------------------------
# HTTPS / security hardening
# ---------------------------------------------------------------------------
SECURE_SSL_REDIRECT = config("SECURE_SSL_REDIRECT", default=True, cast=bool)
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SESSION_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_SECURE = True
X_FRAME_OPTIONS = "DENY"

# ---------------------------------------------------------------------------
# Production logging: INFO level only
# ---------------------------------------------------------------------------
LOGGING["root"]["level"] = "INFO"  # noqa: F405
LOGGING["loggers"]["apps"]["level"] = "INFO"  # noqa: F405
