"""
common.health
~~~~~~~~~~~~~
GET /health/ – lightweight liveness + readiness probe.

Returns:
    200  {"status": "ok", "db": "ok", "cache": "ok"}           – everything healthy
    503  {"status": "degraded", "db": "error: <msg>", ...}     – a dependency is down
"""
import structlog
from django.conf import settings
from django.core.cache import caches
from django.db import connection, OperationalError
from django.http import JsonResponse

logger = structlog.get_logger(__name__)


def _check_cache() -> str:
    try:
        backend = caches[settings.PROCESS_MAPPING_CACHE_ALIAS]
        backend.set("health:probe", "1", timeout=5)
        backend.get("health:probe")
    except Exception as exc:  # noqa: BLE001 - any backend failure marks it degraded
        logger.error("health_check_cache_failure", error=str(exc))
        return f"error: {exc}"
    return "ok"


def health_check(request):
    """Return service health including database and cache status."""
    db_status: str

    try:
        connection.ensure_connection()
        db_status = "ok"
    except OperationalError as exc:
        db_status = f"error: {exc}"
        logger.error("health_check_db_failure", error=str(exc))

    cache_status = _check_cache()
    healthy = db_status == "ok" and cache_status == "ok"

    payload = {
        "status": "ok" if healthy else "degraded",
        "db": db_status,
        "cache": cache_status,
    }
    return JsonResponse(payload, status=200 if healthy else 503)
