"""
Core views providing infrastructure endpoints.

Views here are not part of the marketplace domain: health checks for the
load balancer and container orchestration.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Report database and cache connectivity.

    HTTP Status Codes:
        200: Database reachable (cache problems only degrade the report)
        503: Database unreachable

    Example Response:
        {"status": "healthy", "database": "connected", "cache": "connected"}
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"

    # django-redis is configured with IGNORE_EXCEPTIONS, so a dead Redis
    # shows up as a cache miss rather than an exception.
    cache.set("health_check", "ok", timeout=1)
    health_status["cache"] = "connected" if cache.get("health_check") == "ok" else "disconnected"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JsonResponse(health_status, status=status_code)
