"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the settlement domain but are
essential for operating it, such as health checks.
"""

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Used by container health checks, load balancers and uptime monitors.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"

    HTTP Status Codes:
        200: Database reachable (cache problems only degrade)
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        cache.set("health_check", "ok", timeout=1)
        health_status["cache"] = (
            "connected" if cache.get("health_check") == "ok" else "disconnected"
        )
    except Exception:
        # Escrow stats fall back to the database when the cache is down
        health_status["cache"] = "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)
