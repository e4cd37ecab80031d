"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks.
"""

from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError, connection
from django.http import JsonResponse

from settlements.policies import get_settlement_rates


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Used by Docker health checks, Kubernetes probes and load balancers.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - settlement_rates: "valid" or "invalid"

    HTTP Status Codes:
        200: All systems operational
        503: One or more systems unhealthy
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "settlement_rates": "unknown",
    }
    is_healthy = True

    # Check database connectivity
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        health_status["database"] = "disconnected"
        is_healthy = False

    # Settings can be overridden at runtime in tests and shells
    try:
        get_settlement_rates()
        health_status["settlement_rates"] = "valid"
    except ImproperlyConfigured:
        health_status["settlement_rates"] = "invalid"
        is_healthy = False

    if not is_healthy:
        health_status["status"] = "unhealthy"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
