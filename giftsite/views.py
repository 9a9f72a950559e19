"""Readiness probes."""
import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_view(request):
    return JsonResponse({"status": "ok", "message": "Server is running"})


def test_db_view(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as exc:
        logger.error("Database probe failed: %s", exc)
        return JsonResponse(
            {"success": False, "error": "Database connection failed", "code": "database_error"},
            status=503,
        )
    return JsonResponse({"success": True, "message": "Database connection successful", "vendor": connection.vendor})
