"""Liveness and readiness probes for the load balancer and process manager."""

import os
import time

from django.db import connections
from django.db.utils import OperationalError
from django.http import JsonResponse
from django.utils import timezone

APP_VERSION = os.environ.get("APP_VERSION", "1.0.0")
STARTED_AT = time.monotonic()

NO_STORE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate, max-age=0",
    "Pragma": "no-cache",
}


def uptime_seconds() -> int:
    return int(time.monotonic() - STARTED_AT)


def describe_uptime(seconds: int) -> str:
    """``93784`` -> ``"1d 2h 3m 4s"``; zero-valued leading units are omitted."""
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    units = [(days, "d"), (hours, "h"), (minutes, "m")]
    parts = [f"{value}{suffix}" for value, suffix in units if value]
    return " ".join(parts + [f"{secs}s"])


def _probe_response(payload, status=200) -> JsonResponse:
    response = JsonResponse(payload, status=status)
    for header, value in NO_STORE_HEADERS.items():
        response[header] = value
    return response


def liveness_check(request):
    """Process is up. Never touches the database."""
    seconds = uptime_seconds()
    return _probe_response({
        "status": "alive",
        "timestamp": timezone.now().isoformat(),
        "uptime": {"seconds": seconds, "formatted": describe_uptime(seconds)},
        "version": APP_VERSION,
    })


def readiness_check(request):
    started = time.perf_counter()
    try:
        with connections["default"].cursor() as cursor:
            cursor.execute("SELECT 1")
    except OperationalError:
        return _probe_response({"status": "not_ready", "database": "down"}, status=503)

    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    return _probe_response({"status": "ready", "database": "up", "database_latency_ms": latency_ms})
