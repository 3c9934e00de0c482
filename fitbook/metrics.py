"""
Prometheus metrics for FitBook.

Tracks request performance, backend calls, registrations, sessions and bookings.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "fitbook_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "fitbook_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0),
)

# Backend metrics
backend_calls_total = Counter(
    "fitbook_backend_calls_total",
    "Total calls to the Supabase backend",
    ["operation", "status"],
)

backend_call_duration_seconds = Histogram(
    "fitbook_backend_call_duration_seconds",
    "Backend call duration in seconds",
    ["operation"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Domain metrics
registrations_total = Counter(
    "fitbook_registrations_total", "Total account registrations", ["role", "status"]
)

signins_total = Counter("fitbook_signins_total", "Total sign-ins", ["status"])

provisioning_fallbacks_total = Counter(
    "fitbook_provisioning_fallbacks_total",
    "Users rows inserted manually because the trigger row never appeared",
)

sessions_created_total = Counter(
    "fitbook_sessions_created_total", "Training sessions created", ["session_type"]
)

booking_operations_total = Counter(
    "fitbook_booking_operations_total",
    "Booking operations",
    ["operation", "status"],
)


def track_request_metrics(method: str, endpoint: str, status_code: int, duration: float):
    """Track HTTP request metrics."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def track_backend_call(operation: str, status: str, duration: float):
    """Track a backend call outcome."""
    backend_calls_total.labels(operation=operation, status=status).inc()
    backend_call_duration_seconds.labels(operation=operation).observe(duration)


def track_registration(role: str, success: bool):
    """Track registration metrics."""
    status = "success" if success else "failure"
    registrations_total.labels(role=role, status=status).inc()


def track_signin(success: bool):
    """Track sign-in metrics."""
    status = "success" if success else "failure"
    signins_total.labels(status=status).inc()


def track_provisioning_fallback():
    provisioning_fallbacks_total.inc()


def track_session_created(session_type: str):
    sessions_created_total.labels(session_type=session_type).inc()


def track_booking_operation(operation: str, success: bool):
    """Track booking, confirmation and cancellation outcomes."""
    status = "success" if success else "failure"
    booking_operations_total.labels(operation=operation, status=status).inc()


async def metrics_endpoint():
    """
    Prometheus metrics endpoint.

    Returns:
        Response with Prometheus metrics in text format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
