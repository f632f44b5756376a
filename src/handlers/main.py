"""
Single Lambda entrypoint that dispatches to thin function handlers.

Each deployed function sets FUNCTION_NAME (e.g. `booking-create`); when it is
absent the HTTP API route decides. Shared setup lives here: Parameter Store
loading, the service container, run logging and, most importantly, flushing
the write and telemetry buffers before the response is returned, since the
execution environment is frozen straight after.
"""

from __future__ import annotations

import json
import os
import time
from typing import Callable, Dict, Optional, Tuple

from config.settings import Settings
from utils.error_handling import AppError, to_response
from utils.logging_config import get_logger

from . import booking_create, booking_search, flight_search, health_check

logger = get_logger(__name__)

FUNCTIONS: Dict[str, Callable] = {
    "health-check": health_check.lambda_handler,
    "booking-create": booking_create.lambda_handler,
    "booking-search": booking_search.lambda_handler,
    "flight-search": flight_search.lambda_handler,
}

ROUTES: Tuple[Tuple[str, str], ...] = (
    ("GET /health", "health-check"),
    ("POST /bookings", "booking-create"),
    ("GET /bookings", "booking-search"),
    ("GET /flights", "flight-search"),
)

# Lazy-loaded so warm invocations reuse caches and buffers
_services: Optional["ServiceContainer"] = None


def _get_services():
    """Build the ServiceContainer once per execution environment."""
    global _services
    if _services is None:
        from repositories.parameter_store import ParameterStoreRepository
        from services.container import ServiceContainer

        parameter_path = os.environ.get("PARAMETER_STORE_PATH")
        if parameter_path:
            ParameterStoreRepository(
                region=os.environ.get("AWS_REGION")
            ).populate_environment(parameter_path)
        _services = ServiceContainer.from_settings(Settings.from_environment())
    return _services


def _response(status: int, body: Dict) -> Dict:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def resolve_function(event) -> Tuple[str, Optional[Callable]]:
    """Pick the handler by FUNCTION_NAME, falling back to the HTTP route."""
    function_name = os.environ.get("FUNCTION_NAME", "")
    if function_name in FUNCTIONS:
        return function_name, FUNCTIONS[function_name]

    http = (event or {}).get("requestContext", {}).get("http", {})
    route_key = f"{http.get('method', '').upper()} {http.get('path', '')}"
    for prefix, name in ROUTES:
        if route_key.startswith(prefix):
            return name, FUNCTIONS[name]
    return route_key, None


def lambda_handler(event, context):
    """Entry point for every deployed function."""
    start = time.perf_counter()
    services = _get_services()
    function_name, handler = resolve_function(event)
    status = "failure"

    try:
        if handler is None:
            return _response(404, {"message": "Route not found", "route": function_name})
        response = handler(event, context, services)
        status = "success"
        return response
    except AppError as exc:
        logger.exception("Lambda execution error", extra={"function_name": function_name})
        return to_response(exc)
    except Exception as exc:
        logger.exception("Lambda execution error", extra={"function_name": function_name})
        return _response(500, {"error": str(exc)})
    finally:
        duration_ms = int((time.perf_counter() - start) * 1000)
        remaining_ms = context.get_remaining_time_in_millis() if context else None
        logger.info(
            "Lambda run finished",
            extra={
                "function_name": function_name,
                "service_name": services.settings.service_name,
                "status": status,
                "duration_ms": duration_ms,
                "remaining_ms": remaining_ms,
            },
        )
        tags = [f"name:{function_name}", f"status:{status}"]
        services.telemetry.queue_metric("lambda.execution-count", 1, "count", tags)
        services.telemetry.queue_metric("lambda.execution-duration", duration_ms, "gauge", tags)
        services.flush()
