"""
Handler for POST /bookings.

The booking is queued rather than written synchronously; the 201 means the
write was accepted, and the shell flushes it before the Lambda returns.
"""

from __future__ import annotations

import json
import uuid

from pydantic import ValidationError as PydanticValidationError

from models.booking import Booking, BookingRequest
from models.flight import Flight
from utils.error_handling import NotFoundError, ValidationError
from utils.logging_config import get_logger
from utils.statistic import statistic

logger = get_logger(__name__)


def _json(status: int, body) -> dict:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }


@statistic(log_to_telemetry=True)
def lambda_handler(event, context, services):
    """Validate the payload, check the flight exists and queue the booking."""
    try:
        payload = json.loads(event.get("body") or "{}")
        request = BookingRequest.model_validate(payload)
    except (ValueError, PydanticValidationError) as exc:
        raise ValidationError(f"Invalid booking request: {exc}") from exc

    # Scan filters are contains() matches; keep exact ids only.
    flights = [
        flight
        for flight in Flight.scan(services.dynamodb, {"flight_id": request.flight_id})
        if flight.flight_id == request.flight_id
    ]
    if not flights:
        raise NotFoundError(f"Flight {request.flight_id} not found")

    booking = Booking(
        booking_id=str(uuid.uuid4()),
        flight_id=request.flight_id,
        passenger_name=request.passenger_name,
        seats=request.seats,
    )
    booking.save(services.dynamodb)

    logger.info(
        "Booking queued",
        extra={"booking_id": booking.booking_id, "flight_id": booking.flight_id},
    )
    return _json(201, booking.to_item())
