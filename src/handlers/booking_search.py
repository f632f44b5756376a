"""Handler for GET /bookings and GET /bookings/{id}."""

import json

from models.booking import Booking
from utils.statistic import statistic


@statistic(log_to_telemetry=True)
def lambda_handler(event, context, services):
    """Return one booking by id, or every booking matching the query filter."""
    path_params = event.get("pathParameters") or {}
    query_params = dict(event.get("queryStringParameters") or {})

    booking_id = path_params.get("id") or query_params.pop("booking_id", None)
    if booking_id:
        booking = Booking.get(services.dynamodb, {"booking_id": booking_id})
        if booking is None:
            return {
                "statusCode": 404,
                "headers": {"Content-Type": "application/json"},
                "body": json.dumps({"message": "Booking not found"}),
            }
        return {
            "statusCode": 200,
            "headers": {"Content-Type": "application/json"},
            "body": booking.model_dump_json(exclude_none=True),
        }

    operator = query_params.pop("operator", "AND").upper()
    bookings = Booking.scan(services.dynamodb, query_params or None, operator)
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(
            {"items": [booking.to_item() for booking in bookings], "count": len(bookings)},
            default=str,
        ),
    }
