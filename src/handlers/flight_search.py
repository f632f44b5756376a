"""Handler for GET /flights."""

import json

from models.flight import Flight
from utils.logging_config import get_logger
from utils.statistic import statistic

logger = get_logger(__name__)

SEARCHABLE_FIELDS = ("origin", "destination", "departure_date", "carrier")


@statistic(log_to_telemetry=True)
def lambda_handler(event, context, services):
    """Scan flights with `contains` filters on the searchable fields."""
    query_params = event.get("queryStringParameters") or {}
    filter = {name: query_params[name] for name in SEARCHABLE_FIELDS if query_params.get(name)}

    flights = Flight.scan(services.dynamodb, filter or None)
    logger.info("Flight search served", extra={"filter": filter, "count": len(flights)})
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(
            {"items": [flight.to_item() for flight in flights], "count": len(flights)},
            default=str,
        ),
    }
