"""Flight schedule records."""

from typing import Optional

from models.base import Model


class Flight(Model):
    """A scheduled flight, keyed by flight_id and departure_date."""

    flight_id: str
    departure_date: str
    origin: str
    destination: str
    seats_available: int = 0
    carrier: Optional[str] = None
