"""Booking records."""

from typing import Optional

from pydantic import BaseModel, Field

from models.base import Model


class Booking(Model):
    """A flight booking, keyed by booking_id."""

    booking_id: str
    flight_id: str
    passenger_name: str = Field(min_length=1)
    seats: int = Field(default=1, ge=1)
    status: Optional[str] = "pending"


class BookingRequest(BaseModel):
    """Inbound payload for POST /bookings."""

    flight_id: str
    passenger_name: str = Field(min_length=1)
    seats: int = Field(default=1, ge=1)
