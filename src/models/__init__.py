"""Record models and the pending-operation variant."""

from models.base import Model  # noqa: F401
from models.booking import Booking, BookingRequest  # noqa: F401
from models.flight import Flight  # noqa: F401
from models.operations import OperationKind, PendingOperation  # noqa: F401
