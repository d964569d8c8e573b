"""SQLAlchemy models. Importing this package registers every table on Base.metadata."""

from .booking import ALLOWED_TRANSITIONS, Booking, BookingSlot, BookingStatus
from .catalog import Barber, Branch, Service
from .client import Client

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Barber",
    "Booking",
    "BookingSlot",
    "BookingStatus",
    "Branch",
    "Client",
    "Service",
]
