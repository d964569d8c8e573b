# backend/barbershop/core/enums.py
"""
Core enums for the barbershop booking engine.

Values are the wire and storage representation; they are compared as
plain strings everywhere, so every enum derives from ``str``.
"""

from enum import Enum


class OperatingMode(str, Enum):
    """Branch-level override layered over the configured daily window."""

    AUTO = "auto"
    FORCED_OPEN = "forced-open"
    FORCED_CLOSED = "forced-closed"


class ClientRanking(str, Enum):
    NEW = "new"
    FREQUENT = "frequent"
    VIP = "vip"


class BookingOrigin(str, Enum):
    """How a booking entered the system."""

    GUEST = "guest"  # Self-service wizard
    REFERRAL = "referral"  # Referral channel (e.g. a maps listing)
    WALK_IN = "walk-in"  # Entered at the counter
    ADMIN = "admin"  # Staff console

    @property
    def is_staff_entered(self) -> bool:
        return self in (BookingOrigin.WALK_IN, BookingOrigin.ADMIN)


class RejectionReason(str, Enum):
    PAST = "past"
    OUTSIDE_HOURS = "outside-hours"
    TAKEN = "taken"
