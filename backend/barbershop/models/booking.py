# backend/barbershop/models/booking.py
"""
Booking model for the barbershop booking engine.

A booking owns an explicit half-open hour range ``[start_hour, end_hour)``
on a business-local date. Multi-service bookings are one record spanning
several consecutive hours.

Slot exclusivity is enforced by the storage layer: every non-cancelled
booking holds one ``BookingSlot`` claim per hour, and claims are unique per
(barber, date, hour). Cancelling a booking releases its claims.
"""

from datetime import date, datetime, timezone
from enum import Enum
import logging
from typing import Any, Dict, FrozenSet, List, Optional, cast

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.constants import HOUR_LABEL_FORMAT
from ..core.enums import BookingOrigin
from ..core.exceptions import InvalidTransitionException
from ..core.timezone_utils import slot_start
from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Self-service request awaiting confirmation
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no-show"

    @property
    def holds_slot(self) -> bool:
        return self is not BookingStatus.CANCELLED


ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

# Statuses from which date, hour, barber or service may still change.
RESCHEDULABLE_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


def format_hour(hour: int) -> str:
    return HOUR_LABEL_FORMAT.format(hour=hour)


class Booking(Base):
    """
    Self-contained booking record.

    The lifecycle service is the only writer of ``status`` and of the
    date/hour range; everything else treats bookings as read-only.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, default=generate_ulid)

    client_id = Column(String(26), ForeignKey("clients.id"), nullable=False, index=True)
    barber_id = Column(String(26), ForeignKey("barbers.id"), nullable=False, index=True)
    service_id = Column(String(26), ForeignKey("services.id"), nullable=False)
    branch_id = Column(String(26), ForeignKey("branches.id"), nullable=False, index=True)

    booking_date = Column(Date, nullable=False, index=True)
    start_hour = Column(Integer, nullable=False)
    end_hour = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    origin = Column(String(20), nullable=False, default=BookingOrigin.GUEST.value)
    commission_paid = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    client = relationship("Client", back_populates="bookings")
    barber = relationship("Barber")
    service = relationship("Service")
    branch = relationship("Branch")
    slots = relationship(
        "BookingSlot",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingSlot.hour",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed', 'no-show')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "origin IN ('guest', 'referral', 'walk-in', 'admin')",
            name="ck_bookings_origin",
        ),
        CheckConstraint(
            "start_hour >= 0 AND end_hour > start_hour AND end_hour <= 24",
            name="ck_bookings_hour_range",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: client={self.client_id}, barber={self.barber_id}, "
            f"date={self.booking_date}, hours={self.start_hour}-{self.end_hour}, "
            f"status={self.status}>"
        )

    # Range helpers

    @property
    def slot_count(self) -> int:
        return int(self.end_hour) - int(self.start_hour)

    @property
    def hours(self) -> List[int]:
        return list(range(int(self.start_hour), int(self.end_hour)))

    @property
    def hour_labels(self) -> List[str]:
        return [format_hour(hour) for hour in self.hours]

    @property
    def starts_at(self) -> datetime:
        return slot_start(cast(date, self.booking_date), int(self.start_hour))

    @property
    def ends_at(self) -> datetime:
        return slot_start(cast(date, self.booking_date), int(self.end_hour))

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    @property
    def holds_slots(self) -> bool:
        return self.status_enum.holds_slot

    # Slot claims

    def build_slot_claims(self) -> List["BookingSlot"]:
        return [
            BookingSlot(
                barber_id=self.barber_id,
                slot_date=self.booking_date,
                hour=hour,
            )
            for hour in self.hours
        ]

    def release_slots(self) -> None:
        self.slots.clear()

    # State machine

    def can_transition_to(self, new_status: BookingStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status_enum]

    def transition_to(self, new_status: BookingStatus) -> None:
        """
        Move to ``new_status`` or raise InvalidTransitionException.

        Timestamps are stamped here so every caller records them the same way.
        """
        current = self.status_enum
        if not self.can_transition_to(new_status):
            raise InvalidTransitionException(current.value, new_status.value, booking_id=self.id)

        now = datetime.now(timezone.utc)
        self.status = new_status.value
        if new_status is BookingStatus.CONFIRMED:
            self.confirmed_at = now
        elif new_status is BookingStatus.COMPLETED:
            self.completed_at = now
        elif new_status is BookingStatus.CANCELLED:
            self.cancelled_at = now
            self.release_slots()
        logger.info(f"Booking {self.id} moved from {current.value} to {new_status.value}")

    @property
    def is_reschedulable(self) -> bool:
        return self.status_enum in RESCHEDULABLE_STATUSES

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "client_id": self.client_id,
            "barber_id": self.barber_id,
            "service_id": self.service_id,
            "branch_id": self.branch_id,
            "booking_date": self.booking_date.isoformat() if self.booking_date else None,
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "starts_at": self.starts_at.isoformat(),
            "ends_at": self.ends_at.isoformat(),
            "status": self.status,
            "origin": self.origin,
            "commission_paid": self.commission_paid,
        }


class BookingSlot(Base):
    """
    One occupied hour of a non-cancelled booking.

    The unique constraint is the authoritative double-booking guard: two
    concurrent writers can both pass the pre-check, but only the first
    commit can claim the (barber, date, hour).
    """

    __tablename__ = "booking_slots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    barber_id = Column(String(26), ForeignKey("barbers.id"), nullable=False)
    slot_date = Column(Date, nullable=False)
    hour = Column(Integer, nullable=False)

    booking = relationship("Booking", back_populates="slots")

    __table_args__ = (
        UniqueConstraint("barber_id", "slot_date", "hour", name="uq_booking_slots_barber_date_hour"),
        CheckConstraint("hour >= 0 AND hour <= 23", name="ck_booking_slots_hour"),
    )

    def __repr__(self) -> str:
        return f"<BookingSlot barber={self.barber_id} {self.slot_date} {format_hour(self.hour)}>"


Index("ix_bookings_barber_date", Booking.barber_id, Booking.booking_date)
