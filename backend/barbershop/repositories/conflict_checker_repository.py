# backend/barbershop/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository

Reads the slot claims that back the conflict checker. Claims exist only for
non-cancelled bookings, so "taken" is simply "has a claim row".
"""

from datetime import date
import logging
from typing import Optional, Set

from sqlalchemy.orm import Session

from ..models.booking import BookingSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[BookingSlot]):
    """Repository for conflict checking data access."""

    def __init__(self, db: Session):
        super().__init__(db, BookingSlot)

    def get_taken_hours(
        self, barber_id: str, slot_date: date, exclude_booking_id: Optional[str] = None
    ) -> Set[int]:
        """
        Hours on ``slot_date`` claimed by the barber's non-cancelled bookings.

        Args:
            barber_id: The barber to check
            slot_date: Business-local date
            exclude_booking_id: Booking whose own claims are ignored (reschedule)
        """
        query = self.db.query(BookingSlot.hour).filter(
            BookingSlot.barber_id == barber_id,
            BookingSlot.slot_date == slot_date,
        )
        if exclude_booking_id:
            query = query.filter(BookingSlot.booking_id != exclude_booking_id)
        return {row.hour for row in self._execute_query(query)}
