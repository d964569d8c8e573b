# backend/barbershop/repositories/booking_repository.py
"""
Booking Repository

Data access for bookings: filtered listings for the admin calendar and the
finance ledger, and bulk flag updates. Status and range changes go through
the lifecycle service, which mutates loaded entities.
"""

from datetime import date
import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Booking.client),
            joinedload(Booking.barber),
            joinedload(Booking.service),
            joinedload(Booking.branch),
            selectinload(Booking.slots),
        )

    def add_booking(self, booking: Booking) -> Booking:
        """Stage a booking and its slot claims; the flush surfaces claim collisions."""
        self.db.add(booking)
        self.flush()
        return booking

    def list_bookings(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        barber_id: Optional[str] = None,
        branch_id: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
        client_id: Optional[str] = None,
    ) -> List[Booking]:
        """Bookings matching the filters, newest first. Date bounds are inclusive."""
        query = self._apply_eager_loading(self.db.query(Booking))
        if start_date is not None:
            query = query.filter(Booking.booking_date >= start_date)
        if end_date is not None:
            query = query.filter(Booking.booking_date <= end_date)
        if barber_id:
            query = query.filter(Booking.barber_id == barber_id)
        if branch_id:
            query = query.filter(Booking.branch_id == branch_id)
        if client_id:
            query = query.filter(Booking.client_id == client_id)
        if statuses is not None:
            query = query.filter(Booking.status.in_([str(s) for s in statuses]))
        query = query.order_by(Booking.booking_date.desc(), Booking.start_hour.desc())
        return self._execute_query(query)

    def mark_commission_paid(self, booking_ids: Sequence[str], paid: bool = True) -> int:
        """Set the commission flag on the given bookings; returns rows updated."""
        if not booking_ids:
            return 0
        try:
            updated = (
                self.db.query(Booking)
                .filter(Booking.id.in_(list(booking_ids)))
                .update({Booking.commission_paid: paid}, synchronize_session="fetch")
            )
            self.db.flush()
            return int(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking commission paid: {str(e)}")
            raise RepositoryException(f"Failed to update commission flag: {str(e)}")
