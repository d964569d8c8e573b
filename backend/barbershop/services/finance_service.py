# backend/barbershop/services/finance_service.py
"""
Finance ledger over bookings: monthly revenue and platform commission.

Only confirmed and completed bookings count towards revenue. Commission is
``price * commission_rate`` per booking and is tracked as paid or unpaid
through the booking's commission flag.
"""

import calendar
from dataclasses import asdict, dataclass, field
from datetime import date
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ValidationException
from ..models.booking import Booking, BookingStatus
from .base import BaseService
from .booking_service import BookingLifecycleService

logger = logging.getLogger(__name__)

REVENUE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)


@dataclass
class BarberEarnings:
    barber_id: str
    barber_name: str
    bookings: int = 0
    revenue: int = 0
    commission: float = 0.0


@dataclass
class MonthlySummary:
    year: int
    month: int
    bookings: int
    revenue: int
    commission: float
    unpaid_commission: float
    average_ticket: float
    commission_rate: float
    by_barber: List[BarberEarnings] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class FinanceService(BaseService):
    def __init__(
        self,
        db: Session,
        lifecycle: Optional[BookingLifecycleService] = None,
        commission_rate: Optional[float] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.lifecycle = lifecycle or BookingLifecycleService(db)
        self.commission_rate = settings.commission_rate if commission_rate is None else commission_rate

    def commission_for(self, booking: Booking) -> float:
        return round(booking.service.price * self.commission_rate, 2)

    @BaseService.measure_operation("monthly_summary")
    def monthly_summary(self, year: int, month: int, branch_id: Optional[str] = None) -> MonthlySummary:
        if not 1 <= month <= 12:
            raise ValidationException(f"Invalid month: {month}", code="INVALID_MONTH")

        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        bookings = self.lifecycle.list_bookings(
            start_date=first, end_date=last, branch_id=branch_id, status=REVENUE_STATUSES
        )

        revenue = 0
        commission = 0.0
        unpaid = 0.0
        per_barber: Dict[str, BarberEarnings] = {}
        for booking in bookings:
            price = booking.service.price
            fee = self.commission_for(booking)
            revenue += price
            commission += fee
            if not booking.commission_paid:
                unpaid += fee

            earnings = per_barber.setdefault(
                booking.barber_id, BarberEarnings(booking.barber_id, booking.barber.name)
            )
            earnings.bookings += 1
            earnings.revenue += price
            earnings.commission = round(earnings.commission + fee, 2)

        count = len(bookings)
        return MonthlySummary(
            year=year,
            month=month,
            bookings=count,
            revenue=revenue,
            commission=round(commission, 2),
            unpaid_commission=round(unpaid, 2),
            average_ticket=round(revenue / count, 2) if count else 0.0,
            commission_rate=self.commission_rate,
            by_barber=sorted(per_barber.values(), key=lambda e: e.revenue, reverse=True),
        )

    def mark_commission_paid(self, booking_ids: Sequence[str], paid: bool = True) -> int:
        return self.lifecycle.mark_commission_paid(booking_ids, paid=paid)
