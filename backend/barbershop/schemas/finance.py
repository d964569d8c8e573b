"""Finance ledger schemas."""

from typing import List

from .base import StandardizedModel


class BarberEarningsResponse(StandardizedModel):
    barber_id: str
    barber_name: str
    bookings: int
    revenue: int
    commission: float


class MonthlySummaryResponse(StandardizedModel):
    year: int
    month: int
    bookings: int
    revenue: int
    commission: float
    unpaid_commission: float
    average_ticket: float
    commission_rate: float
    by_barber: List[BarberEarningsResponse]
