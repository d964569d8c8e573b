"""Availability schemas: taken slots, pre-checks and the wizard's time grid."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import AwareDatetime, Field, field_validator

from ..core.enums import RejectionReason
from ._strict_base import StrictRequestModel
from .base import StandardizedModel, ensure_top_of_hour


class TakenSlotsResponse(StandardizedModel):
    barber_id: str
    day: date
    taken: List[str]


class CanBookRequest(StrictRequestModel):
    barber_id: str
    branch_id: str
    starts_at: AwareDatetime
    slot_count: int = Field(1, ge=1, le=24)
    exclude_booking_id: Optional[str] = None

    @field_validator("starts_at")
    @classmethod
    def _top_of_hour(cls, value: AwareDatetime) -> AwareDatetime:
        return ensure_top_of_hour(value)


class CanBookResponse(StandardizedModel):
    ok: bool
    reason: Optional[RejectionReason] = None
    hour: Optional[str] = None


class AvailableStartsResponse(StandardizedModel):
    barber_id: str
    branch_id: str
    day: date
    slot_count: int
    hours: List[str]
    starts_at: List[datetime]


class BookingDaysResponse(StandardizedModel):
    days: List[date]
