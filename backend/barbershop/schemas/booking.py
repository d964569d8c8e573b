"""
Booking schemas.

Placements travel as absolute, timezone-aware timestamps (``starts_at``);
naive datetimes are rejected. The service layer stores them as a business
date plus an hour range.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import AwareDatetime, Field, field_validator, model_validator

from ..core.enums import BookingOrigin
from ..models.booking import Booking, BookingStatus
from ._strict_base import StrictRequestModel
from .base import StandardizedModel, ensure_top_of_hour
from .client import ClientResponse


class BookingCreate(StrictRequestModel):
    """
    New booking from the wizard or the staff console.

    The client is given either by id or by phone; a phone that is not in the
    directory yet needs ``client_name`` so the client can be created.
    """

    barber_id: str
    branch_id: str
    service_id: str
    extra_service_ids: List[str] = Field(default_factory=list, max_length=6)
    starts_at: AwareDatetime = Field(..., description="Start of the first slot, with offset")
    origin: BookingOrigin = BookingOrigin.GUEST
    status: Optional[BookingStatus] = Field(None, description="Initial status override")

    client_id: Optional[str] = None
    client_phone: Optional[str] = Field(None, max_length=32)
    client_name: Optional[str] = Field(None, max_length=120)

    @field_validator("starts_at")
    @classmethod
    def _top_of_hour(cls, value: AwareDatetime) -> AwareDatetime:
        return ensure_top_of_hour(value)

    @model_validator(mode="after")
    def _client_reference(self) -> "BookingCreate":
        if not self.client_id and not self.client_phone:
            raise ValueError("Either client_id or client_phone is required")
        return self


class BookingReschedule(StrictRequestModel):
    starts_at: AwareDatetime
    barber_id: Optional[str] = None
    branch_id: Optional[str] = None
    service_id: Optional[str] = None
    extra_service_ids: Optional[List[str]] = Field(None, max_length=6)
    status: Optional[BookingStatus] = None

    @field_validator("starts_at")
    @classmethod
    def _top_of_hour(cls, value: AwareDatetime) -> AwareDatetime:
        return ensure_top_of_hour(value)


class BookingStatusUpdate(StrictRequestModel):
    status: BookingStatus


class CommissionPaidRequest(StrictRequestModel):
    booking_ids: List[str] = Field(..., min_length=1)
    paid: bool = True


class CommissionPaidResponse(StandardizedModel):
    updated: int


class BookingResponse(StandardizedModel):
    id: str
    client: ClientResponse
    barber_id: str
    barber_name: str
    branch_id: str
    branch_name: str
    service_id: str
    service_name: str
    price: int
    booking_date: date
    start_hour: int
    end_hour: int
    slot_count: int
    hours: List[str]
    starts_at: datetime
    ends_at: datetime
    status: BookingStatus
    origin: BookingOrigin
    commission_paid: bool

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            client=ClientResponse.model_validate(booking.client),
            barber_id=booking.barber_id,
            barber_name=booking.barber.name,
            branch_id=booking.branch_id,
            branch_name=booking.branch.name,
            service_id=booking.service_id,
            service_name=booking.service.name,
            price=booking.service.price,
            booking_date=booking.booking_date,
            start_hour=booking.start_hour,
            end_hour=booking.end_hour,
            slot_count=booking.slot_count,
            hours=booking.hour_labels,
            starts_at=booking.starts_at,
            ends_at=booking.ends_at,
            status=BookingStatus(booking.status),
            origin=BookingOrigin(booking.origin),
            commission_paid=bool(booking.commission_paid),
        )
