# backend/barbershop/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingLifecycleService.

Endpoints:
    POST / - Create a booking (client by id, or by phone with create-on-miss)
    GET / - List bookings with filters, newest first
    POST /commission-paid - Flag bookings' commission as paid
    GET /{booking_id} - One booking
    PATCH /{booking_id}/status - Move along the state machine
    POST /{booking_id}/reschedule - Move to a new placement
    DELETE /{booking_id} - Hard delete
"""

from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...api.dependencies import get_booking_service
from ...core.exceptions import DomainException
from ...core.timezone_utils import split_instant
from ...models.booking import BookingStatus
from ...schemas.booking import (
    BookingCreate,
    BookingReschedule,
    BookingResponse,
    BookingStatusUpdate,
    CommissionPaidRequest,
    CommissionPaidResponse,
)
from ...services.booking_service import BookingDraft, BookingLifecycleService, RescheduleRequest
from .common import handle_domain_exception, run_in_backend

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


# Static routes (no path parameters)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    booking_service: BookingLifecycleService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Create a booking.

    Rejections come back with ``detail.code`` PAST, OUTSIDE_HOURS or TAKEN
    so the caller can re-present the right choice.
    """
    booking_date, start_hour = split_instant(payload.starts_at)

    def _create() -> BookingResponse:
        booking = booking_service.create_booking(
            BookingDraft(
                client_id=payload.client_id,
                barber_id=payload.barber_id,
                branch_id=payload.branch_id,
                service_id=payload.service_id,
                extra_service_ids=tuple(payload.extra_service_ids),
                booking_date=booking_date,
                start_hour=start_hour,
                origin=payload.origin,
                status=payload.status,
                client_phone=payload.client_phone,
                client_name=payload.client_name,
            )
        )
        return BookingResponse.from_booking(booking_service.get_booking(booking.id))

    try:
        return await run_in_backend(_create)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    barber_id: Optional[str] = Query(None),
    branch_id: Optional[str] = Query(None),
    client_id: Optional[str] = Query(None),
    status_filter: Optional[List[BookingStatus]] = Query(None, alias="status"),
    booking_service: BookingLifecycleService = Depends(get_booking_service),
) -> List[BookingResponse]:
    def _list() -> List[BookingResponse]:
        bookings = booking_service.list_bookings(
            start_date=start_date,
            end_date=end_date,
            barber_id=barber_id,
            branch_id=branch_id,
            status=status_filter,
            client_id=client_id,
        )
        return [BookingResponse.from_booking(b) for b in bookings]

    try:
        return await run_in_backend(_list)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/commission-paid", response_model=CommissionPaidResponse)
async def mark_commission_paid(
    payload: CommissionPaidRequest,
    booking_service: BookingLifecycleService = Depends(get_booking_service),
) -> CommissionPaidResponse:
    try:
        updated = await run_in_backend(
            booking_service.mark_commission_paid, payload.booking_ids, paid=payload.paid
        )
    except DomainException as e:
        handle_domain_exception(e)
    return CommissionPaidResponse(updated=updated)


# Dynamic routes (with path parameters)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    booking_service: BookingLifecycleService = Depends(get_booking_service),
) -> BookingResponse:
    def _get() -> BookingResponse:
        return BookingResponse.from_booking(booking_service.get_booking(booking_id))

    try:
        return await run_in_backend(_get)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    booking_service: BookingLifecycleService = Depends(get_booking_service),
) -> BookingResponse:
    def _update() -> BookingResponse:
        booking = booking_service.set_status(booking_id, payload.status)
        return BookingResponse.from_booking(booking)

    try:
        return await run_in_backend(_update)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str,
    payload: BookingReschedule,
    booking_service: BookingLifecycleService = Depends(get_booking_service),
) -> BookingResponse:
    booking_date, start_hour = split_instant(payload.starts_at)

    def _reschedule() -> BookingResponse:
        booking = booking_service.reschedule(
            booking_id,
            RescheduleRequest(
                booking_date=booking_date,
                start_hour=start_hour,
                barber_id=payload.barber_id,
                branch_id=payload.branch_id,
                service_id=payload.service_id,
                extra_service_ids=payload.extra_service_ids,
                status=payload.status,
            ),
        )
        return BookingResponse.from_booking(booking_service.get_booking(booking.id))

    try:
        return await run_in_backend(_reschedule)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: str,
    booking_service: BookingLifecycleService = Depends(get_booking_service),
) -> Response:
    try:
        await run_in_backend(booking_service.delete_booking, booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
