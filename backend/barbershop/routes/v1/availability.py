# backend/barbershop/routes/v1/availability.py
"""
Availability routes - API v1

Read-side of the slot engine for the booking wizard and the admin
calendar. Nothing here writes; the booking routes re-check authoritatively.

Endpoints:
    GET /taken - Taken "HH:00" labels for a barber on a date
    POST /can-book - Pre-check a placement, returns the rejection reason
    GET /check - Same pre-check, addressed by date and "HH:00" label
    GET /starts - Start hours where a span of N slots fits
    GET /days - Calendar days the wizard offers
"""

from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_catalog_service, get_conflict_checker, get_slot_oracle
from ...core.exceptions import BackendUnavailableException, DomainException
from ...core.timezone_utils import slot_start, split_instant
from ...models.booking import format_hour
from ...schemas.availability import (
    AvailableStartsResponse,
    BookingDaysResponse,
    CanBookRequest,
    CanBookResponse,
    TakenSlotsResponse,
)
from ...services.catalog_service import CatalogService
from ...services.conflict_checker import ConflictChecker, parse_hour_label
from ...services.slot_oracle import SlotAvailabilityOracle
from .common import handle_domain_exception, run_in_backend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


@router.get("/taken", response_model=TakenSlotsResponse)
async def get_taken_slots(
    barber_id: str = Query(...),
    day: date = Query(..., alias="date"),
    oracle: SlotAvailabilityOracle = Depends(get_slot_oracle),
) -> TakenSlotsResponse:
    # Never fails on backend trouble: an empty set keeps the grid usable
    try:
        taken = await run_in_backend(oracle.taken_slots, day, barber_id)
    except BackendUnavailableException as e:
        logger.warning(f"Taken slots for barber {barber_id} on {day} timed out: {e.message}")
        taken = set()
    return TakenSlotsResponse(barber_id=barber_id, day=day, taken=sorted(taken))


@router.post("/can-book", response_model=CanBookResponse)
async def can_book(
    payload: CanBookRequest,
    catalog: CatalogService = Depends(get_catalog_service),
    checker: ConflictChecker = Depends(get_conflict_checker),
) -> CanBookResponse:
    slot_date, hour = split_instant(payload.starts_at)

    def _check() -> CanBookResponse:
        branch = catalog.get_branch(payload.branch_id)
        decision = checker.can_book(
            payload.barber_id,
            branch,
            slot_date,
            hour,
            payload.slot_count,
            exclude_booking_id=payload.exclude_booking_id,
            use_cache=True,
        )
        return CanBookResponse.model_validate(decision.to_dict())

    try:
        return await run_in_backend(_check)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/check", response_model=CanBookResponse)
async def check_hour(
    barber_id: str = Query(...),
    branch_id: str = Query(...),
    day: date = Query(..., alias="date"),
    hour: str = Query(..., description='Start hour as "HH:00"'),
    slot_count: int = Query(1, ge=1, le=24),
    catalog: CatalogService = Depends(get_catalog_service),
    checker: ConflictChecker = Depends(get_conflict_checker),
) -> CanBookResponse:
    """Pre-check by date and ``"HH:00"`` label, the form the wizard's time grid uses."""

    def _check() -> CanBookResponse:
        start_hour = parse_hour_label(hour)
        branch = catalog.get_branch(branch_id)
        decision = checker.can_book(barber_id, branch, day, start_hour, slot_count, use_cache=True)
        return CanBookResponse.model_validate(decision.to_dict())

    try:
        return await run_in_backend(_check)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/starts", response_model=AvailableStartsResponse)
async def get_available_starts(
    barber_id: str = Query(...),
    branch_id: str = Query(...),
    day: date = Query(..., alias="date"),
    slot_count: Optional[int] = Query(None, ge=1, le=24),
    service_ids: Optional[List[str]] = Query(None),
    catalog: CatalogService = Depends(get_catalog_service),
    oracle: SlotAvailabilityOracle = Depends(get_slot_oracle),
) -> AvailableStartsResponse:
    """Either ``slot_count`` or the selected ``service_ids`` size the span (default one slot)."""

    def _starts() -> AvailableStartsResponse:
        branch = catalog.get_branch(branch_id)
        count = slot_count
        if count is None:
            services = catalog.get_services_by_ids(service_ids) if service_ids else []
            count = sum(s.slot_count for s in services) or 1
        hours = oracle.available_start_hours(branch, barber_id, day, count)
        return AvailableStartsResponse(
            barber_id=barber_id,
            branch_id=branch_id,
            day=day,
            slot_count=count,
            hours=[format_hour(h) for h in hours],
            starts_at=[slot_start(day, h) for h in hours],
        )

    try:
        return await run_in_backend(_starts)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/days", response_model=BookingDaysResponse)
async def get_booking_days(oracle: SlotAvailabilityOracle = Depends(get_slot_oracle)) -> BookingDaysResponse:
    return BookingDaysResponse(days=oracle.booking_days())
