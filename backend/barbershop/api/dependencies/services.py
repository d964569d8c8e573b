# backend/barbershop/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Services are built per request around the request's session. The cache is
process-wide, and the clock defaults to the system clock; tests override
``get_clock`` to pin "now".
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.timezone_utils import Clock
from ...services.booking_service import BookingLifecycleService
from ...services.cache_service import CacheService, get_cache_service
from ...services.catalog_service import CatalogService
from ...services.client_directory_service import ClientDirectoryService
from ...services.conflict_checker import ConflictChecker
from ...services.finance_service import FinanceService
from ...services.operating_hours import OperatingHoursResolver
from ...services.slot_oracle import SlotAvailabilityOracle
from .database import get_db

logger = logging.getLogger(__name__)


def get_cache_service_dep() -> CacheService:
    """Get cache service instance for dependency injection."""
    return get_cache_service()


def get_clock() -> Optional[Clock]:
    """None means the system clock."""
    return None


def get_operating_hours_resolver() -> OperatingHoursResolver:
    return OperatingHoursResolver()


def get_catalog_service(
    db: Session = Depends(get_db), cache: CacheService = Depends(get_cache_service_dep)
) -> CatalogService:
    return CatalogService(db, cache=cache)


def get_client_directory_service(db: Session = Depends(get_db)) -> ClientDirectoryService:
    return ClientDirectoryService(db)


def get_slot_oracle(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
    resolver: OperatingHoursResolver = Depends(get_operating_hours_resolver),
    clock: Optional[Clock] = Depends(get_clock),
) -> SlotAvailabilityOracle:
    return SlotAvailabilityOracle(db, cache=cache, resolver=resolver, clock=clock)


def get_conflict_checker(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
    oracle: SlotAvailabilityOracle = Depends(get_slot_oracle),
    clock: Optional[Clock] = Depends(get_clock),
) -> ConflictChecker:
    return ConflictChecker(db, cache=cache, oracle=oracle, resolver=oracle.resolver, clock=clock)


def get_booking_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service_dep),
    catalog: CatalogService = Depends(get_catalog_service),
    checker: ConflictChecker = Depends(get_conflict_checker),
) -> BookingLifecycleService:
    """
    Get booking lifecycle service instance with all dependencies.

    Args:
        db: Database session
        cache: Cache service for slot invalidation
        catalog: Catalog lookups for barber/branch/service validation
        checker: Conflict checker sharing the request's clock

    Returns:
        BookingLifecycleService instance
    """
    return BookingLifecycleService(db, cache=cache, catalog=catalog, checker=checker)


def get_finance_service(
    db: Session = Depends(get_db),
    booking_service: BookingLifecycleService = Depends(get_booking_service),
) -> FinanceService:
    return FinanceService(db, lifecycle=booking_service)
