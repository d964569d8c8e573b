# backend/barbershop/services/slot_oracle.py
"""
Slot Availability Oracle.

Answers "which hours does this barber already hold on this date". The
answer backs both the booking wizard's time grid and the conflict checker.

Two read paths:
- ``taken_slots``: UI path. Cached for a short TTL, and never raises: a
  backend failure yields an empty set so the grid keeps rendering. The
  write path re-verifies regardless.
- ``taken_hours(..., use_cache=False)``: authoritative path used at write
  time. Uncached, can exclude a booking (reschedule), and raises
  BackendUnavailableException on failure.
"""

from datetime import date, timedelta
import logging
from typing import TYPE_CHECKING, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import TAKEN_SLOTS_CACHE_PREFIX
from ..core.exceptions import BackendUnavailableException, RepositoryException
from ..core.timezone_utils import Clock, get_business_today
from ..models.booking import format_hour
from ..models.catalog import Branch
from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from .base import BaseService
from .cache_service import CacheKeyBuilder, CacheService
from .operating_hours import OperatingHoursResolver

if TYPE_CHECKING:
    from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)


class SlotAvailabilityOracle(BaseService):
    def __init__(
        self,
        db: Session,
        cache: Optional[CacheService] = None,
        repository: Optional[ConflictCheckerRepository] = None,
        resolver: Optional[OperatingHoursResolver] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, cache)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)
        self.resolver = resolver or OperatingHoursResolver()
        self.clock = clock
        self.cache_ttl = settings.taken_slots_cache_ttl_seconds

    @staticmethod
    def cache_key(slot_date: date, barber_id: str) -> str:
        return CacheKeyBuilder.build(TAKEN_SLOTS_CACHE_PREFIX, barber_id, slot_date)

    @BaseService.measure_operation("taken_slots")
    def taken_slots(self, slot_date: date, barber_id: str) -> Set[str]:
        """
        ``"HH:00"`` labels the barber holds on ``slot_date``.

        Returns an empty set when the backend is unavailable.
        """
        try:
            hours = self.taken_hours(slot_date, barber_id)
        except BackendUnavailableException as e:
            self.logger.warning(
                f"Taken slots unavailable for barber {barber_id} on {slot_date}: {e.message}"
            )
            return set()
        return {format_hour(hour) for hour in hours}

    def taken_hours(
        self,
        slot_date: date,
        barber_id: str,
        exclude_booking_id: Optional[str] = None,
        use_cache: bool = True,
    ) -> Set[int]:
        """
        Hours held by the barber's non-cancelled bookings on ``slot_date``.

        The cache is only consulted for the plain per-(barber, date) question;
        excluding a booking always reads from storage.
        """
        cacheable = use_cache and exclude_booking_id is None and self.cache is not None
        key = self.cache_key(slot_date, barber_id)

        if cacheable:
            assert self.cache is not None
            cached = self.cache.get(key)
            if cached is not None:
                return {int(hour) for hour in cached}

        try:
            hours = self.repository.get_taken_hours(barber_id, slot_date, exclude_booking_id)
        except RepositoryException as e:
            self.logger.error(f"Failed to load taken hours for barber {barber_id} on {slot_date}: {e}")
            raise BackendUnavailableException(
                details={"barber_id": barber_id, "date": slot_date.isoformat()}
            ) from e

        if cacheable:
            assert self.cache is not None
            self.cache.set(key, sorted(hours), ttl=self.cache_ttl)
        return hours

    def invalidate(self, slot_date: date, barber_id: str) -> None:
        """Drop the cached taken set for one (barber, date)."""
        self.invalidate_cache(self.cache_key(slot_date, barber_id))

    @BaseService.measure_operation("available_start_hours")
    def available_start_hours(
        self,
        branch: Branch,
        barber_id: str,
        slot_date: date,
        slot_count: int = 1,
        checker: Optional["ConflictChecker"] = None,
    ) -> List[int]:
        """
        Start hours at which a ``slot_count``-hour booking would be accepted.

        Drives the wizard's time grid, so it reads through the cache and
        degrades to "nothing taken" if storage is unreachable.
        """
        from .conflict_checker import ConflictChecker

        checker = checker or ConflictChecker(
            self.db, oracle=self, resolver=self.resolver, clock=self.clock
        )
        try:
            taken = self.taken_hours(slot_date, barber_id)
        except BackendUnavailableException:
            self.logger.warning(f"Time grid for barber {barber_id} on {slot_date} built without taken slots")
            taken = set()

        return [
            hour
            for hour in self.resolver.bookable_hours(branch)
            if checker.evaluate(branch, slot_date, hour, slot_count, taken).ok
        ]

    def booking_days(self, today: Optional[date] = None) -> List[date]:
        """Calendar days offered by the booking wizard, starting today."""
        start = today or get_business_today(self.clock)
        return [start + timedelta(days=offset) for offset in range(settings.booking_horizon_days)]
