# backend/barbershop/services/conflict_checker.py
"""
Conflict Checker Service for the barbershop booking engine.

Decides whether a (barber, branch, date, start hour, slot count) request
may be booked. Checks run in a fixed order and the first failure wins:

1. past: the start is at or before now (business timezone)
2. outside-hours: the branch is forced closed, or is not open for some
   hour of the span
3. per hour of the span: outside-hours if the hour is not bookable for
   the branch, taken if the barber already holds it
4. otherwise accept

A multi-hour request is accepted or rejected as a whole. The decision is
an optimistic pre-check; the slot-claim unique constraint is what finally
guarantees exclusivity at commit time.
"""

from dataclasses import dataclass
from datetime import date, datetime
import logging
import re
from typing import Any, Dict, Optional, Set

from sqlalchemy.orm import Session

from ..core.enums import OperatingMode, RejectionReason
from ..core.exceptions import REJECTIONS_BY_REASON, ValidationException
from ..core.timezone_utils import Clock, get_business_now, slot_start
from ..models.booking import format_hour
from ..models.catalog import Branch
from .base import BaseService
from .cache_service import CacheService
from .operating_hours import OperatingHoursResolver
from .slot_oracle import SlotAvailabilityOracle

logger = logging.getLogger(__name__)

HOUR_LABEL_PATTERN = re.compile(r"^(\d{2}):00$")


def parse_hour_label(label: str) -> int:
    """
    Parse an ``"HH:00"`` label into an hour.

    Raises:
        ValidationException: for anything that is not a top-of-hour label
    """
    match = HOUR_LABEL_PATTERN.match(label.strip()) if isinstance(label, str) else None
    if not match or int(match.group(1)) > 23:
        raise ValidationException(
            f"Invalid hour format: {label!r}. Expected HH:00", code="INVALID_HOUR_FORMAT"
        )
    return int(match.group(1))


@dataclass(frozen=True)
class SlotDecision:
    """Outcome of a booking check. ``hour`` is the first offending hour, if any."""

    ok: bool
    reason: Optional[RejectionReason] = None
    hour: Optional[int] = None

    @classmethod
    def accept(cls) -> "SlotDecision":
        return cls(ok=True)

    @classmethod
    def reject(cls, reason: RejectionReason, hour: Optional[int] = None) -> "SlotDecision":
        return cls(ok=False, reason=reason, hour=hour)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "reason": self.reason.value if self.reason else None,
            "hour": format_hour(self.hour) if self.hour is not None else None,
        }


class ConflictChecker(BaseService):
    """
    Booking decision logic.

    ``evaluate`` is pure: it takes the taken-hour set as input. ``can_book``
    loads that set through the oracle, uncached by default, which is what
    the write path needs.
    """

    def __init__(
        self,
        db: Session,
        cache: Optional[CacheService] = None,
        oracle: Optional[SlotAvailabilityOracle] = None,
        resolver: Optional[OperatingHoursResolver] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, cache)
        self.logger = logging.getLogger(__name__)
        self.resolver = resolver or OperatingHoursResolver()
        self.clock = clock
        self.oracle = oracle or SlotAvailabilityOracle(
            db, cache=cache, resolver=self.resolver, clock=clock
        )

    @staticmethod
    def validate_request(start_hour: int, slot_count: int) -> None:
        if not isinstance(start_hour, int) or not 0 <= start_hour <= 23:
            raise ValidationException(
                f"start_hour must be between 0 and 23, got {start_hour!r}", code="INVALID_HOUR"
            )
        if not isinstance(slot_count, int) or slot_count < 1:
            raise ValidationException(
                f"slot_count must be at least 1, got {slot_count!r}", code="INVALID_SLOT_COUNT"
            )

    def _now(self) -> datetime:
        return get_business_now(self.clock)

    def _check_time_and_hours(
        self,
        branch: Branch,
        slot_date: date,
        start_hour: int,
        slot_count: int,
        now: datetime,
    ) -> Optional[SlotDecision]:
        if slot_start(slot_date, start_hour) <= now:
            return SlotDecision.reject(RejectionReason.PAST, start_hour)

        if branch.operating_mode == OperatingMode.FORCED_CLOSED.value:
            return SlotDecision.reject(RejectionReason.OUTSIDE_HOURS, start_hour)

        for hour in range(start_hour, start_hour + slot_count):
            if not self.resolver.is_open_at_hour(branch, hour):
                return SlotDecision.reject(RejectionReason.OUTSIDE_HOURS, hour)
        return None

    def evaluate(
        self,
        branch: Branch,
        slot_date: date,
        start_hour: int,
        slot_count: int,
        taken_hours: Set[int],
        now: Optional[datetime] = None,
    ) -> SlotDecision:
        """Run every check against an already loaded taken-hour set."""
        self.validate_request(start_hour, slot_count)
        now = now or self._now()

        early = self._check_time_and_hours(branch, slot_date, start_hour, slot_count, now)
        if early is not None:
            return early

        for hour in range(start_hour, start_hour + slot_count):
            if not self.resolver.is_hour_bookable(branch, hour):
                return SlotDecision.reject(RejectionReason.OUTSIDE_HOURS, hour)
            if hour in taken_hours:
                return SlotDecision.reject(RejectionReason.TAKEN, hour)

        return SlotDecision.accept()

    @BaseService.measure_operation("can_book")
    def can_book(
        self,
        barber_id: str,
        branch: Branch,
        slot_date: date,
        start_hour: int,
        slot_count: int = 1,
        exclude_booking_id: Optional[str] = None,
        use_cache: bool = False,
    ) -> SlotDecision:
        """
        Decide whether the span ``[start_hour, start_hour + slot_count)`` is bookable.

        Args:
            barber_id: Barber to book (trusted; active/branch filtering is the caller's job)
            branch: Branch the booking is for
            slot_date: Business-local date
            start_hour: First hour of the span
            slot_count: Number of consecutive one-hour slots
            exclude_booking_id: Booking whose own slots don't count as taken
            use_cache: Read the taken set through the cache (UI pre-checks only)

        Raises:
            ValidationException: malformed hour or slot count
            BackendUnavailableException: taken set could not be loaded
        """
        self.validate_request(start_hour, slot_count)
        now = self._now()

        early = self._check_time_and_hours(branch, slot_date, start_hour, slot_count, now)
        if early is not None:
            decision = early
        else:
            taken = self.oracle.taken_hours(
                slot_date, barber_id, exclude_booking_id=exclude_booking_id, use_cache=use_cache
            )
            decision = self.evaluate(branch, slot_date, start_hour, slot_count, taken, now=now)

        if not decision.ok:
            self.logger.info(
                f"Rejected booking for barber {barber_id} on {slot_date} "
                f"{format_hour(start_hour)} x{slot_count}: {decision.reason.value if decision.reason else ''}",
                extra={"barber_id": barber_id, "reason": decision.reason, "hour": decision.hour},
            )
        return decision

    def ensure_can_book(
        self,
        barber_id: str,
        branch: Branch,
        slot_date: date,
        start_hour: int,
        slot_count: int = 1,
        exclude_booking_id: Optional[str] = None,
        use_cache: bool = False,
    ) -> None:
        """Like ``can_book`` but raises the matching BookingRejectedException on rejection."""
        decision = self.can_book(
            barber_id,
            branch,
            slot_date,
            start_hour,
            slot_count,
            exclude_booking_id=exclude_booking_id,
            use_cache=use_cache,
        )
        if decision.ok:
            return

        assert decision.reason is not None
        exception_class = REJECTIONS_BY_REASON[decision.reason.value]
        raise exception_class(
            details={
                "barber_id": barber_id,
                "branch_id": branch.id,
                "date": slot_date.isoformat(),
                "hour": format_hour(decision.hour) if decision.hour is not None else None,
            }
        )
