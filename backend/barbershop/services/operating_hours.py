# backend/barbershop/services/operating_hours.py
"""
Branch operating-hours resolution.

Combines a branch's manual override (operating mode) with its configured
daily window. Used by the branch picker to label branches and by the
conflict checker to bound bookable hours.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional, Tuple

from ..core.config import settings
from ..core.enums import OperatingMode
from ..core.timezone_utils import to_business_time
from ..models.booking import format_hour
from ..models.catalog import Branch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenStatus:
    open: bool
    label: str


class OperatingHoursResolver:
    """
    Stateless resolver over Branch rows.

    The bookable window for an hour-of-day is the intersection of the
    branch's own ``[opening_hour, closing_hour)`` and the deployment-wide
    ``[bookable_start_hour, bookable_end_hour)``. A forced-open branch is
    open right now regardless of the clock, but that never widens the
    window in which bookings can be placed.
    """

    def __init__(
        self,
        bookable_start_hour: Optional[int] = None,
        bookable_end_hour: Optional[int] = None,
    ):
        self.bookable_start_hour = (
            settings.bookable_start_hour if bookable_start_hour is None else bookable_start_hour
        )
        self.bookable_end_hour = (
            settings.bookable_end_hour if bookable_end_hour is None else bookable_end_hour
        )

    @staticmethod
    def _mode(branch: Branch) -> OperatingMode:
        return OperatingMode(branch.operating_mode)

    def is_open(self, branch: Branch, instant: datetime) -> OpenStatus:
        """
        Whether ``branch`` is open at ``instant``.

        Naive instants are read as business-local wall-clock time.
        """
        mode = self._mode(branch)
        if mode is OperatingMode.FORCED_OPEN:
            return OpenStatus(True, "Open")
        if mode is OperatingMode.FORCED_CLOSED:
            return OpenStatus(False, "Temporarily closed")

        hour = to_business_time(instant).hour
        if self.is_open_at_hour(branch, hour):
            return OpenStatus(True, f"Open until {format_hour(branch.closing_hour)}")
        return OpenStatus(False, f"Closed (opens {format_hour(branch.opening_hour)})")

    def is_open_at_hour(self, branch: Branch, hour: int) -> bool:
        """Open/closed for an hour-of-day, ignoring the deployment-wide window."""
        mode = self._mode(branch)
        if mode is OperatingMode.FORCED_OPEN:
            return True
        if mode is OperatingMode.FORCED_CLOSED:
            return False
        return branch.opening_hour <= hour < branch.closing_hour

    def bookable_window(self, branch: Branch) -> Optional[Tuple[int, int]]:
        """Half-open ``(start, end)`` hour window for new bookings, or None if there is none."""
        if self._mode(branch) is OperatingMode.FORCED_CLOSED:
            return None
        start = max(branch.opening_hour, self.bookable_start_hour)
        end = min(branch.closing_hour, self.bookable_end_hour)
        if end <= start:
            return None
        return start, end

    def is_hour_bookable(self, branch: Branch, hour: int) -> bool:
        window = self.bookable_window(branch)
        if window is None:
            return False
        return window[0] <= hour < window[1]

    def bookable_hours(self, branch: Branch) -> List[int]:
        """Every hour a one-slot booking could start at, in order."""
        window = self.bookable_window(branch)
        if window is None:
            return []
        return list(range(window[0], window[1]))
