# backend/tests/unit/services/test_operating_hours.py
"""
Unit tests for OperatingHoursResolver.

Branches are plain SQLAlchemy objects (not persisted): the resolver only
reads their hour window and operating mode.
"""

from datetime import datetime

import pytest
import pytz

from barbershop.core.enums import OperatingMode
from barbershop.models.catalog import Branch
from barbershop.services.operating_hours import OpenStatus, OperatingHoursResolver


def make_branch(opening: int = 9, closing: int = 21, mode: OperatingMode = OperatingMode.AUTO) -> Branch:
    return Branch(
        id="branch-1",
        name="Centro",
        opening_hour=opening,
        closing_hour=closing,
        operating_mode=mode.value,
    )


@pytest.fixture
def resolver() -> OperatingHoursResolver:
    return OperatingHoursResolver(bookable_start_hour=9, bookable_end_hour=21)


class TestIsOpen:
    """Open/closed labels for the branch picker."""

    def test_auto_open_inside_window(self, resolver):
        status = resolver.is_open(make_branch(), datetime(2024, 6, 10, 9, 0))

        assert status == OpenStatus(True, "Open until 21:00")

    def test_auto_closed_at_closing_hour(self, resolver):
        status = resolver.is_open(make_branch(), datetime(2024, 6, 10, 21, 0))

        assert status.open is False
        assert status.label == "Closed (opens 09:00)"

    def test_auto_closed_before_opening(self, resolver):
        assert resolver.is_open(make_branch(), datetime(2024, 6, 10, 8, 59)).open is False

    def test_forced_open_ignores_clock(self, resolver):
        branch = make_branch(mode=OperatingMode.FORCED_OPEN)

        status = resolver.is_open(branch, datetime(2024, 6, 10, 3, 0))

        assert status == OpenStatus(True, "Open")

    def test_forced_closed_ignores_clock(self, resolver):
        branch = make_branch(mode=OperatingMode.FORCED_CLOSED)

        status = resolver.is_open(branch, datetime(2024, 6, 10, 12, 0))

        assert status == OpenStatus(False, "Temporarily closed")

    def test_aware_instant_is_converted_to_business_time(self, resolver):
        # 13:30 UTC is 09:30 in La Paz (UTC-4)
        instant = pytz.utc.localize(datetime(2024, 6, 10, 13, 30))

        assert resolver.is_open(make_branch(), instant).open is True

    def test_aware_instant_outside_window(self, resolver):
        # 12:00 UTC is 08:00 in La Paz
        instant = pytz.utc.localize(datetime(2024, 6, 10, 12, 0))

        assert resolver.is_open(make_branch(), instant).open is False


class TestBookableHours:
    """Hour-of-day window used by the conflict checker."""

    def test_default_window(self, resolver):
        assert resolver.bookable_hours(make_branch()) == list(range(9, 21))

    def test_branch_window_narrower_than_configured(self, resolver):
        branch = make_branch(opening=10, closing=18)

        assert resolver.bookable_hours(branch) == list(range(10, 18))
        assert resolver.is_hour_bookable(branch, 9) is False
        assert resolver.is_hour_bookable(branch, 17) is True
        assert resolver.is_hour_bookable(branch, 18) is False

    def test_branch_window_wider_than_configured_is_clipped(self, resolver):
        branch = make_branch(opening=7, closing=23)

        assert resolver.bookable_window(branch) == (9, 21)
        assert resolver.is_hour_bookable(branch, 8) is False
        assert resolver.is_hour_bookable(branch, 21) is False

    def test_forced_open_does_not_widen_window(self, resolver):
        branch = make_branch(mode=OperatingMode.FORCED_OPEN)

        assert resolver.is_open_at_hour(branch, 23) is True
        assert resolver.is_hour_bookable(branch, 23) is False
        assert resolver.bookable_hours(branch) == list(range(9, 21))

    def test_forced_closed_has_no_bookable_hours(self, resolver):
        branch = make_branch(mode=OperatingMode.FORCED_CLOSED)

        assert resolver.bookable_window(branch) is None
        assert resolver.bookable_hours(branch) == []
        assert resolver.is_hour_bookable(branch, 12) is False

    def test_disjoint_windows_have_no_bookable_hours(self):
        resolver = OperatingHoursResolver(bookable_start_hour=9, bookable_end_hour=12)
        branch = make_branch(opening=14, closing=20)

        assert resolver.bookable_window(branch) is None

    def test_defaults_come_from_settings(self):
        from barbershop.core.config import settings

        resolver = OperatingHoursResolver()

        assert resolver.bookable_start_hour == settings.bookable_start_hour
        assert resolver.bookable_end_hour == settings.bookable_end_hour
