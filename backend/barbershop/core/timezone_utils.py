"""
Timezone utilities for the barbershop booking engine.

All shops of a deployment share one business timezone. Bookings store a
local calendar date plus an hour; these helpers convert between that
representation and absolute, timezone-aware instants.
"""

from datetime import date, datetime, timedelta
from typing import Callable, Optional

import pytz

from .config import settings

Clock = Callable[[], datetime]


def get_business_timezone() -> pytz.BaseTzInfo:
    """Get the configured business timezone as a pytz timezone object."""
    return pytz.timezone(settings.business_timezone)


def utc_now() -> datetime:
    """Current instant, timezone-aware (UTC)."""
    return datetime.now(pytz.utc)


def to_business_time(instant: datetime) -> datetime:
    """
    Express an instant in the business timezone.

    Naive datetimes are taken to already be business-local wall-clock time.
    """
    tz = get_business_timezone()
    if instant.tzinfo is None:
        return tz.localize(instant)
    return instant.astimezone(tz)


def get_business_now(clock: Optional[Clock] = None) -> datetime:
    """Current datetime in the business timezone."""
    return to_business_time((clock or utc_now)())


def get_business_today(clock: Optional[Clock] = None) -> date:
    """'Today' in the business timezone."""
    return get_business_now(clock).date()


def slot_start(slot_date: date, hour: int) -> datetime:
    """Timezone-aware start of the hour slot on a business-local date."""
    tz = get_business_timezone()
    base = datetime(slot_date.year, slot_date.month, slot_date.day)
    return tz.normalize(tz.localize(base) + timedelta(hours=hour))


def split_instant(instant: datetime) -> tuple[date, int]:
    """
    Break an absolute instant into the (business date, hour) pair used for storage.

    Minutes and seconds are dropped: bookings have hour precision.
    """
    local = to_business_time(instant)
    return local.date(), local.hour
