"""
Base schemas shared by the API responses.
"""

from pydantic import AwareDatetime, BaseModel, ConfigDict

from ..core.timezone_utils import to_business_time


class StandardizedModel(BaseModel):
    """Response base: reads ORM attributes, emits enum values."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True, populate_by_name=True)


def ensure_top_of_hour(value: AwareDatetime) -> AwareDatetime:
    """
    Slots are whole hours of business-local time.

    Raises:
        ValueError: the instant is not on the hour in the business timezone
    """
    local = to_business_time(value)
    if local.minute or local.second or local.microsecond:
        raise ValueError("Timestamps must fall on the top of an hour")
    return value
