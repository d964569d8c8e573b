"""Catalog schemas: branches, barbers and services."""

from typing import Optional

from pydantic import Field, model_validator

from ..core.enums import OperatingMode
from ._strict_base import StrictRequestModel
from .base import StandardizedModel


class BranchResponse(StandardizedModel):
    id: str
    name: str
    address: str = ""
    map_url: str = ""
    opening_hour: int
    closing_hour: int
    operating_mode: OperatingMode


class BranchStatusResponse(BranchResponse):
    """Branch with its open/closed label at request time."""

    open: bool
    status_label: str


class BranchCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=120)
    address: str = Field("", max_length=255)
    map_url: str = Field("", max_length=512)
    opening_hour: Optional[int] = Field(None, ge=0, le=23)
    closing_hour: Optional[int] = Field(None, ge=1, le=24)
    operating_mode: OperatingMode = OperatingMode.AUTO

    @model_validator(mode="after")
    def _closing_after_opening(self) -> "BranchCreate":
        if (
            self.opening_hour is not None
            and self.closing_hour is not None
            and self.closing_hour <= self.opening_hour
        ):
            raise ValueError("closing_hour must be after opening_hour")
        return self


class OperatingModeUpdate(StrictRequestModel):
    mode: OperatingMode


class BarberResponse(StandardizedModel):
    id: str
    name: str
    bio: str = ""
    photo_url: str = ""
    active: bool
    branch_id: str


class BarberCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=120)
    branch_id: str
    bio: str = ""
    photo_url: str = ""
    active: bool = True


class ServiceResponse(StandardizedModel):
    id: str
    name: str
    price: int
    duration_minutes: int
    description: str = ""
    slot_count: int


class ServiceCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=120)
    price: int = Field(..., gt=0)
    duration_minutes: int = Field(60, gt=0)
    description: str = ""
