"""Pydantic request and response models for the HTTP API."""

from .availability import (
    AvailableStartsResponse,
    BookingDaysResponse,
    CanBookRequest,
    CanBookResponse,
    TakenSlotsResponse,
)
from .booking import (
    BookingCreate,
    BookingReschedule,
    BookingResponse,
    BookingStatusUpdate,
    CommissionPaidRequest,
    CommissionPaidResponse,
)
from .catalog import (
    BarberCreate,
    BarberResponse,
    BranchCreate,
    BranchResponse,
    BranchStatusResponse,
    OperatingModeUpdate,
    ServiceCreate,
    ServiceResponse,
)
from .client import ClientCreate, ClientRename, ClientResponse, ClientUpdate
from .finance import BarberEarningsResponse, MonthlySummaryResponse

__all__ = [
    "AvailableStartsResponse",
    "BarberCreate",
    "BarberEarningsResponse",
    "BarberResponse",
    "BookingCreate",
    "BookingDaysResponse",
    "BookingReschedule",
    "BookingResponse",
    "BookingStatusUpdate",
    "BranchCreate",
    "BranchResponse",
    "BranchStatusResponse",
    "CanBookRequest",
    "CanBookResponse",
    "ClientCreate",
    "ClientRename",
    "ClientResponse",
    "ClientUpdate",
    "CommissionPaidRequest",
    "CommissionPaidResponse",
    "MonthlySummaryResponse",
    "OperatingModeUpdate",
    "ServiceCreate",
    "ServiceResponse",
    "TakenSlotsResponse",
]
