"""Client directory schemas."""

from typing import Optional

from pydantic import Field

from ..core.enums import ClientRanking
from ._strict_base import StrictRequestModel
from .base import StandardizedModel


class ClientResponse(StandardizedModel):
    id: str
    phone: str
    full_name: str
    ranking: ClientRanking


class ClientCreate(StrictRequestModel):
    # Format rules (digits, letters) are enforced by the directory service
    phone: str = Field(..., min_length=1, max_length=32)
    full_name: str = Field(..., min_length=1, max_length=120)


class ClientUpdate(StrictRequestModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=120)
    ranking: Optional[ClientRanking] = None
    phone: Optional[str] = Field(None, min_length=1, max_length=32)


class ClientRename(StrictRequestModel):
    new_phone: str = Field(..., min_length=1, max_length=32)
