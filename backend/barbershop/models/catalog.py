# backend/barbershop/models/catalog.py
"""
Catalog models: branches, barbers and services.

The catalog is read-mostly. Staff provisioning creates the rows; the only
write in normal operation is a branch's operating-mode override.
"""

import math
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.constants import SLOT_MINUTES
from ..core.enums import OperatingMode
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Branch(Base):
    """A physical shop with its own opening window and barber roster."""

    __tablename__ = "branches"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(120), nullable=False)
    address = Column(String(255), nullable=False, default="")
    map_url = Column(String(512), nullable=False, default="")
    opening_hour = Column(Integer, nullable=False, default=9)
    closing_hour = Column(Integer, nullable=False, default=21)
    operating_mode = Column(String(20), nullable=False, default=OperatingMode.AUTO.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    barbers = relationship("Barber", back_populates="branch")

    __table_args__ = (
        CheckConstraint("opening_hour >= 0 AND opening_hour <= 23", name="ck_branches_opening_hour"),
        CheckConstraint("closing_hour > opening_hour AND closing_hour <= 24", name="ck_branches_closing_hour"),
        CheckConstraint(
            "operating_mode IN ('auto', 'forced-open', 'forced-closed')",
            name="ck_branches_operating_mode",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Branch {self.id}: {self.name} "
            f"{self.opening_hour:02d}-{self.closing_hour:02d} mode={self.operating_mode}>"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "map_url": self.map_url,
            "opening_hour": self.opening_hour,
            "closing_hour": self.closing_hour,
            "operating_mode": self.operating_mode,
        }


class Barber(Base):
    """A barber belongs to exactly one branch."""

    __tablename__ = "barbers"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(120), nullable=False)
    bio = Column(Text, nullable=False, default="")
    photo_url = Column(String(512), nullable=False, default="")
    active = Column(Boolean, nullable=False, default=True)
    branch_id = Column(String(26), ForeignKey("branches.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    branch = relationship("Branch", back_populates="barbers")

    def __repr__(self) -> str:
        return f"<Barber {self.id}: {self.name} branch={self.branch_id} active={self.active}>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "bio": self.bio,
            "photo_url": self.photo_url,
            "active": self.active,
            "branch_id": self.branch_id,
        }


class Service(Base):
    """
    A bookable service.

    Durations are stored in minutes but the engine works in whole hours:
    every service occupies ``slot_count`` consecutive one-hour slots.
    """

    __tablename__ = "services"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(120), nullable=False)
    price = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=SLOT_MINUTES)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_services_price_positive"),
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    @property
    def slot_count(self) -> int:
        return max(1, math.ceil((self.duration_minutes or SLOT_MINUTES) / SLOT_MINUTES))

    def __repr__(self) -> str:
        return f"<Service {self.id}: {self.name} price={self.price} slots={self.slot_count}>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "duration_minutes": self.duration_minutes,
            "description": self.description,
            "slot_count": self.slot_count,
        }
