# backend/barbershop/models/client.py
"""
Client model.

A client is identified by an immutable surrogate id; the phone number is a
unique but mutable attribute. Bookings point at ``clients.id``, so changing
a phone number never touches booking rows.
"""

from typing import Any

from sqlalchemy import CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import ClientRanking
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    phone = Column(String(20), nullable=False, unique=True, index=True)
    full_name = Column(String(120), nullable=False)
    ranking = Column(String(20), nullable=False, default=ClientRanking.NEW.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="client")

    __table_args__ = (
        CheckConstraint("ranking IN ('new', 'frequent', 'vip')", name="ck_clients_ranking"),
    )

    def __repr__(self) -> str:
        return f"<Client {self.id}: {self.phone} {self.full_name!r} ranking={self.ranking}>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "phone": self.phone,
            "full_name": self.full_name,
            "ranking": self.ranking,
        }
