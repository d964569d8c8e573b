# backend/barbershop/repositories/client_repository.py
"""
Client Repository

Phone-keyed lookups for the client directory. Phones are stored in their
normalized form (``+`` and digits only), so suffix matching works on the
stored column directly.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.client import Client
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ClientRepository(BaseRepository[Client]):
    def __init__(self, db: Session):
        super().__init__(db, Client)

    def get_by_phone(self, phone: str) -> Optional[Client]:
        return self.find_one_by(phone=phone)

    def add_client(self, client: Client) -> Client:
        """Stage a client built by the caller; the flush surfaces phone collisions."""
        self.db.add(client)
        self.flush()
        return client

    def find_by_phone_suffix(self, digits_suffix: str) -> Optional[Client]:
        """First client whose phone ends with the given digits."""
        query = (
            self.db.query(Client)
            .filter(Client.phone.like(f"%{digits_suffix}"))
            .order_by(Client.created_at, Client.id)
            .limit(1)
        )
        matches = self._execute_query(query)
        return matches[0] if matches else None

    def search_by_name(self, text: str, limit: int) -> List[Client]:
        query = (
            self.db.query(Client)
            .filter(Client.full_name.ilike(f"%{text}%"))
            .order_by(Client.full_name)
            .limit(limit)
        )
        return self._execute_query(query)
