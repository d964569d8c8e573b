# backend/barbershop/repositories/catalog_repository.py
"""
Catalog Repository

Read access to branches, barbers and services, plus the one routine write:
a branch's operating-mode override.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.catalog import Barber, Branch, Service
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CatalogRepository(BaseRepository[Branch]):
    """Repository over the catalog tables, with Branch as the primary model."""

    def __init__(self, db: Session):
        super().__init__(db, Branch)

    # Branches

    def list_branches(self) -> List[Branch]:
        return self._execute_query(self.db.query(Branch).order_by(Branch.name))

    def get_branch(self, branch_id: str) -> Optional[Branch]:
        return self.get_by_id(branch_id, load_relationships=False)

    def set_operating_mode(self, branch_id: str, mode: str) -> Optional[Branch]:
        return self.update(branch_id, operating_mode=mode)

    # Barbers

    def list_barbers(self, branch_id: Optional[str] = None, include_inactive: bool = False) -> List[Barber]:
        query = self.db.query(Barber)
        if branch_id:
            query = query.filter(Barber.branch_id == branch_id)
        if not include_inactive:
            query = query.filter(Barber.active.is_(True))
        return self._execute_query(query.order_by(Barber.name))

    def get_barber(self, barber_id: str) -> Optional[Barber]:
        try:
            return self.db.get(Barber, barber_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting barber {barber_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve barber: {str(e)}")

    # Services

    def list_services(self) -> List[Service]:
        return self._execute_query(self.db.query(Service).order_by(Service.name))

    def get_service(self, service_id: str) -> Optional[Service]:
        try:
            return self.db.get(Service, service_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting service {service_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve service: {str(e)}")

    def get_services(self, service_ids: Sequence[str]) -> List[Service]:
        if not service_ids:
            return []
        return self._execute_query(self.db.query(Service).filter(Service.id.in_(list(service_ids))))

    # Provisioning

    def add(self, entity: Branch | Barber | Service) -> Branch | Barber | Service:
        self.db.add(entity)
        self.flush()
        return entity
