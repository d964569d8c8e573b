# backend/barbershop/services/catalog_service.py
"""
Catalog Service

Branches, barbers and services. Listings are served from the cache as
plain dicts; lookups by id return live ORM rows for the write path. Every
catalog write drops all catalog cache keys.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import CATALOG_CACHE_PREFIX
from ..core.enums import OperatingMode
from ..core.exceptions import (
    BackendUnavailableException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..models.catalog import Barber, Branch, Service
from ..repositories import RepositoryFactory
from ..repositories.catalog_repository import CatalogRepository
from .base import BaseService
from .cache_service import CacheKeyBuilder, CacheService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogService(BaseService):
    def __init__(
        self,
        db: Session,
        cache: Optional[CacheService] = None,
        repository: Optional[CatalogRepository] = None,
    ):
        super().__init__(db, cache)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_catalog_repository(db)
        self.cache_ttl = settings.catalog_cache_ttl_seconds

    def _read(self, description: str, loader: Callable[[], T]) -> T:
        try:
            return loader()
        except RepositoryException as e:
            self.logger.error(f"Catalog read failed ({description}): {e}")
            raise BackendUnavailableException(details={"operation": description}) from e

    def _cached_listing(self, key: str, loader: Callable[[], List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
        if self.cache:
            cached = self.cache.get(key)
            if cached is not None:
                return list(cached)

        items = self._read(key, loader)
        if self.cache:
            self.cache.set(key, items, ttl=self.cache_ttl)
        return items

    def _invalidate_catalog(self) -> None:
        self.invalidate_pattern(f"{CATALOG_CACHE_PREFIX}:*")

    # Listings

    @BaseService.measure_operation("get_branches")
    def get_branches(self) -> List[Dict[str, Any]]:
        return self._cached_listing(
            CacheKeyBuilder.build(CATALOG_CACHE_PREFIX, "branches"),
            lambda: [b.to_dict() for b in self.repository.list_branches()],
        )

    @BaseService.measure_operation("get_services")
    def get_services(self) -> List[Dict[str, Any]]:
        return self._cached_listing(
            CacheKeyBuilder.build(CATALOG_CACHE_PREFIX, "services"),
            lambda: [s.to_dict() for s in self.repository.list_services()],
        )

    @BaseService.measure_operation("get_barbers")
    def get_barbers(self, branch_id: Optional[str] = None, include_inactive: bool = False) -> List[Dict[str, Any]]:
        """Barbers of one branch (or all), active only unless asked otherwise."""
        key = CacheKeyBuilder.build(
            CATALOG_CACHE_PREFIX, "barbers", branch_id, "all" if include_inactive else "active"
        )
        return self._cached_listing(
            key,
            lambda: [
                b.to_dict()
                for b in self.repository.list_barbers(branch_id=branch_id, include_inactive=include_inactive)
            ],
        )

    # Lookups

    def get_branch(self, branch_id: str) -> Branch:
        branch = self._read("get_branch", lambda: self.repository.get_branch(branch_id))
        if branch is None:
            raise NotFoundException(f"Branch {branch_id} not found", details={"branch_id": branch_id})
        return branch

    def get_barber(self, barber_id: str) -> Barber:
        barber = self._read("get_barber", lambda: self.repository.get_barber(barber_id))
        if barber is None:
            raise NotFoundException(f"Barber {barber_id} not found", details={"barber_id": barber_id})
        return barber

    def get_service(self, service_id: str) -> Service:
        service = self._read("get_service", lambda: self.repository.get_service(service_id))
        if service is None:
            raise NotFoundException(f"Service {service_id} not found", details={"service_id": service_id})
        return service

    def get_services_by_ids(self, service_ids: Sequence[str]) -> List[Service]:
        """Services in the requested order; duplicates are kept."""
        found = {s.id: s for s in self._read("get_services_by_ids", lambda: self.repository.get_services(service_ids))}
        missing = [sid for sid in service_ids if sid not in found]
        if missing:
            raise NotFoundException("Service not found", details={"service_ids": missing})
        return [found[sid] for sid in service_ids]

    # Writes

    @BaseService.measure_operation("update_branch_operating_mode")
    def update_branch_operating_mode(self, branch_id: str, mode: OperatingMode | str) -> Branch:
        try:
            mode = OperatingMode(mode)
        except ValueError:
            raise ValidationException(f"Unknown operating mode: {mode}", code="INVALID_OPERATING_MODE")

        with self.transaction():
            branch = self.repository.set_operating_mode(branch_id, mode.value)
            if branch is None:
                raise NotFoundException(f"Branch {branch_id} not found", details={"branch_id": branch_id})

        self._invalidate_catalog()
        self.log_operation("update_branch_operating_mode", branch_id=branch_id, mode=mode.value)
        return branch

    def create_branch(
        self,
        name: str,
        address: str = "",
        map_url: str = "",
        opening_hour: Optional[int] = None,
        closing_hour: Optional[int] = None,
        operating_mode: OperatingMode = OperatingMode.AUTO,
    ) -> Branch:
        opening = settings.default_opening_hour if opening_hour is None else opening_hour
        closing = settings.default_closing_hour if closing_hour is None else closing_hour
        if not 0 <= opening <= 23 or not opening < closing <= 24:
            raise ValidationException(
                "Closing hour must be after opening hour",
                code="INVALID_BRANCH_HOURS",
                details={"opening_hour": opening, "closing_hour": closing},
            )

        with self.transaction():
            branch = Branch(
                name=name,
                address=address,
                map_url=map_url,
                opening_hour=opening,
                closing_hour=closing,
                operating_mode=OperatingMode(operating_mode).value,
            )
            self.repository.add(branch)

        self._invalidate_catalog()
        return branch

    def create_barber(
        self,
        name: str,
        branch_id: str,
        bio: str = "",
        photo_url: str = "",
        active: bool = True,
    ) -> Barber:
        self.get_branch(branch_id)
        with self.transaction():
            barber = Barber(name=name, branch_id=branch_id, bio=bio, photo_url=photo_url, active=active)
            self.repository.add(barber)

        self._invalidate_catalog()
        return barber

    def create_service(
        self,
        name: str,
        price: int,
        duration_minutes: int = 60,
        description: str = "",
    ) -> Service:
        if price <= 0:
            raise ValidationException("Price must be positive", code="INVALID_PRICE")
        if duration_minutes <= 0:
            raise ValidationException("Duration must be positive", code="INVALID_DURATION")

        with self.transaction():
            service = Service(
                name=name, price=price, duration_minutes=duration_minutes, description=description
            )
            self.repository.add(service)

        self._invalidate_catalog()
        return service
