# backend/barbershop/repositories/__init__.py
"""
Repository Pattern Implementation

This package provides the repository layer for data access,
separating business logic from database queries.

Usage:
    from barbershop.repositories import RepositoryFactory

    repository = RepositoryFactory.create_conflict_checker_repository(db)
    taken = repository.get_taken_hours(barber_id, slot_date)
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .catalog_repository import CatalogRepository
from .client_repository import ClientRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "CatalogRepository",
    "ClientRepository",
    "ConflictCheckerRepository",
    "IRepository",
    "RepositoryFactory",
]
