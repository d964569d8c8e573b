# backend/barbershop/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .database import get_db
from .services import (
    get_booking_service,
    get_cache_service_dep,
    get_catalog_service,
    get_client_directory_service,
    get_clock,
    get_conflict_checker,
    get_finance_service,
    get_operating_hours_resolver,
    get_slot_oracle,
)

__all__ = [
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_cache_service_dep",
    "get_catalog_service",
    "get_client_directory_service",
    "get_clock",
    "get_conflict_checker",
    "get_finance_service",
    "get_operating_hours_resolver",
    "get_slot_oracle",
]
