# backend/barbershop/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import availability, bookings, catalog, clients, finance

__all__ = [
    "availability",
    "bookings",
    "catalog",
    "clients",
    "finance",
]
