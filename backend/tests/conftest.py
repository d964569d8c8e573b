# backend/tests/conftest.py
"""
Pytest configuration for the barbershop backend.

Sets the test environment BEFORE any barbershop import so settings pick up
an in-memory database and no Redis. Every test gets a fresh in-memory
SQLite engine, a seeded catalog and a pinned clock: "now" is
2024-06-10 08:30 in the business timezone (America/La_Paz).
"""

import os
import sys

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("REDIS_URL", None)
os.environ["BUSINESS_TIMEZONE"] = "America/La_Paz"

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from datetime import date, datetime
from typing import Callable, Iterator

import pytest
import pytz
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import barbershop.models  # noqa: F401
from barbershop.api.dependencies import get_cache_service_dep, get_clock, get_db
from barbershop.core.enums import BookingOrigin
from barbershop.database import Base
from barbershop.main import fastapi_app
from barbershop.models.booking import Booking
from barbershop.models.catalog import Barber, Branch, Service
from barbershop.models.client import Client
from barbershop.services.booking_service import BookingDraft, BookingLifecycleService
from barbershop.services.cache_service import CacheService
from barbershop.services.catalog_service import CatalogService
from barbershop.services.client_directory_service import ClientDirectoryService
from barbershop.services.conflict_checker import ConflictChecker
from barbershop.services.operating_hours import OperatingHoursResolver
from barbershop.services.slot_oracle import SlotAvailabilityOracle

LA_PAZ = pytz.timezone("America/La_Paz")

TODAY = date(2024, 6, 10)
TOMORROW = date(2024, 6, 11)


def business_time(day: date, hour: int, minute: int = 0) -> datetime:
    return LA_PAZ.localize(datetime(day.year, day.month, day.day, hour, minute))


def make_clock(instant: datetime) -> Callable[[], datetime]:
    return lambda: instant


FIXED_NOW = business_time(TODAY, 8, 30)


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cache() -> CacheService:
    return CacheService(use_redis=False)


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return make_clock(FIXED_NOW)


@pytest.fixture
def resolver() -> OperatingHoursResolver:
    return OperatingHoursResolver(bookable_start_hour=9, bookable_end_hour=21)


@pytest.fixture
def catalog(db: Session, cache: CacheService) -> CatalogService:
    return CatalogService(db, cache=cache)


@pytest.fixture
def directory(db: Session) -> ClientDirectoryService:
    return ClientDirectoryService(db)


@pytest.fixture
def oracle(db: Session, cache: CacheService, resolver: OperatingHoursResolver, clock) -> SlotAvailabilityOracle:
    return SlotAvailabilityOracle(db, cache=cache, resolver=resolver, clock=clock)


@pytest.fixture
def checker(db: Session, cache: CacheService, oracle, resolver, clock) -> ConflictChecker:
    return ConflictChecker(db, cache=cache, oracle=oracle, resolver=resolver, clock=clock)


@pytest.fixture
def lifecycle(db: Session, cache: CacheService, catalog, checker) -> BookingLifecycleService:
    return BookingLifecycleService(db, cache=cache, catalog=catalog, checker=checker)


# Seed data


@pytest.fixture
def branch(catalog: CatalogService) -> Branch:
    return catalog.create_branch(
        name="Centro", address="Av. Arce 123", opening_hour=9, closing_hour=21
    )


@pytest.fixture
def other_branch(catalog: CatalogService) -> Branch:
    return catalog.create_branch(name="Sopocachi", opening_hour=10, closing_hour=18)


@pytest.fixture
def barber(catalog: CatalogService, branch: Branch) -> Barber:
    return catalog.create_barber(name="Carlos", branch_id=branch.id)


@pytest.fixture
def second_barber(catalog: CatalogService, branch: Branch) -> Barber:
    return catalog.create_barber(name="Mateo", branch_id=branch.id)


@pytest.fixture
def inactive_barber(catalog: CatalogService, branch: Branch) -> Barber:
    return catalog.create_barber(name="Rodrigo", branch_id=branch.id, active=False)


@pytest.fixture
def haircut(catalog: CatalogService) -> Service:
    return catalog.create_service(name="Corte clásico", price=50, duration_minutes=60)


@pytest.fixture
def beard(catalog: CatalogService) -> Service:
    return catalog.create_service(name="Perfilado de barba", price=30, duration_minutes=60)


@pytest.fixture
def combo(catalog: CatalogService) -> Service:
    return catalog.create_service(name="Corte y barba", price=70, duration_minutes=120)


@pytest.fixture
def client(directory: ClientDirectoryService) -> Client:
    return directory.create("+59170011122", "Juan Pérez")


@pytest.fixture
def book(lifecycle: BookingLifecycleService, client: Client, barber: Barber, branch: Branch, haircut: Service):
    """Factory: create a booking with sensible defaults."""

    def _book(
        day: date = TOMORROW,
        hour: int = 14,
        origin: BookingOrigin = BookingOrigin.GUEST,
        **overrides,
    ) -> Booking:
        draft = BookingDraft(
            client_id=overrides.pop("client_id", client.id),
            barber_id=overrides.pop("barber_id", barber.id),
            branch_id=overrides.pop("branch_id", branch.id),
            service_id=overrides.pop("service_id", haircut.id),
            booking_date=day,
            start_hour=hour,
            origin=origin,
            **overrides,
        )
        return lifecycle.create_booking(draft)

    return _book


# HTTP


@pytest.fixture
def api_client(session_factory: sessionmaker, cache: CacheService, clock) -> Iterator[TestClient]:
    """TestClient bound to the test engine, cache and pinned clock."""

    def _get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    fastapi_app.dependency_overrides[get_cache_service_dep] = lambda: cache
    fastapi_app.dependency_overrides[get_clock] = lambda: clock
    try:
        with TestClient(fastapi_app) as test_client:
            yield test_client
    finally:
        fastapi_app.dependency_overrides.clear()
