# backend/tests/unit/services/test_catalog_service.py
"""
Tests for CatalogService: cached listings, invalidation on writes and
provisioning validation.
"""

from unittest.mock import Mock

import pytest

from barbershop.core.enums import OperatingMode
from barbershop.core.exceptions import (
    BackendUnavailableException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from barbershop.repositories.catalog_repository import CatalogRepository
from barbershop.services.catalog_service import CatalogService


class TestListings:
    def test_branches_sorted_by_name(self, catalog, branch, other_branch):
        names = [b["name"] for b in catalog.get_branches()]

        assert names == ["Centro", "Sopocachi"]

    def test_barbers_exclude_inactive_by_default(self, catalog, branch, barber, second_barber, inactive_barber):
        active = [b["name"] for b in catalog.get_barbers(branch_id=branch.id)]
        everyone = [b["name"] for b in catalog.get_barbers(branch_id=branch.id, include_inactive=True)]

        assert active == ["Carlos", "Mateo"]
        assert everyone == ["Carlos", "Mateo", "Rodrigo"]

    def test_barbers_scoped_to_branch(self, catalog, barber, other_branch):
        assert catalog.get_barbers(branch_id=other_branch.id) == []

    def test_services_carry_slot_count(self, catalog, haircut, combo):
        by_name = {s["name"]: s for s in catalog.get_services()}

        assert by_name["Corte clásico"]["slot_count"] == 1
        assert by_name["Corte y barba"]["slot_count"] == 2

    def test_listing_served_from_cache(self, db, cache, branch):
        repository = Mock(spec=CatalogRepository)
        repository.list_branches.return_value = [branch]
        service = CatalogService(db, cache=cache, repository=repository)

        first = service.get_branches()
        second = service.get_branches()

        assert first == second
        repository.list_branches.assert_called_once()

    def test_operating_mode_change_invalidates_listings(self, catalog, cache, branch):
        assert catalog.get_branches()[0]["operating_mode"] == "auto"
        assert cache.get("catalog:branches") is not None

        catalog.update_branch_operating_mode(branch.id, "forced-closed")

        assert cache.get("catalog:branches") is None
        assert catalog.get_branches()[0]["operating_mode"] == "forced-closed"

    def test_new_barber_visible_immediately(self, catalog, branch, barber):
        catalog.get_barbers(branch_id=branch.id)

        catalog.create_barber(name="Diego", branch_id=branch.id)

        assert [b["name"] for b in catalog.get_barbers(branch_id=branch.id)] == ["Carlos", "Diego"]

    def test_backend_failure(self, db, cache):
        repository = Mock(spec=CatalogRepository)
        repository.list_services.side_effect = RepositoryException("no connection")
        service = CatalogService(db, cache=cache, repository=repository)

        with pytest.raises(BackendUnavailableException):
            service.get_services()


class TestLookups:
    def test_missing_rows(self, catalog):
        with pytest.raises(NotFoundException):
            catalog.get_branch("missing")
        with pytest.raises(NotFoundException):
            catalog.get_barber("missing")
        with pytest.raises(NotFoundException):
            catalog.get_service("missing")

    def test_services_by_ids_keeps_order_and_duplicates(self, catalog, haircut, beard):
        services = catalog.get_services_by_ids([beard.id, haircut.id, beard.id])

        assert [s.id for s in services] == [beard.id, haircut.id, beard.id]

    def test_services_by_ids_reports_missing(self, catalog, haircut):
        with pytest.raises(NotFoundException) as exc_info:
            catalog.get_services_by_ids([haircut.id, "missing"])

        assert exc_info.value.details == {"service_ids": ["missing"]}


class TestWrites:
    def test_set_operating_mode(self, catalog, branch):
        updated = catalog.update_branch_operating_mode(branch.id, OperatingMode.FORCED_OPEN)

        assert updated.operating_mode == "forced-open"

    def test_unknown_operating_mode(self, catalog, branch):
        with pytest.raises(ValidationException) as exc_info:
            catalog.update_branch_operating_mode(branch.id, "sometimes")

        assert exc_info.value.code == "INVALID_OPERATING_MODE"

    def test_operating_mode_of_missing_branch(self, catalog):
        with pytest.raises(NotFoundException):
            catalog.update_branch_operating_mode("missing", OperatingMode.AUTO)

    def test_branch_defaults_from_settings(self, catalog):
        branch = catalog.create_branch(name="El Alto")

        assert (branch.opening_hour, branch.closing_hour) == (9, 21)
        assert branch.operating_mode == "auto"

    @pytest.mark.parametrize("opening,closing", [(21, 9), (10, 10), (-1, 12), (9, 25)])
    def test_invalid_branch_hours(self, catalog, opening, closing):
        with pytest.raises(ValidationException) as exc_info:
            catalog.create_branch(name="Mala", opening_hour=opening, closing_hour=closing)

        assert exc_info.value.code == "INVALID_BRANCH_HOURS"

    def test_barber_needs_existing_branch(self, catalog):
        with pytest.raises(NotFoundException):
            catalog.create_barber(name="Diego", branch_id="missing")

    @pytest.mark.parametrize(
        "price,duration,code", [(0, 60, "INVALID_PRICE"), (50, 0, "INVALID_DURATION")]
    )
    def test_invalid_service(self, catalog, price, duration, code):
        with pytest.raises(ValidationException) as exc_info:
            catalog.create_service(name="Gratis", price=price, duration_minutes=duration)

        assert exc_info.value.code == code

    def test_service_slot_count_rounds_up(self, catalog):
        assert catalog.create_service(name="Color", price=120, duration_minutes=90).slot_count == 2
