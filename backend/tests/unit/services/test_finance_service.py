# backend/tests/unit/services/test_finance_service.py
"""Monthly revenue and commission ledger."""

from conftest import TOMORROW
import pytest

from barbershop.core.enums import BookingOrigin
from barbershop.core.exceptions import ValidationException
from barbershop.services.finance_service import FinanceService


@pytest.fixture
def finance(db, lifecycle):
    return FinanceService(db, lifecycle=lifecycle)


@pytest.fixture
def june_bookings(lifecycle, book, second_barber, combo, beard):
    staff = BookingOrigin.ADMIN
    haircut_booking = book(hour=10, origin=staff)
    combo_booking = book(hour=12, origin=staff, service_id=combo.id)
    lifecycle.complete(combo_booking.id)
    beard_booking = book(hour=10, origin=staff, barber_id=second_barber.id, service_id=beard.id)
    # Neither of these counts towards revenue
    book(hour=16)
    lifecycle.cancel(book(hour=18, origin=staff).id)
    return haircut_booking, combo_booking, beard_booking


class TestMonthlySummary:
    def test_totals(self, finance, june_bookings):
        summary = finance.monthly_summary(TOMORROW.year, TOMORROW.month)

        assert summary.bookings == 3
        assert summary.revenue == 150
        assert summary.commission == pytest.approx(4.5)
        assert summary.unpaid_commission == pytest.approx(4.5)
        assert summary.average_ticket == pytest.approx(50.0)
        assert summary.commission_rate == pytest.approx(0.03)

    def test_per_barber_sorted_by_revenue(self, finance, june_bookings, barber, second_barber):
        summary = finance.monthly_summary(2024, 6)

        assert [e.barber_id for e in summary.by_barber] == [barber.id, second_barber.id]
        carlos = summary.by_barber[0]
        assert (carlos.barber_name, carlos.bookings, carlos.revenue) == ("Carlos", 2, 120)
        assert carlos.commission == pytest.approx(3.6)

    def test_paid_commission_leaves_unpaid_balance(self, finance, june_bookings):
        haircut_booking = june_bookings[0]

        assert finance.mark_commission_paid([haircut_booking.id]) == 1

        summary = finance.monthly_summary(2024, 6)
        assert summary.commission == pytest.approx(4.5)
        assert summary.unpaid_commission == pytest.approx(3.0)

    def test_empty_month(self, finance, june_bookings):
        summary = finance.monthly_summary(2024, 7)

        assert summary.bookings == 0
        assert summary.average_ticket == 0.0
        assert summary.by_barber == []

    def test_branch_filter(self, finance, june_bookings, other_branch):
        assert finance.monthly_summary(2024, 6, branch_id=other_branch.id).revenue == 0

    def test_custom_commission_rate(self, db, lifecycle, june_bookings):
        finance = FinanceService(db, lifecycle=lifecycle, commission_rate=0.1)

        assert finance.monthly_summary(2024, 6).commission == pytest.approx(15.0)

    def test_invalid_month(self, finance):
        with pytest.raises(ValidationException) as exc_info:
            finance.monthly_summary(2024, 13)

        assert exc_info.value.code == "INVALID_MONTH"

    def test_to_dict(self, finance, june_bookings):
        data = finance.monthly_summary(2024, 6).to_dict()

        assert data["revenue"] == 150
        assert data["by_barber"][0]["barber_name"] == "Carlos"
