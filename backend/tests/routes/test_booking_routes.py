# backend/tests/routes/test_booking_routes.py
"""
Booking endpoints under /api/v1/bookings.

Clock is pinned to 2024-06-10 08:30 La Paz (UTC-4).
"""

from conftest import TOMORROW
import pytest

from barbershop.core.enums import BookingOrigin

BOOKINGS = "/api/v1/bookings"


def at(hour: int, day=TOMORROW) -> str:
    return f"{day.isoformat()}T{hour:02d}:00:00-04:00"


@pytest.fixture
def payload(barber, branch, haircut):
    def _payload(**overrides):
        body = {
            "barber_id": barber.id,
            "branch_id": branch.id,
            "service_id": haircut.id,
            "starts_at": at(14),
            "client_phone": "+59171234567",
            "client_name": "Lucía Flores",
        }
        body.update(overrides)
        return body

    return _payload


class TestCreateBooking:
    def test_guest_booking_creates_client(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload())

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["origin"] == "guest"
        assert data["client"]["phone"] == "+59171234567"
        assert data["client"]["full_name"] == "Lucía Flores"
        assert data["hours"] == ["14:00"]
        assert data["barber_name"] == "Carlos"
        assert data["price"] == 50

    def test_existing_client_by_id(self, api_client, payload, client):
        body = payload(client_id=client.id, client_phone=None, client_name=None, origin="admin")

        response = api_client.post(BOOKINGS, json=body)

        assert response.status_code == 201
        assert response.json()["client"]["id"] == client.id
        assert response.json()["status"] == "confirmed"

    def test_utc_timestamp_is_mapped_to_business_hour(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload(starts_at=f"{TOMORROW.isoformat()}T18:00:00Z"))

        assert response.status_code == 201
        assert response.json()["start_hour"] == 14

    def test_multi_service_span(self, api_client, payload, beard):
        response = api_client.post(BOOKINGS, json=payload(extra_service_ids=[beard.id]))

        assert response.json()["hours"] == ["14:00", "15:00"]

    def test_naive_timestamp_rejected(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload(starts_at=f"{TOMORROW.isoformat()}T14:00:00"))

        assert response.status_code == 422

    def test_off_hour_timestamp_rejected(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload(starts_at=f"{TOMORROW.isoformat()}T14:30:00-04:00"))

        assert response.status_code == 422

    def test_client_reference_required(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload(client_phone=None))

        assert response.status_code == 422

    def test_new_phone_needs_name(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload(client_name=None))

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "CLIENT_NAME_REQUIRED"

    def test_taken_slot(self, api_client, payload, book):
        book(hour=14)

        response = api_client.post(BOOKINGS, json=payload())

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "TAKEN"
        assert detail["details"]["reason"] == "taken"
        assert detail["details"]["hour"] == "14:00"

    def test_rejected_guest_booking_creates_no_client(self, api_client, payload, book):
        book(hour=14)

        response = api_client.post(BOOKINGS, json=payload())

        assert response.status_code == 409
        lookup = api_client.get("/api/v1/clients/lookup", params={"phone": "+59171234567"})
        assert lookup.status_code == 404

    def test_past_slot(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload(starts_at="2024-06-10T08:00:00-04:00"))

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "PAST"

    def test_outside_hours(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload(starts_at=at(21)))

        assert response.status_code == 422
        assert response.json()["detail"]["details"]["reason"] == "outside-hours"

    def test_unknown_barber(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload(barber_id="missing"))

        assert response.status_code == 404

    def test_unknown_fields_rejected(self, api_client, payload):
        response = api_client.post(BOOKINGS, json=payload(discount=10))

        assert response.status_code == 422


class TestReadAndUpdate:
    def test_get_and_list(self, api_client, book, second_barber):
        first = book(hour=10)
        book(hour=11, barber_id=second_barber.id, origin=BookingOrigin.ADMIN)

        single = api_client.get(f"{BOOKINGS}/{first.id}")
        assert single.status_code == 200
        assert single.json()["client"]["phone"] == "+59170011122"

        listing = api_client.get(BOOKINGS, params={"status": "pending"})
        assert [b["id"] for b in listing.json()] == [first.id]

        both = api_client.get(BOOKINGS, params=[("status", "pending"), ("status", "confirmed")])
        assert len(both.json()) == 2

        by_barber = api_client.get(BOOKINGS, params={"barber_id": second_barber.id})
        assert len(by_barber.json()) == 1

    def test_missing_booking(self, api_client):
        response = api_client.get(f"{BOOKINGS}/missing")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NotFoundException"

    def test_status_transitions(self, api_client, book):
        booking = book()

        confirmed = api_client.patch(f"{BOOKINGS}/{booking.id}/status", json={"status": "confirmed"})
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"

        completed = api_client.patch(f"{BOOKINGS}/{booking.id}/status", json={"status": "completed"})
        assert completed.json()["status"] == "completed"

        back = api_client.patch(f"{BOOKINGS}/{booking.id}/status", json={"status": "confirmed"})
        assert back.status_code == 422
        assert back.json()["detail"]["code"] == "INVALID_TRANSITION"

    def test_unknown_status_value(self, api_client, book):
        booking = book()

        response = api_client.patch(f"{BOOKINGS}/{booking.id}/status", json={"status": "archived"})

        assert response.status_code == 422

    def test_reschedule(self, api_client, book):
        booking = book(hour=10)

        response = api_client.post(f"{BOOKINGS}/{booking.id}/reschedule", json={"starts_at": at(16)})

        assert response.status_code == 200
        assert response.json()["hours"] == ["16:00"]

    def test_reschedule_into_taken_slot(self, api_client, book):
        booking = book(hour=10)
        book(hour=16)

        response = api_client.post(f"{BOOKINGS}/{booking.id}/reschedule", json={"starts_at": at(16)})

        assert response.status_code == 409
        assert api_client.get(f"{BOOKINGS}/{booking.id}").json()["hours"] == ["10:00"]

    def test_delete(self, api_client, book):
        booking = book()

        assert api_client.delete(f"{BOOKINGS}/{booking.id}").status_code == 204
        assert api_client.get(f"{BOOKINGS}/{booking.id}").status_code == 404

    def test_commission_paid(self, api_client, book):
        booking = book()

        response = api_client.post(f"{BOOKINGS}/commission-paid", json={"booking_ids": [booking.id]})

        assert response.json() == {"updated": 1}
        assert api_client.get(f"{BOOKINGS}/{booking.id}").json()["commission_paid"] is True

    def test_commission_paid_needs_ids(self, api_client):
        response = api_client.post(f"{BOOKINGS}/commission-paid", json={"booking_ids": []})

        assert response.status_code == 422
