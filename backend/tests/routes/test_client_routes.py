# backend/tests/routes/test_client_routes.py
"""Client directory endpoints under /api/v1/clients."""

CLIENTS = "/api/v1/clients"


class TestLookup:
    def test_exact_and_fuzzy(self, api_client, client):
        exact = api_client.get(f"{CLIENTS}/lookup", params={"phone": "+59170011122"})
        fuzzy = api_client.get(f"{CLIENTS}/lookup", params={"phone": "700 111 22"})

        assert exact.json()["id"] == client.id
        assert fuzzy.json()["id"] == client.id

    def test_no_match(self, api_client, client):
        response = api_client.get(f"{CLIENTS}/lookup", params={"phone": "+59179999999"})

        assert response.status_code == 404

    def test_search(self, api_client, client):
        response = api_client.get(f"{CLIENTS}/search", params={"q": "pérez"})

        assert [c["phone"] for c in response.json()] == ["+59170011122"]


class TestWrites:
    def test_create(self, api_client):
        response = api_client.post(CLIENTS, json={"phone": "+591 712-345-67", "full_name": "Lucía Flores"})

        assert response.status_code == 201
        assert response.json()["phone"] == "+59171234567"
        assert response.json()["ranking"] == "new"

    def test_create_duplicate(self, api_client, client):
        response = api_client.post(CLIENTS, json={"phone": client.phone, "full_name": "Otro Nombre"})

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "CLIENT_IDENTITY_CONFLICT"

    def test_create_invalid_phone(self, api_client):
        response = api_client.post(CLIENTS, json={"phone": "12ab", "full_name": "Lucía Flores"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_PHONE"

    def test_update_ranking(self, api_client, client):
        response = api_client.patch(f"{CLIENTS}/{client.phone}", json={"ranking": "vip"})

        assert response.status_code == 200
        assert response.json()["ranking"] == "vip"
        assert response.json()["full_name"] == "Juan Pérez"

    def test_rename_moves_bookings(self, api_client, client, book):
        booking = book()

        response = api_client.post(f"{CLIENTS}/{client.phone}/rename", json={"new_phone": "+59170099999"})

        assert response.status_code == 200
        assert response.json()["id"] == client.id
        assert api_client.get(f"{CLIENTS}/lookup", params={"phone": "+59170011122"}).status_code == 404
        shown = api_client.get(f"/api/v1/bookings/{booking.id}").json()
        assert shown["client"]["phone"] == "+59170099999"

    def test_rename_collision(self, api_client, client, directory):
        directory.create("+59170099999", "María López")

        response = api_client.post(f"{CLIENTS}/{client.phone}/rename", json={"new_phone": "+59170099999"})

        assert response.status_code == 409

    def test_rename_unknown(self, api_client):
        response = api_client.post(f"{CLIENTS}/+59170000000/rename", json={"new_phone": "+59170099999"})

        assert response.status_code == 404

    def test_update_with_phone_change(self, api_client, client):
        response = api_client.patch(
            f"{CLIENTS}/{client.phone}", json={"full_name": "Juan Pablo", "phone": "+59170055555"}
        )

        assert response.status_code == 200
        assert response.json()["id"] == client.id
        assert response.json()["phone"] == "+59170055555"
        assert response.json()["full_name"] == "Juan Pablo"

    def test_update_collision_is_all_or_nothing(self, api_client, client, directory):
        directory.create("+59170099999", "María López")

        response = api_client.patch(
            f"{CLIENTS}/{client.phone}", json={"full_name": "Juan Pablo", "phone": "+59170099999"}
        )

        assert response.status_code == 409
        assert api_client.get(f"{CLIENTS}/lookup", params={"phone": client.phone}).json()["full_name"] == "Juan Pérez"
