"""
API tests for the /pins endpoints.
"""
from datetime import timedelta

from pinmap.utils.time import utcnow

from conftest import NYC, NYC_LAT, NYC_LON, auth_headers


def drop_payload(**overrides):
    payload = {"latitude": NYC_LAT, "longitude": NYC_LON, "description": "Here for coffee"}
    payload.update(overrides)
    return payload


class TestAuth:
    def test_health_check(self, client):
        response = client.get("/")

        assert response.status_code == 200

    def test_missing_token(self, client):
        response = client.post("/pins", json=drop_payload())

        assert response.status_code == 401

    def test_bad_token(self, client):
        response = client.post(
            "/pins", json=drop_payload(), headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401

    def test_bad_utc_offset(self, client, make_user):
        user = make_user()

        response = client.get("/pins/mine", headers=auth_headers(user.id, **{"X-UTC-Offset": "9999"}))

        assert response.status_code == 400


class TestCreatePin:
    def test_drop_then_redrop(self, client, make_user):
        user = make_user("Dropper")
        headers = auth_headers(user.id)

        first = client.post("/pins", json=drop_payload(), headers=headers)
        assert first.status_code == 201
        body = first.json()
        assert body["already_exists"] is False
        assert body["pin"]["is_own"] is True
        assert body["pin"]["precision"] == "exact"
        assert body["pin"]["status"] == "active"
        assert body["pin"]["owner"]["name"] == "Dropper"

        again = client.post("/pins", json=drop_payload(), headers=headers)
        assert again.status_code == 200
        assert again.json()["already_exists"] is True
        assert again.json()["pin"]["id"] == body["pin"]["id"]

    def test_second_location_conflicts(self, client, make_user):
        user = make_user()
        headers = auth_headers(user.id)
        client.post("/pins", json=drop_payload(), headers=headers)

        response = client.post("/pins", json=drop_payload(latitude=NYC_LAT + 0.01), headers=headers)

        assert response.status_code == 409
        assert "current pin" in response.json()["detail"]

    def test_schedule_future_pin(self, client, make_user):
        user = make_user()
        arrival = utcnow() + timedelta(hours=2, minutes=10)

        response = client.post(
            "/pins",
            json=drop_payload(pin_type="future", arrival_time=arrival.isoformat()),
            headers=auth_headers(user.id),
        )

        assert response.status_code == 201
        pin = response.json()["pin"]
        assert pin["status"] == "scheduled"
        assert pin["countdown"]["text"] == "2h"

    def test_past_arrival_rejected(self, client, make_user):
        user = make_user()
        arrival = utcnow() - timedelta(hours=1)

        response = client.post(
            "/pins",
            json=drop_payload(pin_type="future", arrival_time=arrival.isoformat()),
            headers=auth_headers(user.id),
        )

        assert response.status_code == 400

    def test_out_of_range_latitude(self, client, make_user):
        user = make_user()

        response = client.post("/pins", json=drop_payload(latitude=95), headers=auth_headers(user.id))

        assert response.status_code == 422


class TestReadPins:
    def test_viewport(self, client, make_user):
        owner = make_user("Owner", level="discoverable")
        viewer = make_user("Viewer")
        client.post("/pins", json=drop_payload(), headers=auth_headers(owner.id))

        response = client.get("/pins", params=NYC, headers=auth_headers(viewer.id))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["pins"][0]["owner_id"] == owner.id
        assert body["pins"][0]["is_own"] is False

    def test_viewport_invalid_bounds(self, client, make_user):
        viewer = make_user()
        params = dict(NYC, south=41.0)

        response = client.get("/pins", params=params, headers=auth_headers(viewer.id))

        assert response.status_code == 400

    def test_my_pins(self, client, make_user):
        user = make_user()
        headers = auth_headers(user.id)
        client.post("/pins", json=drop_payload(), headers=headers)

        response = client.get("/pins/mine", headers=headers)

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_incoming(self, client, make_user):
        visitor = make_user("Visitor", level="discoverable")
        viewer = make_user("Viewer")
        arrival = utcnow() + timedelta(days=3)
        client.post(
            "/pins",
            json=drop_payload(pin_type="future", arrival_time=arrival.isoformat()),
            headers=auth_headers(visitor.id),
        )

        response = client.get("/pins/incoming", params=NYC, headers=auth_headers(viewer.id))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["this_week"][0]["owner"]["name"] == "Visitor"

    def test_single_pin_and_like(self, client, make_user):
        owner = make_user("Owner", level="discoverable")
        viewer = make_user("Viewer")
        pin_id = client.post("/pins", json=drop_payload(), headers=auth_headers(owner.id)).json()["pin"]["id"]

        response = client.get(f"/pins/{pin_id}", headers=auth_headers(viewer.id))
        assert response.status_code == 200

        liked = client.post(f"/pins/{pin_id}/like", headers=auth_headers(viewer.id))
        assert liked.json() == {"liked": True, "likes_count": 1}

    def test_hidden_pin_is_404(self, client, make_user):
        owner = make_user("Owner", level="ghost")
        viewer = make_user("Viewer")
        pin_id = client.post("/pins", json=drop_payload(), headers=auth_headers(owner.id)).json()["pin"]["id"]

        response = client.get(f"/pins/{pin_id}", headers=auth_headers(viewer.id))

        assert response.status_code == 404


class TestDeletePin:
    def test_delete_own_pin(self, client, make_user):
        user = make_user()
        headers = auth_headers(user.id)
        pin_id = client.post("/pins", json=drop_payload(), headers=headers).json()["pin"]["id"]

        assert client.delete(f"/pins/{pin_id}", headers=headers).status_code == 204
        assert client.delete(f"/pins/{pin_id}", headers=headers).status_code == 404

    def test_cannot_delete_others_pin(self, client, make_user):
        owner = make_user("Owner")
        other = make_user("Other")
        pin_id = client.post("/pins", json=drop_payload(), headers=auth_headers(owner.id)).json()["pin"]["id"]

        response = client.delete(f"/pins/{pin_id}", headers=auth_headers(other.id))

        assert response.status_code == 403
