"""
Driveway, vehicle, notification and demo endpoint tests.
"""


from driveway_hub.app.models.enums import UserRole
from driveway_hub.app.services.notification_service import NotificationService

from conftest import DRIVEWAY_LAT, DRIVEWAY_LNG, auth_headers, make_driveway, make_user

DRIVEWAY_PAYLOAD = {
    "title": "Sunny driveway",
    "address": "200 Mission St",
    "latitude": 37.7897,
    "longitude": -122.3972,
    "hourly_rate": 12.5,
    "max_vehicle_length": 220,
    "max_vehicle_width": 90,
    "has_ev_charging": True,
}


# --- Driveways ---

async def test_host_creates_driveway(client, host):
    response = await client.post("/api/driveways", headers=auth_headers(host), json=DRIVEWAY_PAYLOAD)

    assert response.status_code == 201
    body = response.json()
    assert body["host_id"] == host.id
    assert body["hourly_rate"] == 12.5
    assert body["listing_status"] == "active"
    assert body["is_available"] is True


async def test_driver_cannot_create_driveway(client, driver):
    response = await client.post("/api/driveways", headers=auth_headers(driver), json=DRIVEWAY_PAYLOAD)
    assert response.status_code == 403


async def test_driveway_validation(client, host):
    response = await client.post(
        "/api/driveways", headers=auth_headers(host), json=dict(DRIVEWAY_PAYLOAD, hourly_rate=0)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


async def test_list_filters(client, db_session, host, driver):
    near_ev = await make_driveway(db_session, host, has_ev_charging=True)
    near_plain = await make_driveway(db_session, host, latitude=DRIVEWAY_LAT + 0.02, longitude=DRIVEWAY_LNG)
    # Oakland, ~13 km away
    far = await make_driveway(db_session, host, latitude=37.8044, longitude=-122.2712, has_ev_charging=True)
    await make_driveway(db_session, host, is_available=False)
    headers = auth_headers(driver)

    response = await client.get("/api/driveways", headers=headers)
    assert [d["id"] for d in response.json()] == [near_ev.id, near_plain.id, far.id]

    response = await client.get("/api/driveways", headers=headers, params={"has_ev_charging": True})
    assert [d["id"] for d in response.json()] == [near_ev.id, far.id]

    response = await client.get(
        "/api/driveways", headers=headers,
        params={"latitude": DRIVEWAY_LAT, "longitude": DRIVEWAY_LNG, "radius_km": 5},
    )
    body = response.json()
    assert [d["id"] for d in body] == [near_ev.id, near_plain.id]
    assert body[0]["distance_km"] == 0
    assert 2.0 < body[1]["distance_km"] < 2.5


async def test_get_driveway(client, driver, driveway):
    response = await client.get(f"/api/driveways/{driveway.id}", headers=auth_headers(driver))
    assert response.status_code == 200
    assert response.json()["title"] == driveway.title

    response = await client.get("/api/driveways/9999", headers=auth_headers(driver))
    assert response.status_code == 404
    assert response.json()["code"] == "DRIVEWAY_NOT_FOUND"


async def test_availability_toggle_is_owner_only(client, db_session, driveway, host):
    other_host = await make_user(db_session, "other.host@example.com", UserRole.HOST)
    url = f"/api/driveways/{driveway.id}/availability"

    response = await client.patch(url, headers=auth_headers(other_host), json={"is_available": False})
    assert response.status_code == 403

    response = await client.patch(url, headers=auth_headers(host), json={"is_available": False})
    assert response.status_code == 200
    assert response.json()["is_available"] is False


# --- Vehicles ---

async def test_register_vehicle_from_vin(client, driver):
    headers = auth_headers(driver)
    response = await client.post("/api/users/vehicles", headers=headers, json={
        "display_name": "Daily", "vin": "5yj3e1ea7kf317000",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["vin"] == "5YJ3E1EA7KF317000"
    assert (body["model"], body["year"]) == ("Model 3", 2019)
    assert (body["length_inches"], body["width_inches"], body["height_inches"]) == (184.8, 72.8, 56.8)

    response = await client.get("/api/users/vehicles", headers=headers)
    assert [v["id"] for v in response.json()] == [body["id"]]


async def test_register_vehicle_keeps_given_dimensions(client, driver):
    response = await client.post("/api/users/vehicles", headers=auth_headers(driver), json={
        "model": "Model Y", "length_inches": 190,
    })
    body = response.json()
    assert body["length_inches"] == 190
    assert body["width_inches"] == 75.6


async def test_vehicles_are_private(client, db_session, driver, vehicle):
    other = await make_user(db_session, "other@example.com")
    response = await client.get("/api/users/vehicles", headers=auth_headers(other))
    assert response.json() == []


# --- Notifications ---

async def test_notifications_list_and_read(client, db_session, driver):
    first = await NotificationService.create_notification(db_session, driver.id, "Hello", "First")
    await NotificationService.create_notification(db_session, driver.id, "Hello again", "Second")
    await db_session.commit()
    headers = auth_headers(driver)

    response = await client.get("/api/notifications", headers=headers)
    assert len(response.json()) == 2

    response = await client.put(f"/api/notifications/{first.id}/read", headers=headers)
    assert response.status_code == 200

    response = await client.get("/api/notifications", headers=headers, params={"unread_only": True})
    assert [n["title"] for n in response.json()] == ["Hello again"]

    response = await client.put("/api/notifications/read-all", headers=headers)
    assert response.json()["count"] == 1


async def test_cannot_read_someone_elses_notification(client, db_session, driver, host):
    theirs = await NotificationService.create_notification(db_session, host.id, "Private", "For the host")
    await db_session.commit()

    response = await client.put(f"/api/notifications/{theirs.id}/read", headers=auth_headers(driver))
    assert response.status_code == 404
    assert response.json()["code"] == "NOTIFICATION_NOT_FOUND"


# --- Demo ---

async def test_demo_endpoints(client, driver, fake_clock):
    headers = auth_headers(driver)

    response = await client.get("/api/demo/state", headers=headers)
    assert response.json()["started"] is False

    response = await client.post("/api/demo/start", headers=headers)
    body = response.json()
    assert response.status_code == 200
    assert body["running"] is True
    assert body["phase"] == "setup"
    assert body["position"] is None
    assert body["events"][0]["message"] == "Host authorizing Tesla vehicle..."

    fake_clock.advance(300)
    body = (await client.get("/api/demo/state", headers=headers)).json()
    assert body["phase"] == "journey"
    assert body["position"]["distance"] < 25000

    body = (await client.post("/api/demo/stop", headers=headers)).json()
    assert body["running"] is False


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Correlation-ID" in response.headers
