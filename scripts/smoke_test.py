"""
Smoke test against a running server.

Walks the demo flow end to end:
1. Health check
2. Host login, driveway listing
3. Driver login, vehicle registration
4. Booking creation and lookup
5. Demo simulation start/state/stop
"""

import sys
from datetime import datetime, timedelta, timezone

import httpx

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/api"


def print_step(step, msg):
    print(f"[{step}] {msg}")


def fail(msg):
    print(f"❌ FAILURE: {msg}")
    sys.exit(1)


def success(msg):
    print(f"✅ {msg}")


def expect(resp: httpx.Response, status_code: int, what: str) -> dict:
    if resp.status_code != status_code:
        fail(f"{what}: expected {status_code}, got {resp.status_code} {resp.text}")
    return resp.json()


def login(client: httpx.Client, email: str) -> dict:
    body = expect(client.post(f"{API_PREFIX}/auth/login", json={"email": email}), 200, f"login {email}")
    return {"Authorization": f"Bearer {body['token']}"}


def main():
    print("🚀 Starting smoke test...")
    suffix = datetime.now(timezone.utc).strftime("%H%M%S")

    with httpx.Client(base_url=BASE_URL, timeout=10) as client:
        print_step("HEALTH", "Checking /health...")
        expect(client.get("/health"), 200, "health")
        success("Server healthy")

        print_step("HOST", "Registering host and listing a driveway...")
        host = expect(client.post(f"{API_PREFIX}/auth/register", json={
            "email": f"host-{suffix}@example.com", "first_name": "Smoke", "last_name": "Host", "role": "host",
        }), 201, "register host")
        host_headers = {"Authorization": f"Bearer {host['token']}"}
        driveway = expect(client.post(f"{API_PREFIX}/driveways", headers=host_headers, json={
            "title": "Smoke test driveway",
            "address": "100 Test St",
            "latitude": 37.7749,
            "longitude": -122.4194,
            "hourly_rate": 15,
            "max_vehicle_length": 240,
            "max_vehicle_width": 96,
        }), 201, "create driveway")
        success(f"Driveway {driveway['id']} listed")

        print_step("DRIVER", "Driver login and vehicle registration...")
        driver_headers = login(client, f"driver-{suffix}@example.com")
        vehicle = expect(client.post(f"{API_PREFIX}/users/vehicles", headers=driver_headers, json={
            "display_name": "Smoke Model 3", "vin": "5YJ3E1EA7KF000001",
        }), 201, "register vehicle")
        success(f"Vehicle {vehicle['id']} registered as {vehicle['model']}")

        print_step("BOOKING", "Creating a booking...")
        start = (datetime.now(timezone.utc) + timedelta(days=2)).replace(minute=0, second=0, microsecond=0)
        booking = expect(client.post(f"{API_PREFIX}/bookings/create", headers=driver_headers, json={
            "vehicle_id": vehicle["id"],
            "driveway_id": driveway["id"],
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=4)).isoformat(),
        }), 201, "create booking")
        if booking["total_amount"] != 69.0:
            fail(f"Unexpected total {booking['total_amount']}")
        expect(client.get(f"{API_PREFIX}/bookings/{booking['booking_id']}", headers=host_headers), 200, "host view")
        success(f"Booking {booking['booking_reference']} created ({booking['status']})")

        print_step("DEMO", "Starting demo simulation...")
        state = expect(client.post(f"{API_PREFIX}/demo/start", headers=driver_headers), 200, "demo start")
        if state["phase"] != "setup":
            fail(f"Demo should start in setup, got {state['phase']}")
        expect(client.post(f"{API_PREFIX}/demo/stop", headers=driver_headers), 200, "demo stop")
        success("Demo simulation responds")

    print("\n🎉 Smoke test passed")


if __name__ == "__main__":
    main()
