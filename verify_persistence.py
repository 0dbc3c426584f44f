"""
Persistence smoke test against a real database.

Starts the API with the database storage backend, registers a vehicle and
reports a speeding position, then restarts the server and checks that the
vehicle, its trip history and the violation survived.
"""

import os
import signal
import subprocess
import sys
import time
from datetime import datetime, timedelta, timezone

import httpx

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
PLATE = "PERSIST-01"

SERVER_ENV = {**os.environ, "STORAGE_BACKEND": "database", "POSITION_SOURCE": "ingestion"}


def start_server():
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "fleettrack.app.main:app", "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=SERVER_ENV,
    )


def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for _ in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print(f"✅ Server is up (storage: {resp.json().get('storage')})")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def find_vehicle():
    resp = httpx.get(f"{BASE_URL}{API_PREFIX}/vehicles")
    resp.raise_for_status()
    return next((v for v in resp.json() if v["license_plate"] == PLATE), None)


def run_verification():
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = start_server()
    try:
        if not wait_for_server():
            stdout, stderr = proc.communicate(timeout=2)
            print("Server Stdout:", stdout.decode())
            print("Server Stderr:", stderr.decode())
            raise RuntimeError("Server start failed")

        print("\n--- [Step 2] Registering Vehicle ---")
        vehicle = find_vehicle()
        if vehicle is not None:
            print("⚠️ Vehicle already exists (persistence working from previous run?)")
        else:
            resp = httpx.post(f"{BASE_URL}{API_PREFIX}/vehicles", json={
                "name": "Persistence Truck",
                "license_plate": PLATE,
                "latitude": -23.5489,
                "longitude": -46.6388,
                "speed_limit": 60,
            })
            if resp.status_code != 201:
                raise RuntimeError(f"Registration failed: {resp.status_code} {resp.text}")
            vehicle = resp.json()
            print(f"✅ Vehicle registered: {vehicle['id']}")

        print("\n--- [Step 3] Reporting Speeding Position ---")
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/tracking", json={
            "license_plate": PLATE,
            "latitude": -23.5444,
            "longitude": -46.6388,
            "speed": 75,
        })
        resp.raise_for_status()
        print(f"✅ Position accepted, status={resp.json()['vehicle']['status']}")
    finally:
        print("\n--- [Step 4] Stopping Server ---")
        stop_server(proc)

    time.sleep(2)  # Wait for port release

    print("\n--- [Step 5] Restarting Server (Verification) ---")
    proc = start_server()
    try:
        if not wait_for_server():
            raise RuntimeError("Server restart failed")

        vehicle = find_vehicle()
        if vehicle is None:
            raise RuntimeError("Vehicle lost after restart")
        print(f"✅ Vehicle persisted (speed {vehicle['current_speed']} km/h)")

        now = datetime.now(timezone.utc)
        window = {"start_date": (now - timedelta(days=1)).isoformat(), "end_date": now.isoformat()}

        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/trips", params={"vehicle_id": vehicle["id"], **window})
        resp.raise_for_status()
        trips = resp.json()
        if not trips:
            raise RuntimeError("Location history lost after restart")
        print(f"✅ Trip rebuilt from {len(trips[0]['points'])} persisted samples")

        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/reports/violations", params=window)
        resp.raise_for_status()
        if not any(v["vehicle_id"] == vehicle["id"] for v in resp.json()):
            raise RuntimeError("Speed violation lost after restart")
        print("✅ Speed violation persisted")
    finally:
        print("\n--- [Step 6] Stopping Server ---")
        stop_server(proc)


if __name__ == "__main__":
    run_verification()
