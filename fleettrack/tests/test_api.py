"""
HTTP and WebSocket API tests.
"""

from fastapi.testclient import TestClient

from fleettrack.app.main import app
from fleettrack.tests.factories import at


async def _vehicle_by_plate(client, plate):
    response = await client.get("/v1/vehicles")
    return next(v for v in response.json() if v["license_plate"] == plate)


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["storage"] == "memory"
    assert "X-Correlation-ID" in response.headers


async def test_list_vehicles_returns_sample_fleet(client):
    response = await client.get("/v1/vehicles")

    assert response.status_code == 200
    plates = {v["license_plate"] for v in response.json()}
    assert {"ABC-1234", "DEF-5678", "PQR-1234"} <= plates
    assert len(plates) == 6


async def test_vehicle_crud(client):
    payload = {
        "name": "Truck 99",
        "license_plate": "XYZ-9999",
        "latitude": -23.5,
        "longitude": -46.6,
        "speed_limit": 70,
    }
    created = await client.post("/v1/vehicles", json=payload)
    assert created.status_code == 201
    vehicle_id = created.json()["id"]
    assert created.json()["status"] == "offline"

    patched = await client.patch(f"/v1/vehicles/{vehicle_id}", json={"speed_limit": 90})
    assert patched.status_code == 200
    assert patched.json()["speed_limit"] == 90
    assert patched.json()["name"] == "Truck 99"

    fetched = await client.get(f"/v1/vehicles/{vehicle_id}")
    assert fetched.json()["speed_limit"] == 90

    deleted = await client.delete(f"/v1/vehicles/{vehicle_id}")
    assert deleted.status_code == 204
    missing = await client.get(f"/v1/vehicles/{vehicle_id}")
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "ERR_NOT_FOUND_001"


async def test_duplicate_plate_is_400(client):
    payload = {"name": "Copy", "license_plate": "abc-1234", "latitude": 0, "longitude": 0}
    response = await client.post("/v1/vehicles", json=payload)

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"
    assert response.json()["details"]["field"] == "license_plate"


async def test_malformed_body_is_422(client):
    response = await client.post("/v1/vehicles", json={"name": "No plate"})

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


async def test_tracking_updates_vehicle(client):
    response = await client.post(
        "/v1/tracking",
        json={"license_plate": "ghi-9012", "latitude": -23.53, "longitude": -46.62, "speed": 40},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["vehicle"]["license_plate"] == "GHI-9012"
    assert body["vehicle"]["status"] == "moving"
    assert body["vehicle"]["ignition"] == "on"


async def test_tracking_unknown_plate_is_404(client):
    response = await client.post(
        "/v1/tracking",
        json={"license_plate": "NOPE-000", "latitude": 0, "longitude": 0, "speed": 10},
    )

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


async def test_tracking_out_of_range_is_rejected(client):
    response = await client.post(
        "/v1/tracking",
        json={"license_plate": "ABC-1234", "latitude": 200, "longitude": 0, "speed": 10},
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"
    assert response.json()["details"]["field"] == "latitude"

    vehicle = await _vehicle_by_plate(client, "ABC-1234")
    assert vehicle["latitude"] == -23.5489


async def test_tracking_negative_speed_and_accuracy_are_400(client):
    for extra in ({"speed": -1}, {"speed": 10, "accuracy": -5}):
        response = await client.post(
            "/v1/tracking",
            json={"license_plate": "ABC-1234", "latitude": -23.55, "longitude": -46.64, **extra},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "ERR_VALIDATION_001"


async def test_tracking_heading_is_wrapped(client):
    response = await client.post(
        "/v1/tracking",
        json={"license_plate": "ABC-1234", "latitude": -23.55, "longitude": -46.64, "speed": 10, "heading": 370},
    )

    assert response.status_code == 200
    assert response.json()["vehicle"]["heading"] == 10


async def test_speeding_shows_up_in_reports(client):
    # Van 02 has a 60 km/h limit
    await client.post(
        "/v1/tracking",
        json={"license_plate": "DEF-5678", "latitude": -23.56, "longitude": -46.65, "speed": 75},
    )

    violations = await client.get("/v1/reports/violations")
    assert violations.status_code == 200
    [violation] = violations.json()
    assert violation["excess_speed"] == 15

    stats = (await client.get("/v1/reports/speed-stats")).json()
    assert stats["total_violations"] == 1
    assert stats["top_violators"][0]["vehicle_name"] == "Van 02"


async def test_empty_window_reports(client):
    params = {"start_date": "2000-01-01T00:00:00Z", "end_date": "2000-01-02T00:00:00Z"}

    stats = (await client.get("/v1/reports/speed-stats", params=params)).json()
    assert stats["total_violations"] == 0
    assert stats["top_violators"] == []

    fleet = (await client.get("/v1/reports/fleet-stats", params=params)).json()
    assert fleet["total_vehicles"] == 6
    assert fleet["total_distance"] == 0
    assert fleet["most_active_vehicle"] is None


async def test_trips_endpoint(client):
    vehicle = await _vehicle_by_plate(client, "ABC-1234")
    ingestor = app.state.ingestor
    for seconds, speed, lat in [(0, 0, -23.5489), (120, 0, -23.5489), (180, 50, -23.5444)]:
        await ingestor.ingest_sample(vehicle["id"], lat, -46.6388, speed, recorded_at=at(seconds))

    response = await client.get("/v1/trips", params={
        "vehicle_id": vehicle["id"],
        "start_date": at(0).isoformat(),
        "end_date": at(600).isoformat(),
    })

    assert response.status_code == 200
    [trip] = response.json()
    assert trip["stops_count"] == 1
    assert trip["total_distance"] > 0
    assert [e["type"] for e in trip["events"]] == ["departure", "stop", "arrival"]


async def test_trips_unknown_vehicle_is_404(client):
    response = await client.get("/v1/trips", params={
        "vehicle_id": "missing",
        "start_date": at(0).isoformat(),
        "end_date": at(600).isoformat(),
    })
    assert response.status_code == 404


def test_websocket_streams_vehicle_updates():
    with TestClient(app) as client:
        with client.websocket_connect("/v1/ws") as websocket:
            initial = websocket.receive_json()
            assert initial["type"] == "vehicles"
            assert len(initial["data"]) == 6

            response = client.post(
                "/v1/tracking",
                json={"license_plate": "ABC-1234", "latitude": -23.55, "longitude": -46.64, "speed": 33},
            )
            assert response.status_code == 200

            update = websocket.receive_json()
            truck = next(v for v in update["data"] if v["license_plate"] == "ABC-1234")
            assert truck["current_speed"] == 33
