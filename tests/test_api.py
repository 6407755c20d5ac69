"""
HTTP API tests
"""

import cv2
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lot_tool.demo_lot import render_demo_lot
from smart_parking.api.router import init_router, router
from smart_parking.config import AppConfig
from smart_parking.main import build_session
from smart_parking.state.spot_manager import seed_layout


@pytest.fixture
def session():
    return build_session(AppConfig())


@pytest.fixture
def client(session):
    # Router only, without the lifespan that starts the tick loops
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    init_router(session)
    return TestClient(app)


def upload(client, image):
    ok, buf = cv2.imencode(".png", image)
    assert ok
    return client.post(
        "/api/v1/lot/image",
        files={"file": ("lot.png", buf.tobytes(), "image/png")},
    )


def test_health(client):
    body = client.get("/api/v1/health").json()
    assert body["status"] == "healthy"
    assert body["simulation_running"] is True


def test_status(client):
    body = client.get("/api/v1/status").json()
    assert body["stats"]["total"] == 10
    assert body["stats"]["available"] == 10
    assert len(body["spots"]) == 10
    assert body["target_spot_id"] is None


def test_get_spot(client):
    assert client.get("/api/v1/spots/A4").json()["category"] == "ev"
    assert client.get("/api/v1/spots/Q1").status_code == 404


def test_reserve_release(client):
    assert client.post("/api/v1/spots/B2/reserve").json()["status"] == "reserved"
    assert client.post("/api/v1/spots/B2/reserve").status_code == 409
    assert client.delete("/api/v1/spots/B2/reserve").json()["status"] == "available"
    assert client.post("/api/v1/spots/nope/reserve").status_code == 404


def test_upload_and_annotated_image(client):
    assert client.get("/api/v1/lot/image/annotated").status_code == 404

    resp = upload(client, render_demo_lot(seed_layout(), ["A3", "B2"]))
    body = resp.json()

    assert resp.status_code == 200
    assert body["applied"] is True
    assert body["occupied"] == ["A3", "B2"]

    regions = client.get("/api/v1/lot/classification").json()
    a3 = next(r for r in regions if r["spot_id"] == "A3")
    assert a3["occupied"] is True
    assert a3["rule"] is not None

    annotated = client.get("/api/v1/lot/image/annotated")
    assert annotated.status_code == 200
    assert annotated.headers["content-type"] == "image/jpeg"


def test_upload_garbage(client):
    resp = client.post(
        "/api/v1/lot/image",
        files={"file": ("lot.png", b"garbage", "image/png")},
    )
    assert resp.status_code == 400


def test_upload_keeps_reserved(client):
    client.post("/api/v1/spots/A3/reserve")
    upload(client, render_demo_lot(seed_layout(), ["A3"]))

    assert client.get("/api/v1/spots/A3").json()["status"] == "reserved"


def test_navigation_flow(client, session):
    resp = client.post("/api/v1/navigation/nearest", params={"category": "accessible"})
    body = resp.json()
    assert body["assigned"] is True
    assert body["spot"]["id"] == "A5"

    instruction = client.get("/api/v1/navigation/instruction").json()
    assert instruction["phase"] == "guiding"
    assert instruction["target_spot_id"] == "A5"

    cleared = client.delete("/api/v1/navigation/target").json()
    assert cleared["phase"] == "idle"
    assert cleared["target_spot_id"] is None


def test_navigation_no_spot_is_not_an_error(client):
    upload(client, render_demo_lot(seed_layout(), ["A4"]))

    resp = client.post("/api/v1/navigation/nearest", params={"category": "ev"})
    assert resp.status_code == 200
    assert resp.json()["assigned"] is False


def test_navigation_bad_category(client):
    assert client.post("/api/v1/navigation/nearest", params={"category": "bus"}).status_code == 422


def test_navigation_target_errors(client):
    assert client.post("/api/v1/navigation/target/ZZ").status_code == 404
    upload(client, render_demo_lot(seed_layout(), ["B1"]))
    assert client.post("/api/v1/navigation/target/B1").status_code == 409


def test_vehicle_input(client, session):
    body = client.put("/api/v1/vehicle/input", json={"keys": ["ArrowUp", "ArrowLeft"]}).json()
    assert body["pressed"] == ["forward", "left"]

    session.physics_tick()
    assert client.get("/api/v1/vehicle").json()["vehicle"]["heading"] == pytest.approx(357)

    reset = client.post("/api/v1/vehicle/reset").json()
    assert reset["pressed"] == []
    assert reset["vehicle"]["x"] == 5


def test_audio_empty_without_speech(client):
    assert client.get("/api/v1/navigation/audio").status_code == 204


def test_insight_fallback(client):
    body = client.get("/api/v1/insight").json()
    assert body["summary"] == AppConfig().services.insight_fallback
    assert body["stats"]["total"] == 10


def test_insight_with_malformed_url_uses_fallback():
    config = AppConfig()
    config.services.insight_url = "http://a:b:c/insight"
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    init_router(build_session(config))

    resp = TestClient(app).get("/api/v1/insight")
    assert resp.status_code == 200
    assert resp.json()["summary"] == config.services.insight_fallback


def test_logs_and_metrics(client):
    assert client.get("/api/v1/logs").json() == {"entries": []}

    metrics = client.get("/api/v1/metrics")
    assert metrics.status_code == 200
    assert "parking_spots_total" in metrics.text
