"""Tests for the HTTP API."""

import base64
import time

from fastapi.testclient import TestClient

from poker_tracker.api.app import STORAGE_WARNING_HEADER, create_app
from poker_tracker.services.ticker import ElapsedTicker
from tests.conftest import FailingKeyValueStore, FakeAnalysisClient, FakeClock

PNG = b"\x89PNG\r\n\x1a\n" + b"board"


def _session_body(**overrides) -> dict[str, object]:
    body: dict[str, object] = {
        "date": "2024-05-01",
        "stakes": "1/2 NL",
        "location": "Local Casino",
        "duration_hours": 4,
        "profit": 120,
        "tags": ["Deep stacked"],
    }
    body.update(overrides)
    return body


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_live_session_flow(container, clock: FakeClock) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/live/start", json={"stakes": "1/2 NL", "location": "Local Casino"}
    )
    assert response.status_code == 200
    assert response.json()["state"] == "Running"

    clock.advance(10)
    client.post("/live/pause")
    clock.advance(5)
    paused = client.get("/live").json()
    assert paused["state"] == "Paused"
    assert paused["elapsed_seconds"] == 10.0

    client.post("/live/resume")
    clock.advance(5)
    running = client.put("/live/profit", json={"profit": 85}).json()
    assert running["elapsed_seconds"] == 15.0
    assert running["display"] == "00:00:15"
    assert running["session"]["current_profit"] == 85

    stopped = client.post("/live/stop")
    assert stopped.status_code == 200
    session = stopped.json()["session"]
    assert session["profit"] == 85
    assert session["tags"] == ["Live Tracked"]
    assert client.get("/live").json()["state"] == "Idle"
    listed = client.get("/sessions").json()["sessions"]
    assert [item["id"] for item in listed] == [session["id"]]


def test_live_transitions_from_idle_conflict(container) -> None:
    client = TestClient(create_app(container))

    assert client.post("/live/pause").status_code == 409
    assert client.post("/live/resume").status_code == 409
    assert client.post("/live/stop").status_code == 409


def test_live_start_requires_stakes(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/live/start", json={"stakes": "", "location": "Aria"})

    assert response.status_code == 422


def test_manual_session_crud(container) -> None:
    client = TestClient(create_app(container))
    encoded = base64.b64encode(PNG).decode()

    created = client.post(
        "/sessions",
        json=_session_body(media=[{"data": encoded}], media_category="Table View"),
    )
    assert created.status_code == 201
    session = created.json()["session"]
    session_id = session["id"]
    assert session["media_items"][0]["mime_type"] == "image/png"
    assert session["media_items"][0]["category"] == "Table View"

    media = client.get(
        f"/sessions/{session_id}/media", params={"category": "Table View"}
    ).json()["media"]
    assert len(media) == 1
    assert client.get(
        f"/sessions/{session_id}/media", params={"category": "Audio Note"}
    ).json()["media"] == []

    notes = client.patch(
        f"/sessions/{session_id}/notes", json={"notes": "Tough river spot."}
    )
    assert notes.json()["session"]["notes"] == "Tough river spot."

    prompt = client.get(f"/sessions/{session_id}/prompt").json()
    assert "Tough river spot." in prompt["prompt"]
    assert prompt["media"]["mime_type"] == "image/png"

    assert client.get("/sessions", params={"q": "deep"}).json()["sessions"]
    assert client.get("/sessions", params={"q": "bellagio"}).json()["sessions"] == []

    assert client.delete(f"/sessions/{session_id}").status_code == 200
    assert client.get(f"/sessions/{session_id}").status_code == 404


def test_manual_session_rejects_bad_media(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/sessions", json=_session_body(media=[{"data": "%%%"}]))

    assert response.status_code == 422
    assert client.get("/sessions").json()["sessions"] == []


def test_stats_endpoint(container) -> None:
    client = TestClient(create_app(container))
    for profit, hours, day in [(50, 2, "2024-05-01"), (-20, 1, "2024-05-02")]:
        client.post(
            "/sessions",
            json=_session_body(profit=profit, duration_hours=hours, date=day),
        )
    client.post("/sessions", json=_session_body(profit=30, duration_hours=1))

    stats = client.get("/stats").json()["stats"]

    assert stats["total_profit"] == 60
    assert stats["total_hours"] == 4
    assert stats["hourly_rate"] == 15
    assert [point["cumulative_profit"] for point in stats["series"]] == [50, 80, 60]


def test_analysis_endpoint_records_history(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/analysis",
        json={"prompt": "[CO] opens, I flat on BTN", "mode": "sizing-focused"},
    )

    assert response.status_code == 200
    assert response.json()["result"]["strategic_tags"] == [
        "Hero Call",
        "BTN",
        "Value Bet",
    ]
    history = client.get("/analysis/history").json()["history"]
    assert len(history) == 1
    assert history[0]["prompt"] == "[CO] opens, I flat on BTN"


def test_analysis_endpoint_surfaces_errors(
    container, analysis_client: FakeAnalysisClient
) -> None:
    analysis_client.payload = {"strategicTags": []}
    client = TestClient(create_app(container))

    response = client.post("/analysis", json={"prompt": "hand"})

    assert response.status_code == 502
    assert client.get("/analysis/history").json()["history"] == []


def test_sizing_endpoint(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/sizing", params={"pot": 100, "fraction": 0.75})

    assert response.json() == {
        "pot": 100.0,
        "sizes": {"1/3": 33, "1/2": 50, "2/3": 67, "POT": 100, "150%": 150},
        "custom": 75,
    }
    assert client.get("/sizing", params={"pot": "nan"}).status_code == 422


def test_storage_failures_are_reported_as_warnings(container) -> None:
    container.store.backend = FailingKeyValueStore()
    client = TestClient(create_app(container))

    response = client.post(
        "/live/start", json={"stakes": "1/2 NL", "location": "Local Casino"}
    )

    assert response.status_code == 200
    assert "disk unavailable" in response.headers[STORAGE_WARNING_HEADER]
    assert client.get("/live").json()["state"] == "Running"


def test_sizing_endpoint_rejects_overflowing_pot(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/sizing", params={"pot": 1.5e308})

    assert response.status_code == 422
    assert response.json()["detail"] == "Bet size is out of range"


def test_manual_session_accepts_data_url_media(container) -> None:
    client = TestClient(create_app(container))
    url = "data:image/png;base64," + base64.b64encode(PNG).decode()

    created = client.post("/sessions", json=_session_body(media=[{"data": url}]))

    assert created.status_code == 201
    item = created.json()["session"]["media_items"][0]
    assert item["mime_type"] == "image/png"
    assert base64.b64decode(item["encoded_data"]) == PNG


def test_live_display_is_driven_by_ticker(container, clock: FakeClock) -> None:
    ticker = ElapsedTicker(
        on_tick=container.live_display.update, period_seconds=0.01
    )
    container.live_tracker.ticker = ticker
    container.close_resources = ticker.aclose

    with TestClient(create_app(container)) as client:
        client.post(
            "/live/start", json={"stakes": "1/2 NL", "location": "Local Casino"}
        )
        clock.advance(42)
        time.sleep(0.1)
        running = client.get("/live").json()

        stopped = client.post("/live/stop")

    assert running["ticked_seconds"] == 42.0
    assert running["display"] == "00:00:42"
    assert stopped.status_code == 200
    assert not ticker.running
    assert container.live_display.elapsed_seconds == 0.0
