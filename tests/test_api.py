"""Tests for the FastAPI surface."""
import asyncio
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from fanplay import main
from fanplay.errors import EngineUnavailableError

from conftest import MATCH_URL, FakeGateway, guide_json

CONFIRMED = "2008 Final: A vs B"


@pytest.fixture
def api(monkeypatch):
    fake = FakeGateway()
    monkeypatch.setattr(main, "gateway", fake)
    monkeypatch.setattr(main, "sessions", {})
    monkeypatch.setattr(main, "session_seen", {})
    return TestClient(main.app), fake


def test_options_lists_every_persona():
    client = TestClient(main.app)
    body = client.get("/options").json()
    assert [p["id"] for p in body["personas"]] == ["beginner", "new_fan", "hardcore", "coach"]
    assert "Baseball" in [s["id"] for s in body["sports"]]


def test_health(api):
    client, _ = api
    body = client.get("/health").json()
    assert body["ready"] is True
    assert body["sessions"] == 0


class TestAnalyzeEndpoint:

    def test_url_then_persona_switch(self, api):
        client, fake = api
        fake.queue(guide_json(event=CONFIRMED))
        fake.queue(guide_json(event="Another final"))

        r1 = client.post("/analyze", data={"sport": "Tennis", "persona": "beginner", "url": MATCH_URL})
        assert r1.status_code == 200
        sid = r1.json()["sessionId"]
        assert r1.json()["refresh"] is False
        assert r1.json()["result"]["identifiedEvent"] == CONFIRMED

        r2 = client.post("/analyze", data={
            "sport": "Tennis", "persona": "hardcore", "url": MATCH_URL, "session_id": sid,
        })
        assert r2.status_code == 200
        assert r2.json()["refresh"] is True
        result = r2.json()["result"]
        assert result["identifiedEvent"] == CONFIRMED
        assert result["identificationOverridden"] is True
        assert CONFIRMED in fake.calls[1]["instruction"]

    def test_file_upload(self, api):
        client, fake = api
        fake.queue(guide_json())
        r = client.post(
            "/analyze",
            data={"sport": "Soccer", "persona": "coach"},
            files={"file": ("goal.mp4", b"\x00\x00\x00\x18ftyp", "video/mp4")},
        )
        assert r.status_code == 200
        inline = fake.calls[0]["parts"][0]["inlineData"]
        assert inline["mimeType"] == "video/mp4"

    def test_missing_source(self, api):
        client, fake = api
        r = client.post("/analyze", data={"sport": "Tennis", "persona": "beginner"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Please provide a link or upload a file."
        assert fake.calls == []

    def test_unknown_persona(self, api):
        client, _ = api
        r = client.post("/analyze", data={"sport": "Tennis", "persona": "pundit", "url": MATCH_URL})
        assert r.status_code == 400

    def test_malformed_engine_output(self, api):
        client, fake = api
        fake.queue("no json here")
        r = client.post("/analyze", data={"sport": "Tennis", "persona": "beginner", "url": MATCH_URL})
        assert r.status_code == 422
        assert "clearer video" in r.json()["detail"]

    def test_engine_unavailable(self, api):
        client, fake = api
        fake.queue(EngineUnavailableError())
        r = client.post("/analyze", data={"sport": "Tennis", "persona": "beginner", "url": MATCH_URL})
        assert r.status_code == 502

    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(main, "gateway", None)
        client = TestClient(main.app)
        r = client.post("/analyze", data={"sport": "Tennis", "persona": "beginner", "url": MATCH_URL})
        assert r.status_code == 503


def test_drop_session(api):
    client, fake = api
    fake.queue(guide_json(event=CONFIRMED))
    sid = client.post(
        "/analyze", data={"sport": "Tennis", "persona": "beginner", "url": MATCH_URL},
    ).json()["sessionId"]

    assert client.delete(f"/sessions/{sid}").status_code == 200
    assert sid not in main.sessions
    assert client.delete(f"/sessions/{sid}").status_code == 404


# ---------------------------------------------------------------------------
# Session bookkeeping
# ---------------------------------------------------------------------------

TENNIS = {"sport": "Tennis", "persona": "beginner", "url": MATCH_URL}


class TestSessionStore:

    def test_rejected_requests_store_nothing(self, api):
        client, fake = api
        for _ in range(50):
            r = client.post("/analyze", data={"sport": "Tennis", "persona": "beginner"})
            assert r.status_code == 400
        for i in range(50):
            r = client.post("/analyze", data={
                "sport": "Tennis", "persona": "pundit", "url": MATCH_URL, "session_id": f"made-up-{i}",
            })
            assert r.status_code == 400
        fake.queue(EngineUnavailableError())
        fake.queue("no json here")
        assert client.post("/analyze", data=TENNIS).status_code == 502
        assert client.post("/analyze", data={**TENNIS, "session_id": "made-up"}).status_code == 422

        assert len(main.sessions) == 0
        assert len(main.session_seen) == 0

    def test_unknown_session_id_gets_server_id(self, api):
        client, fake = api
        fake.queue(guide_json(event=CONFIRMED))
        r = client.post("/analyze", data={**TENNIS, "session_id": "made-up"})
        assert r.status_code == 200
        sid = r.json()["sessionId"]
        assert sid != "made-up"
        assert list(main.sessions) == [sid]

    def test_cap_evicts_least_recently_used(self, api, monkeypatch):
        client, fake = api
        monkeypatch.setattr(main.Config, "MAX_SESSIONS", 2)
        for _ in range(4):
            fake.queue(guide_json(event=CONFIRMED))

        first = client.post("/analyze", data=TENNIS).json()["sessionId"]
        second = client.post("/analyze", data=TENNIS).json()["sessionId"]
        # Touching the first makes the second the oldest
        assert client.post("/analyze", data={**TENNIS, "session_id": first}).json()["sessionId"] == first
        third = client.post("/analyze", data=TENNIS).json()["sessionId"]

        assert list(main.sessions) == [first, third]
        assert second not in main.session_seen

    def test_idle_session_expires(self, api, monkeypatch):
        client, fake = api
        monkeypatch.setattr(main.Config, "SESSION_TTL_SECONDS", 60)
        fake.queue(guide_json(event=CONFIRMED))
        fake.queue(guide_json(event="Another final"))

        sid = client.post("/analyze", data=TENNIS).json()["sessionId"]
        main.session_seen[sid] = time.monotonic() - 120

        r = client.post("/analyze", data={**TENNIS, "persona": "coach", "session_id": sid})
        assert r.status_code == 200
        assert r.json()["sessionId"] != sid
        assert r.json()["refresh"] is False
        assert CONFIRMED not in fake.calls[1]["instruction"]
        assert sid not in main.sessions


def test_overlapping_request_is_superseded(api):
    _, fake = api

    async def wait_for_calls(n):
        for _ in range(500):
            if len(fake.calls) >= n:
                return
            await asyncio.sleep(0.01)
        raise AssertionError(f"engine saw {len(fake.calls)} calls, expected {n}")

    async def scenario():
        transport = httpx.ASGITransport(app=main.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://fanplay.test") as client:
            fake.queue(guide_json(event=CONFIRMED))
            sid = (await client.post("/analyze", data=TENNIS)).json()["sessionId"]

            fake.queue(guide_json(event="Fresh"))
            fake.gate = asyncio.Event()
            first = asyncio.ensure_future(
                client.post("/analyze", data={**TENNIS, "session_id": sid}))
            await wait_for_calls(2)
            second = asyncio.ensure_future(
                client.post("/analyze", data={**TENNIS, "persona": "coach", "session_id": sid}))
            await wait_for_calls(3)
            fake.gate.set()
            return sid, await asyncio.gather(first, second)

    sid, (first, second) = asyncio.run(scenario())

    assert first.status_code == 409
    assert first.json()["detail"] == "This analysis was replaced by a newer request."
    assert second.status_code == 200
    assert second.json()["sessionId"] == sid
    assert second.json()["result"]["identifiedEvent"] == CONFIRMED
