"""
Integration tests for the HTTP API.
The app runs against temporary storage and a scripted completion provider.
"""

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from discovery.api.deps import AppServices, get_services
from discovery.core import SessionRegistry
from discovery.core.rate_limit import InMemoryRateLimitBackend, RateLimiter
from discovery.llm import CompletionService
from discovery.main import app
from discovery.storage import ScenarioStore, SessionStore

from conftest import FakeClock, ScriptedProvider

END_REPLY = "[END_MEETING]I don't think this meeting is productive. Let's stop here.[/END_MEETING]"


def sse_events(response):
    return [
        json.loads(line[len("data: "):])
        for line in response.text.splitlines()
        if line.startswith("data: ")
    ]


@pytest.fixture
def provider():
    return ScriptedProvider(default_reply="Good question. Let me think about that.")


@pytest.fixture
def services(storage, provider):
    scenarios = ScenarioStore(storage)
    asyncio.run(scenarios.seed_defaults())
    return AppServices(
        storage=storage,
        scenarios=scenarios,
        sessions=SessionStore(storage),
        registry=SessionRegistry(),
        rate_limiter=None,
        completion=CompletionService(provider, fallback_model="fallback-model"),
    )


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()
    services.registry.close_all()


def chat_body(messages=None, scenario_id="kindrell"):
    return {
        "messages": messages if messages is not None else [
            {"role": "assistant", "content": "Hi. I'm Gareth."},
            {"role": "user", "content": "What does onboarding look like today?"},
        ],
        "scenarioId": scenario_id,
    }


class TestRoot:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestScenariosAPI:

    def test_list_hides_system_prompt(self, client):
        response = client.get("/scenarios")
        assert response.status_code == 200
        data = response.json()
        assert {s["id"] for s in data} == {"kindrell", "panther", "idm"}
        assert all("system_prompt" not in s for s in data)

    def test_get_one(self, client):
        response = client.get("/scenarios/kindrell")
        assert response.status_code == 200
        data = response.json()
        assert data["max_turns"] == 15
        assert data["hint_count"] == 5

    @pytest.mark.parametrize("scenario_id", ["ghost", "Not-Valid!"])
    def test_unknown(self, client, scenario_id):
        response = client.get(f"/scenarios/{scenario_id}")
        assert response.status_code == 404
        assert response.json()["detail"] == "Invalid scenario"


class TestChatAPI:

    def test_streams_reply(self, client, provider):
        provider.replies = ["Honestly, it takes weeks."]
        response = client.post("/chat", json=chat_body())
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Honestly, it takes weeks."

        sent = provider.calls[0]["messages"]
        assert sent[0].role == "system"
        assert "Gareth Lawson" in sent[0].content
        assert sent[-1].content == "What does onboarding look like today?"

    def test_falls_back_to_second_model(self, client, provider):
        provider.failing = {"primary-model"}
        response = client.post("/chat", json=chat_body())
        assert response.status_code == 200
        assert [c["model"] for c in provider.calls] == ["primary-model", "fallback-model"]

    def test_all_models_down(self, client, provider):
        provider.failing = {"primary-model", "fallback-model"}
        response = client.post("/chat", json=chat_body())
        assert response.status_code == 503
        assert response.json()["detail"] == "AI service unavailable"

    def test_not_configured(self, client, services):
        services.completion = None
        response = client.post("/chat", json=chat_body())
        assert response.status_code == 503
        assert response.json()["detail"] == "AI service not configured"

    @pytest.mark.parametrize("body, reason", [
        (chat_body(messages=[]), "Messages required"),
        (chat_body(messages="hello"), "Messages required"),
        ({"messages": [{"role": "user", "content": "hi"}]}, "Scenario ID required"),
        (chat_body(scenario_id="Kindrell!"), "Invalid scenario"),
        (chat_body(scenario_id="ghost"), "Invalid scenario"),
        (chat_body(messages=[{"role": "user", "content": "q"}] * 51), "Too many messages"),
        (chat_body(messages=[{"role": "user", "content": "x" * 501}]), "Message too long"),
        (chat_body(messages=[{"role": "robot", "content": "beep"}]), "Invalid message format"),
        (chat_body(messages=[{"role": "user", "content": 5}]), "Invalid message format"),
        (chat_body(messages=["just text"]), "Invalid message format"),
    ])
    def test_validation(self, client, body, reason):
        response = client.post("/chat", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == reason

    def test_assistant_content_is_not_length_bounded(self, client):
        body = chat_body(messages=[
            {"role": "assistant", "content": "x" * 2000},
            {"role": "user", "content": "y" * 500},
        ])
        assert client.post("/chat", json=body).status_code == 200

    def test_fifty_messages_allowed(self, client):
        body = chat_body(messages=[{"role": "user", "content": "q"}] * 50)
        assert client.post("/chat", json=body).status_code == 200

    def test_rate_limited(self, client, services):
        services.rate_limiter = RateLimiter(InMemoryRateLimitBackend(), max_requests=2, window_seconds=60)
        headers = {"X-Forwarded-For": "203.0.113.9"}
        for _ in range(2):
            assert client.post("/chat", json=chat_body(), headers=headers).status_code == 200

        response = client.post("/chat", json=chat_body(), headers=headers)
        assert response.status_code == 429
        assert response.json()["detail"] == "Too Many Requests"
        assert response.headers["Retry-After"] == "60"

        other = client.post("/chat", json=chat_body(), headers={"X-Forwarded-For": "198.51.100.1"})
        assert other.status_code == 200


class TestEvaluateAPI:

    def test_completion_and_state(self, client):
        response = client.post("/sessions/evaluate", json={
            "scenarioId": "kindrell",
            "messages": [
                {"role": "assistant", "content": "Hi"},
                {"role": "user", "content": "What is the current process?"},
                {"role": "assistant", "content": "Slow."},
            ],
        })
        assert response.status_code == 200
        data = response.json()
        assert "current-process" in data["completion"]["obtained"]
        assert data["completion"]["required_total"] == 4
        assert data["completion"]["percentage"] == 25
        assert data["state"]["user_turn_count"] == 1
        assert data["state"]["turns_remaining"] == 14
        assert data["meeting_ended"] is False

    def test_end_marker_on_latest_reply(self, client):
        response = client.post("/sessions/evaluate", json={
            "scenarioId": "kindrell",
            "messages": [{"role": "user", "content": "whatever"}, {"role": "assistant", "content": END_REPLY}],
        })
        data = response.json()
        assert data["meeting_ended"] is True
        assert data["state"]["is_ended"] is True
        assert data["final_message"] == "I don't think this meeting is productive. Let's stop here."

    def test_unknown_scenario(self, client):
        response = client.post("/sessions/evaluate", json={"scenarioId": "ghost", "messages": []})
        assert response.status_code == 400


class TestSessionsAPI:

    def start(self, client, scenario_id="kindrell", headers=None):
        response = client.post("/sessions", json={"scenarioId": scenario_id}, headers=headers)
        assert response.status_code == 201
        return response.json()

    def test_no_session(self, client):
        response = client.get("/sessions/current")
        assert response.status_code == 404
        assert response.json()["detail"] == "No session"

    def test_start(self, client):
        snapshot = self.start(client)
        assert snapshot["scenario_id"] == "kindrell"
        assert snapshot["messages"][0]["id"] == "opening"
        assert snapshot["state"]["status"] == "active"
        assert snapshot["state"]["max_turns"] == 15
        assert snapshot["remaining_manual_hints"] == 2

    def test_start_unknown_scenario(self, client):
        response = client.post("/sessions", json={"scenarioId": "ghost"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid scenario"

    def test_turn_streams_events_and_updates_snapshot(self, client, provider):
        self.start(client)
        provider.replies = ["It's all very slow and manual."]
        response = client.post("/sessions/current/messages", json={"content": "What is your current process?"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")

        events = sse_events(response)
        assert {e["type"] for e in events[:-1]} == {"content"}
        assert "".join(e["content"] for e in events[:-1]) == "It's all very slow and manual."
        done = events[-1]
        assert done["type"] == "done"
        snapshot = done["snapshot"]
        assert snapshot["state"]["user_turn_count"] == 1
        assert [d["id"] for d in snapshot["newly_obtained"]] == ["current-process"]
        assert [h["hint"]["id"] for h in snapshot["visible_hints"]] == ["hint-systems"]

        current = client.get("/sessions/current").json()
        assert [m["role"] for m in current["messages"]] == ["assistant", "user", "assistant"]
        assert current["newly_obtained"] == []

    def test_persona_ends_meeting(self, client, provider):
        self.start(client)
        provider.replies = [END_REPLY]
        events = sse_events(client.post("/sessions/current/messages", json={"content": "You're useless"}))
        snapshot = events[-1]["snapshot"]
        assert snapshot["state"]["is_ended"] is True
        assert snapshot["state"]["ended_by_control_signal"] is True
        assert snapshot["messages"][-1]["content"] == "I don't think this meeting is productive. Let's stop here."
        assert snapshot["final_message"] == snapshot["messages"][-1]["content"]

        response = client.post("/sessions/current/messages", json={"content": "Sorry!"})
        assert response.status_code == 409
        assert response.json()["detail"] == "Session ended"

    def test_message_validation(self, client):
        self.start(client)
        response = client.post("/sessions/current/messages", json={"content": "x" * 501})
        assert response.status_code == 400
        assert response.json()["detail"] == "Message too long"
        response = client.post("/sessions/current/messages", json={"content": "   "})
        assert response.status_code == 400

    def test_failed_reply_keeps_user_message_and_can_be_retried(self, client, provider):
        self.start(client)
        provider.failing = {"primary-model", "fallback-model"}
        response = client.post("/sessions/current/messages", json={"content": "Who is involved?"})
        assert response.status_code == 503

        current = client.get("/sessions/current").json()
        assert current["messages"][-1]["content"] == "Who is involved?"
        assert current["state"]["user_turn_count"] == 1

        provider.failing = set()
        provider.replies = ["Compliance and ops."]
        events = sse_events(client.post("/sessions/current/reply"))
        assert events[-1]["type"] == "done"
        assert events[-1]["snapshot"]["messages"][-1]["content"] == "Compliance and ops."
        assert events[-1]["snapshot"]["state"]["user_turn_count"] == 1

    def test_retry_without_pending_turn(self, client):
        self.start(client)
        response = client.post("/sessions/current/reply")
        assert response.status_code == 409
        assert response.json()["detail"] == "No pending turn"

    def test_mid_stream_failure_sends_error_event(self, client, provider):
        self.start(client)
        provider.replies = ["Well, the thing is..."]
        provider.fail_midway = True
        events = sse_events(client.post("/sessions/current/messages", json={"content": "Tell me more"}))
        assert events[0]["type"] == "content"
        assert events[-1]["type"] == "error"
        assert events[-1]["error"] == "AI service unavailable"
        assert events[-1]["guidance"]["can_retry"] is True

        current = client.get("/sessions/current").json()
        assert current["messages"][-1]["role"] == "user"

    def test_reply_in_progress(self, client, services):
        self.start(client)
        services.registry.get("unknown").reply_in_progress = True
        response = client.post("/sessions/current/messages", json={"content": "Hello?"})
        assert response.status_code == 409
        assert response.json()["detail"] == "Reply in progress"

    def test_resume_after_restart(self, client, services, provider):
        self.start(client)
        client.post("/sessions/current/messages", json={"content": "What software do you use?"})
        services.registry.close_all()

        response = client.get("/sessions/current")
        assert response.status_code == 200
        data = response.json()
        assert len(data["messages"]) == 3
        assert "legacy-systems" in data["completion"]["obtained"]

    def use_clock(self, services, storage):
        clock = FakeClock()
        services.sessions = SessionStore(storage, expiry_seconds=30 * 60, clock=clock)
        services.registry = SessionRegistry(expiry_seconds=30 * 60, clock=clock)
        return clock

    def test_expired_session_is_not_resumed(self, client, services, storage):
        clock = self.use_clock(services, storage)
        self.start(client)
        services.registry.close_all()
        clock.advance(30 * 60 + 1)
        assert client.get("/sessions/current").status_code == 404

    def test_abandoned_live_session_expires(self, client, services, storage):
        clock = self.use_clock(services, storage)
        self.start(client)
        clock.advance(3 * 60 * 60)
        assert client.get("/sessions/current").status_code == 404
        assert client.post("/sessions/current/messages", json={"content": "Still there?"}).status_code == 404
        assert len(services.registry) == 0

    def test_activity_keeps_live_session_fresh(self, client, services, storage):
        clock = self.use_clock(services, storage)
        self.start(client)
        clock.advance(20 * 60)
        client.post("/sessions/current/messages", json={"content": "What software do you use?"})
        clock.advance(20 * 60)
        assert client.get("/sessions/current").status_code == 200

    def test_stale_sessions_do_not_accumulate(self, client, services, storage):
        clock = self.use_clock(services, storage)
        for i in range(50):
            self.start(client, headers={"X-Forwarded-For": f"10.1.0.{i}"})
        assert len(services.registry) == 50
        clock.advance(30 * 60 + 1)
        self.start(client)
        assert len(services.registry) == 1

    def test_corrupt_record_reads_as_no_session(self, client, services, storage):
        asyncio.run(storage.save(services.sessions._path("unknown"), "{broken"))
        assert client.get("/sessions/current").status_code == 404

    def test_sessions_are_per_client(self, client):
        client.post("/sessions", json={"scenarioId": "panther"}, headers={"X-Forwarded-For": "10.0.0.1"})
        assert client.get("/sessions/current").status_code == 404
        response = client.get("/sessions/current", headers={"X-Forwarded-For": "10.0.0.1"})
        assert response.json()["scenario_id"] == "panther"

    def test_end_session(self, client):
        self.start(client)
        response = client.delete("/sessions/current")
        assert response.json() == {"cleared": True}
        assert client.get("/sessions/current").status_code == 404
        assert client.delete("/sessions/current").json() == {"cleared": False}

    def test_manual_hints(self, client):
        self.start(client)
        first = client.post("/sessions/current/hints")
        second = client.post("/sessions/current/hints")
        assert first.status_code == 200 and second.status_code == 200
        assert {first.json()["hint"]["id"], second.json()["hint"]["id"]} == {"hint-process", "hint-impact"}

        third = client.post("/sessions/current/hints")
        assert third.status_code == 404
        assert third.json()["detail"] == "No hints remaining"

        panel = client.get("/sessions/current/hints").json()
        # The opening line mentions slowness, so the keyword hint is already showing
        assert {h["hint"]["id"] for h in panel["visible_hints"]} == {"hint-systems", "hint-process", "hint-impact"}
        assert panel["remaining_manual_hints"] == 2

    def test_dismiss_hint(self, client):
        self.start(client)
        hint_id = client.post("/sessions/current/hints").json()["hint"]["id"]
        response = client.post(f"/sessions/current/hints/{hint_id}/dismiss")
        assert response.status_code == 200
        data = response.json()
        assert [h["hint"]["id"] for h in data["visible_hints"]] == ["hint-systems"]
        assert data["remaining_manual_hints"] == 1

        again = client.post(f"/sessions/current/hints/{hint_id}/dismiss")
        assert again.status_code == 404
        assert again.json()["detail"] == "Hint not active"
