"""
Shared test fixtures and configuration.
"""

import pytest
import os

# Set test environment variables before importing app modules
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/discovery_test_data")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LLM_THINKING_DELAY_MS", "0")

from discovery.llm.base import LLMProvider  # noqa: E402
from discovery.models import ChatMessage, RequiredDetail, Scenario, ScenarioHint  # noqa: E402
from discovery.storage import LocalStorage  # noqa: E402


class ScriptedProvider(LLMProvider):
    """Streams canned replies; models listed in ``failing`` raise before any text."""

    def __init__(self, replies=None, failing=(), fail_midway=False, default_reply=""):
        super().__init__(api_key="test", model="primary-model")
        self.replies = list(replies or [])
        self.failing = set(failing)
        self.fail_midway = fail_midway
        self.default_reply = default_reply
        self.calls = []

    async def chat_completion_stream(self, messages, temperature=None, max_tokens=None, **kwargs):
        model = kwargs.get("model", self.model)
        self.calls.append({"model": model, "messages": messages, "max_tokens": max_tokens})
        if model in self.failing:
            raise RuntimeError(f"{model} is down")
        reply = self.replies.pop(0) if self.replies else self.default_reply
        for i in range(0, len(reply), 5):
            yield reply[i:i + 5]
            if self.fail_midway:
                raise RuntimeError("connection reset")


class FakeTimer:
    def __init__(self, delay_seconds, callback):
        self.delay_seconds = delay_seconds
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback()


class FakeScheduler:
    """Records timers instead of arming them; tests fire them by hand."""

    def __init__(self):
        self.timers = []

    def schedule(self, delay_seconds, callback):
        timer = FakeTimer(delay_seconds, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [timer for timer in self.timers if not timer.cancelled]


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def user(content, **kwargs):
    return ChatMessage(role="user", content=content, **kwargs)


def assistant(content, **kwargs):
    return ChatMessage(role="assistant", content=content, **kwargs)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


@pytest.fixture
def details():
    return [
        RequiredDetail(id="process", label="Process", keywords=["process", "workflow"]),
        RequiredDetail(id="pain", label="Pain Points", keywords=["slow", "problem"]),
        RequiredDetail(id="systems", label="Systems", keywords=["system", "API"]),
        RequiredDetail(id="budget", label="Budget", keywords=["budget"], priority="optional"),
    ]


@pytest.fixture
def hints():
    return [
        ScenarioHint(id="kw-slow", trigger="keyword", keywords=["slow"], text="Dig into the slowness."),
        ScenarioHint(id="kw-legacy", trigger="keyword", keywords=["Legacy"], text="Ask about legacy systems."),
        ScenarioHint(id="time-30", trigger="time", delay_seconds=30, text="Ask about workarounds."),
        ScenarioHint(id="time-default", trigger="time", text="Ask who else is involved."),
        ScenarioHint(id="manual-a", trigger="manual", text="Ask about the steps."),
        ScenarioHint(id="manual-b", trigger="manual", text="Ask about business impact."),
    ]


@pytest.fixture
def scenario(details, hints):
    return Scenario(
        id="acme",
        name="Dana Reyes",
        role="Operations Lead",
        company="Acme Logistics",
        opening_line="Hi, our dispatch is a mess.",
        system_prompt="You are Dana. Be brief.",
        max_turns=3,
        required_details=details,
        hints=hints,
    )
