"""
Hint Trigger Engine - Activates, deduplicates and retires scenario hints.

Three trigger kinds:
- keyword: a keyword appears in the last two assistant messages
- time: ``delay_seconds`` elapse after the most recent user message
- manual: the user asks for a hint; one unused manual hint is picked at random

A dismissed hint is retired for the rest of the session and never re-triggers.
Timers go through an explicit ``TimerScheduler`` so they can be cancelled on
teardown and faked in tests.
"""

import asyncio
import logging
import random
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, FrozenSet, List, Optional, Protocol, Sequence, Set

from ..models import ActiveHint, ChatMessage, ScenarioHint

logger = logging.getLogger(__name__)

DEFAULT_HINT_DELAY_SECONDS = 30.0
KEYWORD_WINDOW = 2  # assistant messages inspected for keyword triggers


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class TimerScheduler(ABC):
    """Arms cancellable one-shot timers."""

    @abstractmethod
    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_seconds`` unless cancelled."""
        pass


class AsyncioTimerScheduler(TimerScheduler):
    """Scheduler on top of ``loop.call_later``; must be used from the event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_seconds, callback)


class HintEngine:
    """
    Session-scoped hint state for one scenario.

    ``used_hint_ids`` only grows. ``visible_hints`` and ``remaining_manual_hints``
    are derived on every read.
    """

    def __init__(
        self,
        hints: Sequence[ScenarioHint],
        scheduler: Optional[TimerScheduler] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.hints: List[ScenarioHint] = list(hints)
        self._scheduler = scheduler
        self._clock = clock
        self._rng = rng or random.Random()
        self._active: Dict[str, ActiveHint] = {}
        self._used: Set[str] = set()
        self._timers: Dict[str, TimerHandle] = {}
        self._closed = False

    @property
    def used_hint_ids(self) -> FrozenSet[str]:
        return frozenset(self._used)

    @property
    def armed_hint_ids(self) -> FrozenSet[str]:
        return frozenset(self._timers)

    @property
    def active_hints(self) -> List[ActiveHint]:
        return list(self._active.values())

    @property
    def visible_hints(self) -> List[ActiveHint]:
        return [active for active in self._active.values() if not active.dismissed]

    @property
    def remaining_manual_hints(self) -> int:
        return sum(1 for hint in self.hints if hint.trigger == "manual" and hint.id not in self._used)

    def _activate(self, hint: ScenarioHint) -> Optional[ActiveHint]:
        if hint.id in self._used or hint.id in self._active:
            return None
        active = ActiveHint(hint=hint, triggered_at=self._clock(), dismissed=False)
        self._active[hint.id] = active
        logger.debug(f"Hint activated: {hint.id} ({hint.trigger})")
        return active

    def evaluate_keywords(self, messages: Sequence[ChatMessage]) -> List[ActiveHint]:
        """Activate keyword hints matching the latest assistant output. Returns the new ones."""
        assistant_messages = [message for message in messages if message.role == "assistant"]
        recent = " ".join(message.content.lower() for message in assistant_messages[-KEYWORD_WINDOW:])
        if not recent:
            return []

        activated = []
        for hint in self.hints:
            if hint.trigger != "keyword" or not hint.keywords or hint.id in self._used:
                continue
            if any(keyword.lower() in recent for keyword in hint.keywords if keyword):
                active = self._activate(hint)
                if active:
                    activated.append(active)
        return activated

    def on_user_message(self, timestamp: Optional[float] = None) -> None:
        """
        Restart the clock for time hints.

        Outstanding timers from the previous user turn are cancelled and
        re-armed, so each time hint owns at most one timer.
        """
        if self._closed or self._scheduler is None:
            return
        sent_at = self._clock() if timestamp is None else timestamp
        elapsed = max(0.0, self._clock() - sent_at)

        for hint in self.hints:
            if hint.trigger != "time" or hint.id in self._used or hint.id in self._active:
                continue
            self._cancel_timer(hint.id)
            delay = hint.delay_seconds if hint.delay_seconds else DEFAULT_HINT_DELAY_SECONDS
            self._timers[hint.id] = self._scheduler.schedule(
                max(0.0, delay - elapsed), self._make_timer_callback(hint)
            )

    def _make_timer_callback(self, hint: ScenarioHint) -> Callable[[], None]:
        def fire() -> None:
            self._timers.pop(hint.id, None)
            if self._closed:
                return
            self._activate(hint)
        return fire

    def _cancel_timer(self, hint_id: str) -> None:
        handle = self._timers.pop(hint_id, None)
        if handle is not None:
            handle.cancel()

    def request_manual_hint(self) -> Optional[ActiveHint]:
        """Activate a random unused manual hint, or return None when none remain."""
        candidates = [
            hint for hint in self.hints
            if hint.trigger == "manual" and hint.id not in self._used and hint.id not in self._active
        ]
        if not candidates:
            return None
        return self._activate(self._rng.choice(candidates))

    def dismiss(self, hint_id: str) -> bool:
        """Dismiss an active hint and retire it for the session."""
        active = self._active.get(hint_id)
        if active is None or active.dismissed:
            return False
        self._active[hint_id] = active.model_copy(update={"dismissed": True})
        self._used.add(hint_id)
        self._cancel_timer(hint_id)
        return True

    def close(self) -> None:
        """Cancel every armed timer. The engine ignores timers after this."""
        self._closed = True
        for hint_id in list(self._timers):
            self._cancel_timer(hint_id)
