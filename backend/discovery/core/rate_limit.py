"""
Rate Limiter - Fixed-window request admission keyed by client identity.

The limiter holds no counters itself; they live in a backend object that is
created once per process and injected:
- InMemoryRateLimitBackend: single instance, non-durable, prunes expired entries
- StorageRateLimitBackend: entries kept in a shared StorageInterface so several
  instances see the same counters

Expired entries are garbage-collected by a sweep that `RateLimiter.check` runs
at most once per window, and by the periodic cleanup task.
"""

import asyncio
import hashlib
import json
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Mapping, Optional

from ..storage import StorageInterface

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 20
DEFAULT_WINDOW_SECONDS = 60.0
UNKNOWN_CLIENT = "unknown"


@dataclass
class RateLimitEntry:
    identifier: str
    count: int
    reset_at: float  # epoch seconds

    def is_expired(self, now: float) -> bool:
        return self.reset_at <= now


@dataclass(frozen=True)
class RateLimitResult:
    ok: bool
    retry_after_ms: int

    @property
    def retry_after_seconds(self) -> int:
        """Value for a Retry-After header (whole seconds, at least 1 when denied)."""
        if self.ok:
            return 0
        return max(1, math.ceil(self.retry_after_ms / 1000))


class RateLimitBackend(ABC):
    """Stores one counter per identifier. ``hit`` must be atomic per identifier."""

    @abstractmethod
    async def hit(self, identifier: str, now: float, window_seconds: float) -> RateLimitEntry:
        """
        Count one request.

        Starts a fresh window (count=1) when the identifier is unknown or its
        window has elapsed, otherwise increments the counter.
        """
        pass

    @abstractmethod
    async def prune(self, now: float) -> int:
        """Drop expired entries. Returns how many were removed."""
        pass


def _next_entry(entry: Optional[RateLimitEntry], identifier: str, now: float, window_seconds: float) -> RateLimitEntry:
    if entry is None or entry.is_expired(now):
        return RateLimitEntry(identifier=identifier, count=1, reset_at=now + window_seconds)
    return RateLimitEntry(identifier=identifier, count=entry.count + 1, reset_at=entry.reset_at)


class InMemoryRateLimitBackend(RateLimitBackend):
    """Process-local counters. Expired entries are pruned on every hit."""

    def __init__(self):
        self._entries: Dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def hit(self, identifier: str, now: float, window_seconds: float) -> RateLimitEntry:
        await self.prune(now)
        entry = _next_entry(self._entries.get(identifier), identifier, now, window_seconds)
        self._entries[identifier] = entry
        return entry

    async def prune(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)


class StorageRateLimitBackend(RateLimitBackend):
    """
    Counters stored as JSON documents in a shared storage backend.

    Read-modify-write is serialised by a lock within this process; atomicity
    across processes is up to the underlying store.
    """

    def __init__(self, storage: StorageInterface, prefix: str = "rate_limits"):
        self.storage = storage
        self.prefix = prefix
        self._lock = asyncio.Lock()

    def _path(self, identifier: str) -> str:
        digest = hashlib.sha256(identifier.encode("utf-8")).hexdigest()
        return f"{self.prefix}/{digest}.json"

    async def _read(self, path: str) -> Optional[RateLimitEntry]:
        content = await self.storage.load(path)
        if content is None:
            return None
        try:
            return RateLimitEntry(**json.loads(content.decode("utf-8")))
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable rate limit entry {path}: {e}")
            return None

    async def hit(self, identifier: str, now: float, window_seconds: float) -> RateLimitEntry:
        path = self._path(identifier)
        async with self._lock:
            entry = _next_entry(await self._read(path), identifier, now, window_seconds)
            await self.storage.save(path, json.dumps(asdict(entry)))
        return entry

    async def prune(self, now: float) -> int:
        removed = 0
        async with self._lock:
            for path in await self.storage.list(self.prefix, pattern="*.json"):
                entry = await self._read(path)
                if entry is None or entry.is_expired(now):
                    if await self.storage.delete(path):
                        removed += 1
        return removed


class RateLimiter:
    """At most ``max_requests`` per ``window_seconds`` per identifier."""

    def __init__(
        self,
        backend: RateLimitBackend,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._next_sweep_at: Optional[float] = None

    async def _sweep_if_due(self, now: float) -> None:
        # Expired entries of other identifiers are dropped at most once per window
        if self._next_sweep_at is not None and now < self._next_sweep_at:
            return
        self._next_sweep_at = now + self.window_seconds
        removed = await self.backend.prune(now)
        if removed:
            logger.debug(f"Pruned {removed} expired rate limit entries")

    async def check(self, identifier: str) -> RateLimitResult:
        now = self._clock()
        await self._sweep_if_due(now)
        entry = await self.backend.hit(identifier, now, self.window_seconds)
        if entry.count <= self.max_requests:
            return RateLimitResult(ok=True, retry_after_ms=0)

        retry_after_ms = max(0, round((entry.reset_at - now) * 1000))
        logger.warning(
            "Rate limit exceeded",
            extra={"extra_fields": {
                "identifier": identifier,
                "count": entry.count,
                "retry_after_ms": retry_after_ms,
            }}
        )
        return RateLimitResult(ok=False, retry_after_ms=retry_after_ms)

    async def prune(self) -> int:
        return await self.backend.prune(self._clock())


def get_client_identifier(headers: Mapping[str, str]) -> str:
    """
    Identify the caller from proxy headers.

    First x-forwarded-for entry, then x-real-ip, else one shared "unknown" bucket.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return UNKNOWN_CLIENT
