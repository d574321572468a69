"""
Session Store - One resumable conversation slot per client.

A record holds the scenario id, the full transcript and the save time. It is
resumable for a fixed window after the last save; stale or corrupt records are
discarded and read as "no session".
"""

import hashlib
import json
import logging
import time
from typing import Callable, List, Optional

from pydantic import ValidationError

from ..models import ChatMessage, StoredSession
from .interface import StorageInterface

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 30 * 60


class SessionStore:
    """Saves, resumes and clears the single session slot of a client."""

    def __init__(
        self,
        storage: StorageInterface,
        expiry_seconds: float = DEFAULT_EXPIRY_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.expiry_seconds = expiry_seconds
        self.sessions_dir = "sessions"
        self._clock = clock

    def _path(self, client_key: str) -> str:
        digest = hashlib.sha256(client_key.encode('utf-8')).hexdigest()
        return f"{self.sessions_dir}/{digest}.json"

    def is_expired(self, saved_at: float) -> bool:
        return self._clock() - saved_at > self.expiry_seconds

    async def save(self, client_key: str, scenario_id: str, messages: List[ChatMessage]) -> bool:
        record = StoredSession(scenario_id=scenario_id, messages=messages, saved_at=self._clock())
        saved = await self.storage.save(self._path(client_key), record.model_dump_json())
        if not saved:
            logger.warning(f"Could not persist session for scenario {scenario_id}")
        return saved

    async def load(self, client_key: str) -> Optional[StoredSession]:
        """Return the stored session if present, well-formed and fresh."""
        path = self._path(client_key)
        content = await self.storage.load(path)
        if content is None:
            return None

        try:
            record = StoredSession.model_validate(json.loads(content.decode('utf-8')))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Ignoring malformed stored session: {e}")
            return None

        if not record.scenario_id:
            logger.warning("Ignoring stored session without scenario id")
            return None

        if self.is_expired(record.saved_at):
            logger.info(
                "Stored session expired",
                extra={"extra_fields": {"scenario_id": record.scenario_id, "saved_at": record.saved_at}}
            )
            await self.storage.delete(path)
            return None

        return record

    async def clear(self, client_key: str) -> bool:
        return await self.storage.delete(self._path(client_key))
