"""
Cleanup - Periodic sweep of expired in-memory sessions and rate limit entries.
"""

import asyncio
import logging
from typing import Optional

from .rate_limit import RateLimiter
from .registry import SessionRegistry

logger = logging.getLogger(__name__)


class StateCleaner:
    """Drops live sessions and rate limit entries whose window has passed."""

    def __init__(self, registry: SessionRegistry, rate_limiter: Optional[RateLimiter] = None):
        self.registry = registry
        self.rate_limiter = rate_limiter

    async def prune_expired(self) -> int:
        """Run one sweep and return the number of entries removed."""
        removed = self.registry.prune()
        if self.rate_limiter is not None:
            removed += await self.rate_limiter.prune()
        return removed

    async def run_periodic_cleanup(self, interval_seconds: float) -> None:
        """
        Repeatedly prune expired state at the given interval until cancelled.

        Args:
            interval_seconds: Seconds to sleep between cleanup runs.
        """
        while True:
            try:
                await asyncio.sleep(interval_seconds)
                removed = await self.prune_expired()
                if removed:
                    logger.info(f"Cleanup removed {removed} expired entries")
            except asyncio.CancelledError:
                break
            except Exception as e:
                # Keep the loop alive; the next tick retries
                logger.error(f"Cleanup failed: {e}", exc_info=True)
