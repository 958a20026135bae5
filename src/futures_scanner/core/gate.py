"""Concurrency gate bounding in-flight symbol evaluations."""

import asyncio
from contextlib import asynccontextmanager
import logging

logger = logging.getLogger(__name__)


class ConcurrencyGate:
    """Async semaphore of fixed width that tracks in-flight work."""

    def __init__(self, name: str, limit: int):
        """Initialize concurrency gate."""
        if limit < 1:
            raise ValueError("Concurrency limit must be at least 1")
        self.name = name
        self.limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self._in_flight = 0
        self._peak = 0
        logger.debug(f"Concurrency gate '{name}' created (limit: {limit})")

    async def acquire(self) -> None:
        """Wait for a free slot."""
        await self._semaphore.acquire()
        self._in_flight += 1
        self._peak = max(self._peak, self._in_flight)
        logger.debug(f"Gate '{self.name}' slot acquired (in flight: {self._in_flight})")

    def release(self) -> None:
        """Free a slot."""
        self._in_flight -= 1
        self._semaphore.release()
        logger.debug(f"Gate '{self.name}' slot released (in flight: {self._in_flight})")

    @asynccontextmanager
    async def slot(self):
        """Context manager holding one slot for the duration of the block."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    def in_flight(self) -> int:
        """Get number of slots currently held."""
        return self._in_flight

    def peak(self) -> int:
        """Get highest number of slots held at once."""
        return self._peak
