# catalog_app/core/refresh.py
import asyncio
import logging

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """
    Owns the generation token shared by the creation workflow and the
    collection view. A successful creation bumps it; the view re-fetches
    whenever it sees a value it has not seen before.
    """

    def __init__(self, generation: int = 0):
        self._generation = int(generation)
        self._changed = asyncio.Event()

    @property
    def generation(self) -> int:
        return self._generation

    def bump(self) -> int:
        self._generation += 1
        logger.debug("refresh generation -> %s", self._generation)
        # wake current waiters, later waiters get a fresh event
        event, self._changed = self._changed, asyncio.Event()
        event.set()
        return self._generation

    async def wait_for_change(self, since: int) -> int:
        """Suspend until the generation differs from `since`; return the new value."""
        while self._generation == since:
            await self._changed.wait()
        return self._generation
