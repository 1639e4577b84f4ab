import asyncio
from typing import Awaitable, Callable, Dict, Optional

from relaybot.logger import get_logger


logger = get_logger("relaybot.cache.issues")

Loader = Callable[[str], Awaitable[str]]


def _retrieve_exception(task: asyncio.Task):
    # Every waiter may be gone by the time a failed load finishes
    if not task.cancelled():
        task.exception()


class IssueCache:
    """
    Process-lifetime memo of issue key -> rendered description.

    Only successful loads are stored and an entry is never replaced.
    Concurrent lookups of a key that is not cached yet share one loader
    task, so a key is fetched successfully at most once per process.
    Loader exceptions propagate to every waiter and leave no entry behind.
    """

    def __init__(self):
        self._entries: Dict[str, str] = {}
        self._pending: Dict[str, asyncio.Task] = {}

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_load(self, key: str, loader: Loader) -> str:
        cached = self._entries.get(key)
        if cached is not None:
            return cached

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, loader))
            task.add_done_callback(_retrieve_exception)
            self._pending[key] = task
        else:
            logger.debug("Joining in-flight fetch for %s", key)

        # A cancelled waiter must not cancel the fetch other waiters share
        return await asyncio.shield(task)

    async def _load(self, key: str, loader: Loader) -> str:
        try:
            description = await loader(key)
        finally:
            self._pending.pop(key, None)

        self._entries.setdefault(key, description)
        return self._entries[key]
