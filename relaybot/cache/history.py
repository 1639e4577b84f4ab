from collections import deque
from typing import Iterable, Optional, Tuple

from relaybot.logger import get_logger


logger = get_logger("relaybot.cache.history")

DEFAULT_CAPACITY = 15


class RecentKeyHistory:
    """
    Sliding window of issue keys mentioned in the channel.

    Oldest keys fall off once capacity is exceeded. Positions are 1-based
    from the newest entry: ``lookup(1)`` is the most recently seen key.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("history capacity must be positive")
        self._keys: deque = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._keys.maxlen

    def extend(self, keys: Iterable[str]):
        added = 0
        for key in keys:
            self._keys.append(key)
            added += 1

        if added:
            logger.debug("History now holds %d keys (last: %s)", len(self._keys), self._keys[-1])

    def lookup(self, position: int) -> Optional[str]:
        return lookup_in_snapshot(self.snapshot(), position)

    def snapshot(self) -> Tuple[str, ...]:
        return tuple(self._keys)

    def __len__(self) -> int:
        return len(self._keys)


def lookup_in_snapshot(snapshot: Tuple[str, ...], position: int) -> Optional[str]:
    if position < 1 or position > len(snapshot):
        return None
    return snapshot[-position]
