import asyncio
from typing import Optional, Sequence

from relaybot.logger import get_logger


logger = get_logger("relaybot.irc.connector")

DEFAULT_DELAYS = (10.0, 30.0, 60.0, 120.0, 300.0)


class Connector:
    """
    Supervises reconnection for a lifecycle running in "connector" mode.

    After each lost connection the next delay from ``delays`` is used (the
    last one repeats); the schedule starts over once a connection reaches
    registration.
    """

    def __init__(self, delays: Sequence[float] = DEFAULT_DELAYS):
        if not delays:
            raise ValueError("connector needs at least one delay")
        self.delays = tuple(delays)
        self.attempt = 0
        self._timer: Optional[asyncio.TimerHandle] = None

    def next_delay(self) -> float:
        return self.delays[min(self.attempt, len(self.delays) - 1)]

    def connection_established(self, lifecycle):
        if self.attempt:
            logger.info("Reconnected after %d attempt(s)", self.attempt)
        self.attempt = 0

    def connection_lost(self, lifecycle):
        self.cancel()

        delay = self.next_delay()
        self.attempt += 1
        logger.info("Reconnect attempt %d in %ss", self.attempt, delay)

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, lifecycle.connect)

    def cancel(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
