import asyncio
from typing import Callable, Optional

from relaybot.logger import get_logger


logger = get_logger("relaybot.workers.keepalive")


class KeepaliveProbe:
    """
    Periodic liveness check for a connection.

    Every ``interval`` seconds: when no inbound traffic was recorded since
    the previous check, ``probe`` is called to provoke an answer from the
    server. The traffic flag is then cleared and the timer re-armed,
    whatever the probe did.
    """

    def __init__(self, interval: float, probe: Callable[[], None]):
        self.interval = interval
        self.probe = probe
        self.traffic_seen = False
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    def mark_traffic(self):
        self.traffic_seen = True

    def start(self):
        self.cancel()
        self.traffic_seen = False
        self._schedule()

    def cancel(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self):
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.interval, self._fire)

    def _fire(self):
        try:
            if not self.traffic_seen:
                logger.info("No traffic for %ss, probing connection", self.interval)
                self.probe()
        except Exception:
            logger.exception("Keepalive probe failed")
        finally:
            self.traffic_seen = False
            self._schedule()
