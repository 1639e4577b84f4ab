from typing import Any, Optional, Tuple

from relaybot.cache.history import lookup_in_snapshot
from relaybot.cache.issues import IssueCache
from relaybot.commands.errors import (
    FetchFailure,
    InvalidReferenceShape,
    RemoteError,
    UnknownReference,
)
from relaybot.logger import get_logger
from relaybot.tracker.api import TrackerClient, TrackerUnavailable
from relaybot.tracker.keys import NUMERIC_REFERENCE, is_issue_key


logger = get_logger("relaybot.tracker.resolver")


def format_description(key: str, summary: str, browse_url: str) -> str:
    return f"[{key}] {summary} (URL: {browse_url}/{key})"


def _summary_of(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    fields = payload.get("fields")
    if not isinstance(fields, dict):
        return None
    summary = fields.get("summary")
    return summary if isinstance(summary, str) else None


def _error_reason(payload: Any) -> str:
    messages = payload.get("errorMessages") if isinstance(payload, dict) else None
    if isinstance(messages, list) and messages and messages[0]:
        return str(messages[0]).lower()
    return "unknown"


class IssueResolver:
    """
    Turns an ``issue`` command argument into a description line.

    Accepted arguments: nothing (same as "1"), a history position N
    (the Nth most recent key seen in the channel) or an issue key.
    Failures are raised as BotError subclasses.
    """

    def __init__(
        self,
        cache: IssueCache,
        tracker: TrackerClient,
        browse_url: str,
        max_digits: int = 5,
    ):
        self.cache = cache
        self.tracker = tracker
        self.browse_url = browse_url.rstrip("/")
        self.max_digits = max_digits

    async def resolve(self, argument: Optional[str], history: Tuple[str, ...]) -> str:
        argument = argument or "1"
        candidate = argument.upper()

        if NUMERIC_REFERENCE.match(candidate):
            key = lookup_in_snapshot(history, int(candidate))
            if key is None:
                raise UnknownReference(candidate)
            return await self.describe(key)

        if is_issue_key(candidate, self.max_digits):
            return await self.describe(candidate)

        raise InvalidReferenceShape(argument)

    async def describe(self, key: str) -> str:
        return await self.cache.get_or_load(key, self._fetch_description)

    async def _fetch_description(self, key: str) -> str:
        try:
            payload = await self.tracker.get_issue_summary(key)
        except TrackerUnavailable as exc:
            logger.warning("Tracker unavailable for %s: %s", key, exc)
            raise FetchFailure() from exc

        summary = _summary_of(payload)
        if summary is not None:
            logger.info("Fetched summary for %s", key)
            return format_description(key, summary, self.browse_url)

        reason = _error_reason(payload)
        logger.info("Tracker refused %s: %s", key, reason)
        raise RemoteError(reason)
