import httpx
from typing import Any, Optional
from urllib.parse import quote

from relaybot.logger import get_logger


logger = get_logger("relaybot.tracker.api")

USER_AGENT = "relaybot/1.0"


class TrackerUnavailable(Exception):
    """
    Raised when the tracker cannot be reached or answers with a body
    that is not JSON.
    """
    pass


class TrackerClient:
    """
    Minimal Jira REST (v2) client.

    Only issue summaries are read. A client may be handed an
    ``httpx.AsyncClient`` to share (tests pass one built on
    ``httpx.MockTransport``); otherwise a short-lived client is opened
    per request.
    """

    def __init__(
        self,
        host: str,
        timeout: float = 10.0,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.base_api = host.rstrip("/") + "/rest/api/2"
        self.timeout = timeout
        self._http = http

    async def _get_json(self, endpoint: str, params: Optional[dict] = None) -> Any:
        url = f"{self.base_api}{endpoint}"
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}

        try:
            if self._http is not None:
                response = await self._http.get(
                    url, params=params, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(follow_redirects=True) as client:
                    response = await client.get(
                        url, params=params, headers=headers, timeout=self.timeout
                    )
        except httpx.HTTPError as exc:
            logger.warning("Tracker request failed for %s: %s", endpoint, exc)
            raise TrackerUnavailable(f"Request failed: {endpoint}") from exc

        # Error statuses still carry a JSON errorMessages payload worth reading
        if response.status_code >= 400:
            logger.info("Tracker answered %s for %s", response.status_code, endpoint)

        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Non-JSON response from tracker for %s", endpoint)
            raise TrackerUnavailable(f"Undecodable response: {endpoint}") from exc

    async def get_issue_summary(self, key: str) -> Any:
        return await self._get_json(
            f"/issue/{quote(key, safe='')}",
            params={"fields": "summary"},
        )
