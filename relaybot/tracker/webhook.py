import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from relaybot.irc import formatting
from relaybot.logger import get_logger
from relaybot.tracker.keys import project_of


logger = get_logger("relaybot.tracker.webhook")

ISSUE_CREATED = "jira:issue_created"


class MalformedWebhook(Exception):
    """
    Raised when a webhook body is not JSON or lacks a field the
    notification needs.
    """
    pass


@dataclass(frozen=True)
class CreatedIssue:
    key: str
    summary: str
    display_name: str
    login: Optional[str] = None

    @property
    def reporter(self) -> str:
        if not self.login or self.login == self.display_name:
            return self.display_name
        return f"{self.display_name}/{self.login}"


def parse_body(raw_body: bytes) -> Dict[str, Any]:
    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedWebhook("Body is not valid JSON") from exc

    if not isinstance(payload, dict):
        raise MalformedWebhook("Body is not a JSON object")

    return payload


def _text(container: Any, name: str) -> str:
    value = container.get(name) if isinstance(container, dict) else None
    if not isinstance(value, str) or not value:
        raise MalformedWebhook(f"Missing field: {name}")
    return value


def extract_created_issue(payload: Dict[str, Any]) -> Optional[CreatedIssue]:
    """
    Pull the notification fields out of an issue-created event.

    Returns None for any other event type.
    """
    if payload.get("webhookEvent") != ISSUE_CREATED:
        return None

    issue = payload.get("issue")
    user = payload.get("user")

    fields = issue.get("fields") if isinstance(issue, dict) else None
    login = user.get("name") if isinstance(user, dict) else None

    return CreatedIssue(
        key=_text(issue, "key"),
        summary=_text(fields, "summary"),
        display_name=_text(user, "displayName"),
        login=login if isinstance(login, str) and login else None,
    )


def is_allowed_project(key: str, projects: Sequence[str]) -> bool:
    if not projects:
        return True
    return project_of(key) in projects


def format_created_notice(issue: CreatedIssue, browse_url: str) -> str:
    url = f"{browse_url.rstrip('/')}/{issue.key}"

    return (
        f"[{formatting.red(issue.key)}] "
        f"{formatting.green(issue.summary)} "
        f"{formatting.grey('created by ' + issue.reporter)} "
        f"({formatting.light_blue(url)})"
    )


def handle_tracker_event(
    raw_body: bytes,
    *,
    channel: str,
    browse_url: str,
    projects: Sequence[str],
    send: Callable[[str, str], Any],
) -> Optional[str]:
    """
    Relay an issue-created webhook into the channel.

    Returns the message sent, or None when the event was ignored. Never
    raises: the HTTP side acknowledges every request regardless.
    """
    try:
        logger.info("Incoming tracker webhook request: %s", raw_body[:2000].decode("utf-8", "replace"))

        payload = parse_body(raw_body)
        issue = extract_created_issue(payload)

        if issue is None:
            logger.info("Ignoring tracker event: %s", payload.get("webhookEvent"))
            return None

        logger.info(
            "Extracted [%s] %s by %s",
            issue.key,
            issue.summary,
            issue.reporter,
        )

        if not is_allowed_project(issue.key, projects):
            logger.info("Project of %s is not relayed", issue.key)
            return None

        notice = format_created_notice(issue, browse_url)
        logger.info("Relaying to %s: %s", channel, formatting.strip_formatting(notice))
        send(channel, notice)
        return notice

    except MalformedWebhook as exc:
        logger.warning("Malformed tracker webhook: %s", exc)
        return None
    except Exception:
        # Never crash webhook processing
        logger.exception("Unhandled error while processing tracker webhook")
        return None
