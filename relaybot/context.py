from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import httpx

from relaybot import settings
from relaybot.cache.history import RecentKeyHistory
from relaybot.cache.issues import IssueCache
from relaybot.commands.registry import CommandEntry, default_commands
from relaybot.tables import ItemKeyTable, TopicTable
from relaybot.tracker.api import TrackerClient
from relaybot.tracker.resolver import IssueResolver


@dataclass
class BotContext:
    """
    Everything a command handler may read or update.

    Built once at startup and owned by the running session; handlers run
    one at a time on the event loop, so nothing here is locked.
    """

    commands: Dict[str, CommandEntry]
    resolver: IssueResolver
    history: RecentKeyHistory
    topics: TopicTable
    item_keys: ItemKeyTable
    channel: str
    trigger: str = "!"
    ignored_commands: Tuple[str, ...] = ()
    reload_users: Tuple[str, ...] = ()
    projects: Tuple[str, ...] = ()
    browse_url: str = ""
    max_digits: int = 5


def build_context(http: Optional[httpx.AsyncClient] = None) -> BotContext:
    tracker = TrackerClient(
        settings.JIRA_HOST,
        timeout=settings.JIRA_FETCH_TIMEOUT_SECONDS,
        http=http,
    )
    resolver = IssueResolver(
        IssueCache(),
        tracker,
        settings.JIRA_BROWSE_URL,
        max_digits=settings.ISSUE_KEY_MAX_DIGITS,
    )

    return BotContext(
        commands=default_commands(),
        resolver=resolver,
        history=RecentKeyHistory(settings.HISTORY_SIZE),
        topics=TopicTable.from_file(settings.TOPIC_FILE),
        item_keys=ItemKeyTable.from_file(settings.ITEM_KEY_FILE),
        channel=settings.IRC_CHANNEL,
        trigger=settings.COMMAND_TRIGGER,
        ignored_commands=settings.IGNORED_COMMANDS,
        reload_users=settings.RELOAD_USERS,
        projects=settings.JIRA_PROJECTS,
        browse_url=settings.JIRA_BROWSE_URL,
        max_digits=settings.ISSUE_KEY_MAX_DIGITS,
    )
