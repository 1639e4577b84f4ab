import asyncio
import json

import pytest

from relaybot.cache.history import RecentKeyHistory
from relaybot.cache.issues import IssueCache
from relaybot.commands.registry import default_commands
from relaybot.context import BotContext
from relaybot.irc.protocol import ChatMessage, parse_line
from relaybot.tables import ItemKeyTable, TopicTable
from relaybot.tracker.api import TrackerUnavailable
from relaybot.tracker.resolver import IssueResolver


BROWSE_URL = "https://support.example.com/browse"

TOPICS = {
    "docs": "See the manual",
    "documentation": "alias:docs",
    "forum": "Ask on the forum",
    "Faq": "Frequently asked questions",
}

ITEM_KEYS = {
    "agent.ping": "Agent availability check.",
    "agent.version": "Version of the agent.",
    "system.uptime": "System uptime in seconds.",
}


class FakeTracker:
    """Stands in for TrackerClient; answers from a key -> payload map."""

    def __init__(self, payloads=None, gate: asyncio.Event = None):
        self.payloads = payloads or {}
        self.calls = []
        self.gate = gate

    async def get_issue_summary(self, key):
        self.calls.append(key)
        if self.gate is not None:
            await self.gate.wait()

        payload = self.payloads.get(key)
        if isinstance(payload, Exception):
            raise payload
        if payload is None:
            raise TrackerUnavailable(f"no route to {key}")
        return payload


def summary(text):
    return {"key": "X", "fields": {"summary": text}}


def make_context(tmp_path, tracker=None, **overrides) -> BotContext:
    topic_file = tmp_path / "topics.json"
    topic_file.write_text(json.dumps(TOPICS))

    resolver = IssueResolver(
        IssueCache(),
        tracker or FakeTracker(),
        BROWSE_URL,
        max_digits=5,
    )

    values = dict(
        commands=default_commands(),
        resolver=resolver,
        history=RecentKeyHistory(15),
        topics=TopicTable.from_file(str(topic_file)),
        item_keys=ItemKeyTable(ITEM_KEYS),
        channel="#zabbix",
        trigger="!",
        ignored_commands=("getquote", "note", "quote", "time", "seen", "botsnack"),
        reload_users=("admin",),
        projects=("ZBX", "ZBXNEXT"),
        browse_url=BROWSE_URL,
        max_digits=5,
    )
    values.update(overrides)
    return BotContext(**values)


@pytest.fixture
def tracker():
    return FakeTracker({
        "ZBX-1234": summary("Server crashes on start"),
        "ZBX-42": summary("Crash on start"),
    })


@pytest.fixture
def ctx(tmp_path, tracker):
    return make_context(tmp_path, tracker)


def channel_message(text, nick="alice", identified=False, target="#zabbix"):
    return ChatMessage(nick=nick, target=target, text=text, identified=identified)


class FakeIrcClient:
    """In-memory replacement for IrcClient driven by the test."""

    def __init__(self, fail_connect: Exception = None):
        self.nick = ""
        self.sent = []
        self.fail_connect = fail_connect
        self._connected = False
        self._queue: asyncio.Queue = asyncio.Queue()

    @property
    def connected(self):
        return self._connected

    async def connect(self, nick, username, realname):
        if self.fail_connect is not None:
            raise self.fail_connect
        self.nick = nick
        self.identity = (nick, username, realname)
        self._connected = True

    async def messages(self):
        while True:
            item = await self._queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    def feed(self, line):
        self._queue.put_nowait(parse_line(line))

    def hangup(self, error: Exception = None):
        self._queue.put_nowait(error)

    def join(self, channel):
        self.sent.append(("JOIN", channel))

    def whois(self, nick):
        self.sent.append(("WHOIS", nick))

    def privmsg(self, target, text):
        self.sent.append(("PRIVMSG", target, text))
        return 1

    async def quit(self, reason=""):
        self.sent.append(("QUIT", reason))
        self._connected = False

    async def close(self):
        self._connected = False


async def settle(rounds: int = 20):
    for _ in range(rounds):
        await asyncio.sleep(0)
