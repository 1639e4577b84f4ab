import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, List, Optional, Tuple

from relaybot.commands.errors import BotError
from relaybot.commands.registry import CommandEntry, resolve_command
from relaybot.irc.protocol import ChatMessage
from relaybot.logger import get_logger
from relaybot.tracker.keys import find_issue_keys


logger = get_logger("relaybot.commands.router")

Sender = Callable[[str, str], Any]


@lru_cache(maxsize=None)
def _command_pattern(trigger: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(trigger)}(\w+)\b(.*)", re.DOTALL)


def parse_invocation(text: str, trigger: str = "!") -> Optional[Tuple[str, Optional[str]]]:
    """
    Split "!prefix rest of line" into (prefix, argument).

    The argument is stripped; an empty one becomes None. Returns None when
    text is not a command at all.
    """
    m = _command_pattern(trigger).match(text or "")
    if not m:
        return None

    argument = (m.group(2) or "").strip()
    return m.group(1), argument or None


@dataclass(frozen=True)
class Invocation:
    message: ChatMessage
    prefix: str
    argument: Optional[str]
    # Recent keys as they were when the command arrived
    history: Tuple[str, ...] = ()

    @property
    def nick(self) -> str:
        return self.message.nick

    @property
    def identified(self) -> bool:
        return self.message.identified

    @property
    def reply_to(self) -> str:
        return self.message.reply_to


class CommandRouter:
    """
    Entry point for every chat message.

    Commands ("!prefix arg") are resolved against the command table and
    answered through ``send``; everything else said in a channel feeds the
    recent-key history.
    """

    def __init__(self, ctx, send: Optional[Sender] = None):
        self.ctx = ctx
        self.send = send

    def on_message(self, message: ChatMessage):
        """
        Handle a message synchronously as far as possible.

        Returns the coroutine that completes a command (to be run as a
        task), or None when there is nothing left to do.
        """
        parsed = parse_invocation(message.text, self.ctx.trigger)

        if parsed is None:
            if message.in_channel:
                self.scan(message.text)
            return None

        prefix, argument = parsed

        # Somebody else's bot answers these
        if prefix in self.ctx.ignored_commands:
            logger.debug("Ignoring foreign command %s from %s", prefix, message.nick)
            return None

        invocation = Invocation(
            message=message,
            prefix=prefix,
            argument=argument,
            history=self.ctx.history.snapshot(),
        )
        return self.dispatch(invocation)

    def scan(self, text: str) -> List[str]:
        keys = find_issue_keys(text, self.ctx.max_digits)
        if keys:
            self.ctx.history.extend(keys)
        return keys

    def resolve(self, prefix: str) -> CommandEntry:
        return resolve_command(self.ctx.commands, prefix)

    async def execute(self, invocation: Invocation) -> str:
        try:
            entry = self.resolve(invocation.prefix)
            logger.info(
                "%s ran %s (%s)",
                invocation.nick,
                entry.name,
                invocation.argument or "no argument",
            )
            return await entry.handle(self.ctx, invocation, invocation.argument)
        except BotError as exc:
            return exc.reply

    async def dispatch(self, invocation: Invocation) -> Optional[str]:
        try:
            reply = await self.execute(invocation)
        except Exception:
            # Never crash the session over one command
            logger.exception("Unhandled error while running %s", invocation.prefix)
            return None

        if reply and self.send is not None:
            self.send(invocation.reply_to, reply)

        return reply
