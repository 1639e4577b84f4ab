from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, Optional

from relaybot.commands.errors import AmbiguousCommand, UnknownCommand
from relaybot.commands.matching import match_prefix


Handler = Callable[..., Awaitable[str]]


@dataclass(frozen=True)
class CommandEntry:
    name: str
    handler: Handler
    usage: str

    async def handle(self, ctx, invocation, argument: Optional[str] = None) -> str:
        return await self.handler(ctx, invocation, argument)


def build_command_table(entries: Iterable[CommandEntry]) -> Dict[str, CommandEntry]:
    table: Dict[str, CommandEntry] = {}
    for entry in entries:
        if entry.name in table:
            raise ValueError(f"Duplicate command name: {entry.name}")
        table[entry.name] = entry
    return table


def resolve_command(commands: Dict[str, CommandEntry], prefix: str) -> CommandEntry:
    """
    Map a typed prefix onto exactly one command.

    Raises UnknownCommand or AmbiguousCommand otherwise.
    """
    matches = match_prefix(prefix, commands)

    if not matches:
        raise UnknownCommand(prefix)

    if len(matches) > 1:
        raise AmbiguousCommand(prefix, matches)

    return commands[matches[0]]


def default_commands() -> Dict[str, CommandEntry]:
    from relaybot.commands.help import cmd_help
    from relaybot.commands.issue import cmd_issue
    from relaybot.commands.key import cmd_key
    from relaybot.commands.reload import cmd_reload
    from relaybot.commands.topic import cmd_topic

    return build_command_table([
        CommandEntry("help", cmd_help, "help <command> - print usage information"),
        CommandEntry("issue", cmd_issue, "issue <n|jira> - fetch issue description"),
        CommandEntry("key", cmd_key, "key <item key> - show item key description"),
        CommandEntry("topic", cmd_topic, "topic <topic>  - show short help message about the topic"),
        CommandEntry("reload", cmd_reload, "reload - reload topics"),
    ])
