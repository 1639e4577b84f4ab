from typing import Any, Iterable

from relaybot.logger import get_logger


logger = get_logger("relaybot.irc.events")

# Routine server traffic with nothing to do beyond marking the link alive
IGNORED_EVENTS = frozenset({
    "CAP", "JOIN", "MODE", "NOTICE", "PART", "PING", "PONG", "QUIT", "NICK",
    "001", "002", "003", "004", "005",
    "250", "251", "252", "253", "254", "255", "265", "266",
    "311", "312", "317", "318", "319", "330", "378", "671",
    "332", "333", "353", "366",
    "372", "375", "376", "422", "451",
})

# Internal task bookkeeping, never worth a diagnostic
SUPPRESSED_EVENTS = frozenset({"_child"})


def render_argument(arg: Any) -> str:
    if isinstance(arg, dict):
        flat = []
        for key, value in arg.items():
            flat.extend((str(key), str(value)))
        return "{" + ", ".join(flat) + "}"

    if isinstance(arg, (list, tuple)):
        return "[" + ", ".join(str(a) for a in arg) + "]"

    return f'"{arg}"'


def render_arguments(args: Iterable[Any]) -> str:
    return " ".join(render_argument(a) for a in args)


def describe_event(event: str, args: Iterable[Any]) -> str:
    return f"unhandled event '{event}' with arguments <{render_arguments(args)}>"


def log_unhandled(event: str, args: Iterable[Any]) -> bool:
    """
    Report an event nobody handles. Returns False when the event is
    suppressed.
    """
    if event in SUPPRESSED_EVENTS:
        return False

    logger.info(describe_event(event, args))
    return True
