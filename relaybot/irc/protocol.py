import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional


MAX_LINE_BYTES = 512  # RFC 1459, CRLF included

# What the server prepends when relaying our PRIVMSG to others, minus the
# variable nick and target: ":" "!" user(10) "@" host(63) " PRIVMSG " " :" CRLF
ENVELOPE_OVERHEAD = 1 + 1 + 10 + 1 + 63 + len(" PRIVMSG ") + len(" :") + 2

MIN_PAYLOAD_BYTES = 32

CHANNEL_PREFIXES = "#&"

CTCP_DELIMITER = "\x01"

# Only CR and LF end an IRC line; other Unicode breaks are ordinary text
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

_TAG_UNESCAPES = {":": ";", "s": " ", "\\": "\\", "r": "\r", "n": "\n"}


@dataclass
class IrcMessage:
    command: str
    params: List[str] = field(default_factory=list)
    prefix: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def nick(self) -> Optional[str]:
        return nick_of(self.prefix) if self.prefix else None

    @property
    def trailing(self) -> str:
        return self.params[-1] if self.params else ""


def nick_of(prefix: str) -> str:
    return prefix.split("!", 1)[0]


def is_channel(target: str) -> bool:
    return bool(target) and target[0] in CHANNEL_PREFIXES


def _unescape_tag(value: str) -> str:
    out = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            out.append(_TAG_UNESCAPES.get(value[i + 1], value[i + 1]))
            i += 2
            continue
        if ch != "\\":
            out.append(ch)
        i += 1
    return "".join(out)


def parse_line(line: str) -> IrcMessage:
    """
    Parse one IRC line (IRCv3 tags, prefix, command, params).

    Raises ValueError for a line without a command.
    """
    line = line.rstrip("\r\n")
    tags: Dict[str, str] = {}
    prefix = None

    if line.startswith("@"):
        raw_tags, _, line = line[1:].partition(" ")
        for item in raw_tags.split(";"):
            if not item:
                continue
            name, _, value = item.partition("=")
            tags[name] = _unescape_tag(value)
        line = line.lstrip(" ")

    if line.startswith(":"):
        prefix, _, line = line[1:].partition(" ")
        line = line.lstrip(" ")

    trailing = None
    if " :" in line:
        line, trailing = line.split(" :", 1)
    elif line.startswith(":"):
        line, trailing = "", line[1:]

    parts = line.split()
    if not parts:
        raise ValueError("IRC line has no command")

    params = parts[1:]
    if trailing is not None:
        params.append(trailing)

    return IrcMessage(command=parts[0].upper(), params=params, prefix=prefix, tags=tags)


def format_line(command: str, *params: str) -> str:
    """
    Build a raw line (without CRLF). The last parameter becomes trailing
    when it needs to be.
    """
    parts = [command]

    for i, param in enumerate(params):
        param = strip_line_breaks(param)
        last = i == len(params) - 1
        if last and (not param or " " in param or param.startswith(":")):
            parts.append(":" + param)
        else:
            parts.append(param)

    return " ".join(parts)


def strip_line_breaks(text: str) -> str:
    return text.replace("\r", " ").replace("\n", " ")


def max_payload(nick: str, target: str) -> int:
    """
    Longest PRIVMSG text (in UTF-8 bytes) that still fits one line once the
    server relays it with our full prefix.
    """
    used = ENVELOPE_OVERHEAD + len(nick.encode("utf-8")) + len(target.encode("utf-8"))
    return max(MIN_PAYLOAD_BYTES, MAX_LINE_BYTES - used)


def split_payload(text: str, limit: int) -> List[str]:
    """
    Cut text into chunks of at most ``limit`` UTF-8 bytes.

    Chunks keep the original order and joining them gives back ``text``;
    a multi-byte character is never cut in half.
    """
    if limit < 4:
        raise ValueError("limit must leave room for one UTF-8 character")

    chunks: List[str] = []
    current: List[str] = []
    size = 0

    for ch in text:
        width = len(ch.encode("utf-8"))
        if size + width > limit:
            chunks.append("".join(current))
            current, size = [], 0
        current.append(ch)
        size += width

    if current:
        chunks.append("".join(current))

    return chunks


def split_reply(text: str, limit: int) -> List[str]:
    """
    Split a reply into PRIVMSG payloads: one per line of text, each line
    further cut by ``split_payload``. Blank lines are dropped.
    """
    payloads: List[str] = []
    for line in _LINE_BREAK.split(text):
        if line:
            payloads.extend(split_payload(line, limit))
    return payloads


def ctcp_payload(text: str) -> Optional[str]:
    if len(text) >= 2 and text.startswith(CTCP_DELIMITER):
        return text.strip(CTCP_DELIMITER)
    return None


def ctcp_action_text(text: str) -> Optional[str]:
    payload = ctcp_payload(text)
    if payload is None:
        return None
    verb, _, rest = payload.partition(" ")
    return rest if verb.upper() == "ACTION" else None


@dataclass(frozen=True)
class ChatMessage:
    """A PRIVMSG as the command layer sees it."""

    nick: str
    target: str
    text: str
    identified: bool = False

    @property
    def in_channel(self) -> bool:
        return is_channel(self.target)

    @property
    def reply_to(self) -> str:
        return self.target if self.in_channel else self.nick
