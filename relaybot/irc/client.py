import asyncio
import ssl
from typing import AsyncIterator, Optional

from relaybot.irc.protocol import (
    IrcMessage,
    format_line,
    max_payload,
    parse_line,
    split_reply,
)
from relaybot.logger import get_logger


logger = get_logger("relaybot.irc.client")

# Lets the server tag every message with the sender's services account
REQUESTED_CAPS = ("account-tag",)

CONNECT_TIMEOUT_SECONDS = 30


class IrcClient:
    """
    One IRC connection over asyncio streams.

    Besides line framing it handles the chatter a bot never cares about:
    PING/PONG, capability negotiation and nick collisions during
    registration. Every parsed line is still yielded by ``messages()``.
    """

    def __init__(self, server: str, port: int, tls: bool = False):
        self.server = server
        self.port = port
        self.tls = tls
        self.nick: str = ""
        self.registered = False
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    @property
    def connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    async def connect(self, nick: str, username: str, realname: str):
        ssl_context = ssl.create_default_context() if self.tls else None

        self._reader, self._writer = await asyncio.wait_for(
            asyncio.open_connection(self.server, self.port, ssl=ssl_context),
            timeout=CONNECT_TIMEOUT_SECONDS,
        )
        logger.info("Connected to %s:%s", self.server, self.port)

        self.nick = nick
        self.registered = False

        self.send("CAP", "REQ", " ".join(REQUESTED_CAPS))
        self.send("NICK", nick)
        self.send("USER", username, "0", "*", realname)

    async def messages(self) -> AsyncIterator[IrcMessage]:
        """
        Yield inbound messages until the server closes the connection.

        Transport errors propagate to the caller.
        """
        if self._reader is None:
            raise ConnectionError("IRC client is not connected")

        while True:
            raw = await self._reader.readline()
            if not raw:
                logger.info("Server closed the connection")
                return

            line = raw.decode("utf-8", errors="replace")
            try:
                message = parse_line(line)
            except ValueError:
                logger.debug("Skipping unparsable line: %r", line)
                continue

            self._handle_protocol(message)
            yield message

    def _handle_protocol(self, message: IrcMessage):
        command = message.command

        if command == "PING":
            self.send("PONG", message.trailing)

        elif command == "CAP" and len(message.params) >= 2:
            sub = message.params[1].upper()
            if sub in ("ACK", "NAK"):
                if sub == "NAK":
                    logger.info("Server refused capabilities: %s", message.trailing)
                self.send("CAP", "END")

        elif command == "001":
            self.registered = True
            if message.params:
                self.nick = message.params[0]

        elif command == "433" and not self.registered:
            self.nick = f"{self.nick}_"
            logger.warning("Nick in use, retrying as %s", self.nick)
            self.send("NICK", self.nick)

        elif command == "NICK" and message.nick == self.nick and message.params:
            self.nick = message.trailing

    def send(self, command: str, *params: str):
        if not self.connected:
            raise ConnectionError("IRC client is not connected")

        line = format_line(command, *params)
        self._writer.write(line.encode("utf-8") + b"\r\n")

    def privmsg(self, target: str, text: str) -> int:
        """
        Send text to target, split to fit the line limit. Returns the
        number of PRIVMSG lines written.
        """
        chunks = split_reply(text, max_payload(self.nick, target))
        for chunk in chunks:
            self.send("PRIVMSG", target, chunk)
        return len(chunks)

    def join(self, channel: str):
        self.send("JOIN", channel)

    def whois(self, nick: str):
        self.send("WHOIS", nick)

    async def quit(self, reason: str = ""):
        if self.connected:
            self.send("QUIT", reason)
            try:
                await self._writer.drain()
            except ConnectionError:
                logger.debug("Connection dropped before QUIT was flushed")
        await self.close()

    async def close(self):
        if self._writer is None:
            return

        writer, self._writer = self._writer, None
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            logger.debug("Socket already gone while closing")
