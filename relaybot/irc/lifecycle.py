import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Set

from relaybot.irc.client import IrcClient
from relaybot.irc.connector import Connector
from relaybot.irc.events import IGNORED_EVENTS, log_unhandled
from relaybot.irc.protocol import ChatMessage, IrcMessage, ctcp_action_text, ctcp_payload
from relaybot.logger import get_logger
from relaybot.workers.keepalive import KeepaliveProbe


logger = get_logger("relaybot.irc.lifecycle")

# Anything that ends a session; the lifecycle turns these into a reconnect
TRANSPORT_ERRORS = (OSError, ConnectionError, asyncio.IncompleteReadError, asyncio.TimeoutError)

MessageHandler = Callable[[ChatMessage], Optional[Awaitable[Any]]]


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    REGISTERED = "registered"
    JOINED = "joined"


class ConnectionLifecycle:
    """
    Owns the IRC connection: connect, register, join, stay alive, recover.

    DISCONNECTED -> CONNECTING -> REGISTERED -> JOINED, and back to
    DISCONNECTED whenever the session ends. Recovery is either a fixed
    back-off timer owned here ("self" mode, which also runs the keepalive
    probe) or entirely up to a Connector ("connector" mode).

    PRIVMSGs are handed to ``on_message``; when it returns an awaitable, the
    awaitable runs as its own task so a slow command never holds up the
    read loop.
    """

    def __init__(
        self,
        client_factory: Callable[[], IrcClient],
        *,
        nick: str,
        username: str,
        realname: str,
        channel: str,
        on_message: Optional[MessageHandler] = None,
        reconnect_delay: float = 60.0,
        keepalive_interval: float = 300.0,
        connector: Optional[Connector] = None,
    ):
        self.client_factory = client_factory
        self.nick = nick
        self.username = username
        self.realname = realname
        self.channel = channel
        self.on_message = on_message
        self.reconnect_delay = reconnect_delay
        self.connector = connector

        self.state = ConnectionState.DISCONNECTED
        self.client: Optional[IrcClient] = None
        self.keepalive = KeepaliveProbe(keepalive_interval, self._probe)

        self._stopping = False
        self._session: Optional[asyncio.Task] = None
        self._reconnect_timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

        self._handlers: Dict[str, Callable[[IrcMessage], None]] = {
            "001": self._on_welcome,
            "PRIVMSG": self._on_privmsg,
            "ERROR": self._on_error,
        }

    @property
    def delegated(self) -> bool:
        return self.connector is not None

    @property
    def traffic_seen(self) -> bool:
        return self.keepalive.traffic_seen

    # ----- transitions -----

    def start(self):
        self._stopping = False
        self.connect()

    def connect(self):
        if self._stopping or self.state is not ConnectionState.DISCONNECTED:
            return

        self._reconnect_timer = None
        self.state = ConnectionState.CONNECTING
        logger.info("Connecting as %s", self.nick)
        self._session = asyncio.ensure_future(self._run_session())

    async def _run_session(self):
        client = self.client_factory()
        self.client = client

        try:
            await client.connect(self.nick, self.username, self.realname)
            async for message in client.messages():
                self.handle_message(message)
        except TRANSPORT_ERRORS as exc:
            logger.warning("Connection error: %s", exc or type(exc).__name__)
        finally:
            await client.close()
            self._connection_lost()

    def _connection_lost(self):
        self.client = None
        self.state = ConnectionState.DISCONNECTED
        self.keepalive.cancel()

        if self._stopping:
            return

        if self.delegated:
            self.connector.connection_lost(self)
            return

        logger.info("Reconnecting in %ss", self.reconnect_delay)
        loop = asyncio.get_running_loop()
        self._reconnect_timer = loop.call_later(self.reconnect_delay, self.connect)

    async def stop(self, reason: str = "Shutting down"):
        self._stopping = True

        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None
        if self.connector is not None:
            self.connector.cancel()
        self.keepalive.cancel()

        client = self.client
        if client is not None:
            try:
                await client.quit(reason)
            except TRANSPORT_ERRORS:
                logger.debug("QUIT could not be delivered")

        for task in [self._session, *self._tasks]:
            if task is not None and not task.done():
                task.cancel()

        pending = [t for t in [self._session, *self._tasks] if t is not None]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self.state = ConnectionState.DISCONNECTED
        logger.info("Connection lifecycle stopped")

    # ----- inbound events -----

    def handle_message(self, message: IrcMessage):
        # Any line at all proves the link is alive
        self.keepalive.mark_traffic()

        try:
            self.dispatch(message.command, message)
        except TRANSPORT_ERRORS:
            raise
        except Exception:
            # Never let one bad line end the session
            logger.exception("Unhandled error while processing %s", message.command)

    def dispatch(self, event: str, message: Optional[IrcMessage] = None, args: Sequence[Any] = ()):
        handler = self._handlers.get(event)
        if handler is not None and message is not None:
            handler(message)
            return

        if event in IGNORED_EVENTS:
            return

        if message is not None:
            args = [message.prefix or "", message.params]
            if message.tags:
                args.append(message.tags)

        log_unhandled(event, args)

    def _on_welcome(self, message: IrcMessage):
        self.state = ConnectionState.REGISTERED
        logger.info("Registered with %s as %s", message.prefix, self.client.nick)

        self.client.join(self.channel)
        self.state = ConnectionState.JOINED
        logger.info("Joining %s", self.channel)

        if self.delegated:
            self.connector.connection_established(self)
        else:
            self.keepalive.start()

    def _on_error(self, message: IrcMessage):
        logger.warning("Server error: %s", message.trailing)

    def _on_privmsg(self, message: IrcMessage):
        if len(message.params) < 2 or not message.nick:
            return

        target, text = message.params[0], message.params[1]

        action = ctcp_action_text(text)
        if action is not None:
            text = action
        elif ctcp_payload(text) is not None:
            logger.debug("Ignoring CTCP from %s: %r", message.nick, text)
            return

        chat = ChatMessage(
            nick=message.nick,
            target=target,
            text=text,
            identified=bool(message.tags.get("account")),
        )
        logger.info("%s <%s> %s", target, chat.nick, text)

        if self.on_message is None:
            return

        pending = self.on_message(chat)
        if pending is not None:
            self.spawn(pending)

    # ----- tasks, timers, replies -----

    def spawn(self, awaitable: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._reap)
        return task

    def _reap(self, task: asyncio.Task):
        self._tasks.discard(task)

        if not task.cancelled() and task.exception() is not None:
            logger.error("Command task failed", exc_info=task.exception())

        self.dispatch("_child", args=(task.get_name(),))

    def _probe(self):
        if self.client is not None and self.client.connected:
            self.client.whois(self.client.nick)

    def send_reply(self, target: str, text: str) -> int:
        """
        Send text to a channel or nick. Returns the number of lines sent;
        0 when there is no usable connection.
        """
        client = self.client
        if client is None or self.state is not ConnectionState.JOINED:
            logger.warning("Not connected, dropping message for %s", target)
            return 0

        try:
            return client.privmsg(target, text)
        except ConnectionError as exc:
            logger.warning("Could not send to %s: %s", target, exc)
            return 0
