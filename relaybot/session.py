from typing import Callable, Optional

from relaybot import settings
from relaybot.commands.router import CommandRouter
from relaybot.context import BotContext
from relaybot.irc.client import IrcClient
from relaybot.irc.connector import Connector
from relaybot.irc.lifecycle import ConnectionLifecycle


def default_client_factory() -> IrcClient:
    return IrcClient(settings.IRC_SERVER, settings.IRC_PORT, tls=settings.IRC_TLS)


def build_session(
    ctx: BotContext,
    client_factory: Optional[Callable[[], IrcClient]] = None,
    reconnect_mode: Optional[str] = None,
) -> ConnectionLifecycle:
    """
    Wire the router to a connection lifecycle: inbound PRIVMSGs go to the
    router, router replies go back out through the lifecycle.
    """
    mode = reconnect_mode or settings.RECONNECT_MODE
    connector = Connector() if mode == "connector" else None

    lifecycle = ConnectionLifecycle(
        client_factory or default_client_factory,
        nick=settings.IRC_NICK,
        username=settings.IRC_USER,
        realname=settings.IRC_REALNAME,
        channel=ctx.channel,
        reconnect_delay=settings.RECONNECT_DELAY_SECONDS,
        keepalive_interval=settings.KEEPALIVE_INTERVAL_SECONDS,
        connector=connector,
    )

    router = CommandRouter(ctx, send=lifecycle.send_reply)
    lifecycle.on_message = router.on_message
    return lifecycle
