from relaybot.commands.errors import BotError, Unauthorized
from relaybot.logger import get_logger


logger = get_logger("relaybot.commands.reload")


async def cmd_reload(ctx, invocation, argument=None) -> str:
    """
    Re-read the topic table.

    Only identified users listed in RELOAD_USERS may do this.
    """
    if not invocation.identified:
        raise Unauthorized("Not identified with NickServ")

    if invocation.nick not in ctx.reload_users:
        logger.warning("Reload refused for %s", invocation.nick)
        raise Unauthorized("Not authorised to reload")

    try:
        ctx.topics.reload()
    except RuntimeError as exc:
        # The previous table stays in place
        logger.exception("Topic reload failed")
        raise BotError(f"Could not reload topics ({exc})") from exc

    logger.info("Topics reloaded by %s", invocation.nick)
    return "Topics reloaded"
