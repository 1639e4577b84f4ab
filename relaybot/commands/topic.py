from relaybot.commands.errors import BotError
from relaybot.commands.matching import candidates


async def cmd_topic(ctx, invocation, argument=None) -> str:
    if not argument:
        return "Available topics: " + candidates(ctx.topics.names())

    matches = ctx.topics.match(argument)

    if not matches:
        raise BotError(f'Topic "{argument}" not known.')

    if len(matches) > 1:
        return f'Multiple topics match "{argument}" (candidates are: {candidates(matches)}).'

    topic = matches[0]
    return f"{topic}: {ctx.topics.describe(topic)}"
