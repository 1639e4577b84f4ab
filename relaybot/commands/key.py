from relaybot.commands.errors import BotError
from relaybot.commands.matching import candidates


async def cmd_key(ctx, invocation, argument=None) -> str:
    if not argument:
        return f'Type "{ctx.trigger}key <item key>" to see item key description.'

    matches = ctx.item_keys.match(argument)

    if not matches:
        raise BotError(f'Item key "{argument}" not known.')

    if len(matches) > 1:
        return f'Multiple item keys match "{argument}" (candidates are: {candidates(matches)}).'

    key = matches[0]
    return f"{key}: {ctx.item_keys.describe(key)}"
