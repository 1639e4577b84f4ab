from relaybot.commands.registry import resolve_command


async def cmd_help(ctx, invocation, argument=None) -> str:
    if not argument:
        return "Available commands: " + ", ".join(sorted(ctx.commands)) + "."

    return resolve_command(ctx.commands, argument).usage
