async def cmd_issue(ctx, invocation, argument=None) -> str:
    """
    Describe a tracker issue.

    ``argument`` is a history position ("1" = newest key seen in the
    channel, also the default) or an issue key such as ZBX-1234.
    """
    return await ctx.resolver.resolve(argument, invocation.history)
