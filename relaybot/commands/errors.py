class BotError(Exception):
    """
    A user-facing failure.

    The router turns it into a reply; it never reaches the transport.
    """

    prefix = "ERROR: "

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def reply(self) -> str:
        return f"{self.prefix}{self.message}"


class UnknownCommand(BotError):
    def __init__(self, prefix: str):
        super().__init__(f'Command "{prefix}" does not exist.')
        self.command_prefix = prefix


class AmbiguousCommand(BotError):
    def __init__(self, prefix: str, candidates):
        self.command_prefix = prefix
        self.candidates = list(candidates)
        super().__init__(
            f'Command "{prefix}" is ambiguous '
            f"(candidates are: {', '.join(self.candidates)})."
        )


class UnknownReference(BotError):
    """History position out of range."""

    def __init__(self, position: str):
        super().__init__(f'Issue "{position}" does not exist in chat history.')


class InvalidReferenceShape(BotError):
    def __init__(self, argument: str):
        super().__init__(f'Argument "{argument}" is not a number or an issue identifier.')


class FetchFailure(BotError):
    def __init__(self):
        super().__init__("Could not fetch issue description.")


class RemoteError(BotError):
    """The tracker answered with an error payload."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Could not fetch issue description. Reason: {reason}.")


class Unauthorized(BotError):
    pass
