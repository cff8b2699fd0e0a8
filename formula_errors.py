class ParserError(ValueError):
    """Malformed formula text, bad numeral or failed coefficient arithmetic."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class InternalError(RuntimeError):
    """An AST arena index that should exist does not."""


class NotFoundError(LookupError):
    """A table row that was just registered cannot be located."""
