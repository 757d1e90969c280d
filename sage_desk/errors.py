
class SageError(RuntimeError):
    """Base class for every failure shown to the user."""


class ValidationError(SageError):
    """Input rejected before any network call was made."""


class NetworkError(SageError):
    """Transport failure: no connectivity, TLS error or timeout."""


class EmptyResponseError(SageError):
    def __init__(self, message: str = "No data received.") -> None:
        super().__init__(message)


class ParseError(SageError):
    """The response body is not valid JSON."""


class UnexpectedFormatError(SageError):
    """Well-formed JSON of the wrong shape, or a non-OK status field."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base}: {self.raw}" if self.raw else base


class UnexpectedError(SageError):
    """Anything else that escaped a background call; already logged with traceback."""
