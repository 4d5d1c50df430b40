"""Errors raised by the aggregation core and the backend client.

Every error carries a ``user_message``: the single line shown to the user in
place of the previous one.
"""


class DealsFinderError(Exception):
    """Base class for all expected failures."""

    @property
    def user_message(self) -> str:
        return str(self)


class KeywordValidationError(DealsFinderError):
    """Keyword was empty after trimming. Raised before any request is sent."""

    def __init__(self, message: str = "Keyword cannot be empty"):
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return f"❌ {self}"


class TransportError(DealsFinderError):
    """The request never produced a usable HTTP response (connection, timeout)."""

    @property
    def user_message(self) -> str:
        return f"Cannot connect to server: {self}"


class ServerError(TransportError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status

    @property
    def user_message(self) -> str:
        return f"Server error: {self}"


class ApplicationError(DealsFinderError):
    """The backend answered 2xx but reported ``success=false`` or sent a body we cannot parse."""

    @property
    def user_message(self) -> str:
        return f"❌ {self}"


class RewriteError(DealsFinderError):
    pass


class RewriteRetryError(RewriteError):
    """The rewrite model is still loading; the same request may succeed later."""
