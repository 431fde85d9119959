"""Error kinds raised by the reading-list core.

Every error carries a user-facing ``message`` and the HTTP status the API
layer answers with when it escapes a request handler.
"""

from typing import ClassVar


class ReadingListError(Exception):
    """Base class for all reading-list errors."""

    status_code: ClassVar[int] = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def http_status(self) -> int:
        return self.status_code


class ValidationError(ReadingListError):
    """Malformed URL, status or query. Raised before any I/O."""

    status_code = 400


class UnauthorizedError(ReadingListError):
    """No owner context was supplied."""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFoundError(ReadingListError):
    """The article does not exist or belongs to another owner."""

    status_code = 404


class PersistenceError(ReadingListError):
    """The record store failed. Never retried automatically."""

    status_code = 500


class FetchError(ReadingListError):
    """Metadata could not be retrieved from the article page."""

    status_code = 502

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.upstream_status = status_code

    @property
    def kind(self) -> str:
        return "fetch"


class FetchNetworkError(FetchError):
    """The page was unreachable (DNS, connect, timeout, TLS)."""

    @property
    def kind(self) -> str:
        return "network"


class FetchStatusError(FetchError):
    """The page answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = ""):
        message = f"Failed to fetch: {status_code}"
        if reason:
            message = f"{message} {reason}"
        super().__init__(message, status_code=status_code)

    @property
    def kind(self) -> str:
        return "status"

    @property
    def http_status(self) -> int:
        if self.upstream_status and 400 <= self.upstream_status < 600:
            return self.upstream_status
        return self.status_code


class MarkupError(FetchError):
    """The page body was empty, not HTML, or could not be parsed."""

    status_code = 422

    @property
    def kind(self) -> str:
        return "markup"
