"""Error kinds raised inside the client.

Each kind carries a fixed HTTP-like ``code``. Every public query converts
these into a :class:`stihirus.models.Failure` envelope, so callers only
see them when using the lower-level components directly.
"""

__all__ = [
    "StihirusError",
    "InvalidInput",
    "NotFound",
    "NetworkError",
    "UpstreamError",
    "ParsingError",
    "UnknownError",
]


class StihirusError(RuntimeError):
    """Base class for all client failures."""

    code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(StihirusError):
    """Malformed identifier, page, poem id or filter. Raised before any I/O."""

    code = 400


class NotFound(StihirusError):
    """The author or poem cannot be located."""

    code = 404


class NetworkError(StihirusError):
    """Transport-level failure (DNS, connect, timeout)."""

    code = 503


class UpstreamError(StihirusError):
    """Non-2xx or malformed response from the site."""

    code = 502

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        api_status: str | None = None,
        malformed: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.api_status = api_status
        if malformed:
            self.code = 500


class ParsingError(StihirusError):
    """A document was fetched but cannot be read as the expected page."""

    code = 500


class UnknownError(StihirusError):
    """Anything not covered by the other kinds."""

    code = 500
