"""Custom exception classes for the contentbridge library."""

from collections.abc import Iterable
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .schema import FieldType


class ContentBridgeError(Exception):
    """Base exception class for all contentbridge errors."""

    def __init__(
        self,
        message: str,
        *,
        response: httpx.Response | None = None,
        request: httpx.Request | None = None,
    ):
        """Initializes the base exception.

        Args:
            message: The error message.
            response: Optional httpx.Response object associated with the error.
            request: Optional httpx.Request object associated with the error.
        """
        super().__init__(message)
        self.message = message
        self.response = response
        self.request = request

    def __str__(self) -> str:
        if self.response is not None:
            url_info = getattr(getattr(self.response, "request", None), "url", "N/A")
            return (
                f"{self.message} (Status: {self.response.status_code}, URL: {url_info})"
            )
        if isinstance(self.request, httpx.Request):
            return f"{self.message} (URL: {self.request.url})"
        return self.message


class APIError(ContentBridgeError):
    """Represents a generic error returned by the API (non-specific 4xx/5xx)."""


class NotFoundError(APIError):
    """Represents a resource not found error (404 Not Found)."""


class RateLimitError(APIError):
    """Represents hitting the API rate limit (429 Too Many Requests)."""


class ValidationError(ContentBridgeError):
    """Represents a client-side validation issue detected before sending a request."""


class TimeoutError(ContentBridgeError):
    """Represents a request timeout error."""

    def __init__(self, message: str, *, request: httpx.Request | None = None):
        super().__init__(message, request=request, response=None)


class NetworkError(ContentBridgeError):
    """Represents a network connection error (DNS failure, refused connection, ...)."""

    def __init__(self, message: str, *, request: httpx.Request | None = None):
        super().__init__(message, request=request, response=None)


class ContentBridgeRequestError(ContentBridgeError):
    """Represents any other failure of the HTTP request process itself."""


class ConfigurationError(ContentBridgeError):
    """Represents an error in the library's configuration."""

    def __init__(self, message: str):
        super().__init__(message, response=None)


class AuthError(ContentBridgeError):
    """Raised when the request cannot be authenticated."""


class EncodingError(ContentBridgeError):
    """Raised when an outgoing entry cannot be turned into a request body."""


# --- Decoding errors --- #


class DecodingError(ContentBridgeError):
    """Base class for every failure to map an API payload onto typed values.

    Decoding errors are values as much as they are exceptions: the item and page
    decoders hand them back to the caller instead of raising. Two errors compare
    equal when they are of the same class and carry the same details, so that
    decoding the same payload twice produces equal results.
    """

    def _details(self) -> tuple:
        return (self.message,)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._details() == other._details()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self._details()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class MissingRequiredFieldsError(DecodingError):
    """Required schema fields are absent from the entry's ``fields`` object."""

    def __init__(self, names: Iterable[str]):
        self.names: frozenset[str] = frozenset(names)
        super().__init__(f"Missing required fields: {', '.join(sorted(self.names))}")

    def _details(self) -> tuple:
        return (self.names,)


class RequiredKeyMissingError(DecodingError):
    """A required field is present but resolved to no value for the locale."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required field '{name}' has no value for the locale")

    def _details(self) -> tuple:
        return (self.name,)


class FieldFormatError(DecodingError):
    """A field value is present but cannot be parsed as its declared type."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Field '{name}' is not in the expected format")

    def _details(self) -> tuple:
        return (self.name,)


class TypeMismatchError(DecodingError):
    """A field value does not have the shape its declared type requires."""

    def __init__(self, name: str, expected: "FieldType"):
        self.name = name
        self.expected = expected
        super().__init__(f"Field '{name}' does not match type '{expected.value}'")

    def _details(self) -> tuple:
        return (self.name, self.expected)


class MalformedEntryError(DecodingError):
    """The entry envelope itself (``sys``, ``fields`` or the JSON) is malformed."""


class ConstructionError(DecodingError):
    """The caller-supplied constructor rejected a set of unboxed fields."""


class EnvelopeError(DecodingError):
    """The list envelope is malformed; fatal for a whole page decode."""


class InvalidPageError(EnvelopeError):
    """The list envelope carries pagination values no page can be derived from."""
