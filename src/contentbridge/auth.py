"""Authentication for the content management API.

The management API accepts personal access tokens and OAuth tokens alike as
``Authorization: Bearer <token>``. Which strategy a ``ContentApiClient`` uses is
decided from its ``ContentSettings`` by :func:`auth_from_settings`.
"""

from typing import TYPE_CHECKING, Protocol

import httpx

from .exceptions import ConfigurationError
from .log_config import logger

if TYPE_CHECKING:
    from .config import ContentSettings


class AuthStrategy(Protocol):
    """Protocol defining how a request is authenticated before it is sent."""

    async def async_authenticate(self, request: httpx.Request) -> None:
        """
        Asynchronously modifies the request to add authentication information.

        Args:
            request: The httpx.Request object to modify.

        Raises:
            AuthError: If authentication fails.
        """
        ...

    async def async_close(self) -> None:
        """Releases anything the strategy holds. Must be idempotent."""
        ...


class NoAuth:
    """Sends requests unauthenticated; only useful against a local mock server."""

    async def async_authenticate(self, request: httpx.Request) -> None:
        logger.trace(f"No authentication applied to {request.method} {request.url}")

    async def async_close(self) -> None:
        pass


class StaticTokenAuth:
    """Authenticates every request with one management API token.

    The token never appears in ``repr()`` or in log output.
    """

    def __init__(self, token: str | None):
        """
        Args:
            token: The management API token. Surrounding whitespace, as left
                behind by ``.env`` files, is stripped.

        Raises:
            ConfigurationError: If the token is None, empty or only whitespace.
        """
        token = (token or "").strip()
        if not token:
            raise ConfigurationError("StaticTokenAuth requires a non-empty 'token'.")
        self._token: str = token

    @property
    def masked_token(self) -> str:
        """The last four characters of the token, for diagnostics."""
        return f"...{self._token[-4:]}"

    def __repr__(self) -> str:
        return f"StaticTokenAuth(token={self.masked_token!r})"

    async def async_authenticate(self, request: httpx.Request) -> None:
        request.headers["Authorization"] = f"Bearer {self._token}"

    async def async_close(self) -> None:
        pass


def auth_from_settings(settings: "ContentSettings") -> AuthStrategy:
    """Pick the strategy for ``settings``.

    A configured ``access_token`` selects ``StaticTokenAuth``. Without one,
    requests go out unauthenticated, which the API will reject with 401 for any
    real space, so a warning naming the space is logged.
    """
    if settings.access_token and settings.access_token.strip():
        auth = StaticTokenAuth(settings.access_token)
        logger.debug(f"Authenticating space '{settings.space_id}' with {auth!r}")
        return auth
    logger.warning(
        f"No access token configured for space '{settings.space_id}'; "
        "set CONTENTBRIDGE_ACCESS_TOKEN. Requests will be unauthenticated."
    )
    return NoAuth()
