# contentbridge/types.py
"""Request descriptors handed from the request builders to the HTTP transport.

A ``RequestDescriptor`` is everything needed to issue one API call except the
base URL and authentication, which belong to the transport.
"""

from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]

MANAGEMENT_CONTENT_TYPE = "application/vnd.contentful.management.v1+json"


class RequestDescriptor(BaseModel):
    """Method, path, query items, headers and JSON body of one API request.

    Attributes:
        method: The HTTP method.
        path: Path relative to the API base URL, e.g. ``/spaces/abc/entries``.
        query: Ordered query items.
        headers: Request headers specific to this call.
        body: JSON body, or None for requests without one.
    """

    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    path: str
    query: tuple[tuple[str, str], ...] = ()
    headers: dict[str, str] = Field(default_factory=dict)
    body: dict[str, Any] | None = None

    def build_request(self, base_url: str) -> httpx.Request:
        """Builds an httpx.Request against ``base_url``."""
        return httpx.Request(
            method=self.method,
            url=f"{base_url.rstrip('/')}/{self.path.lstrip('/')}",
            params=list(self.query) or None,
            json=self.body,
            headers=self.headers,
        )
