"""Request builders for the entries endpoints of the content management API.

Every builder returns a ``RequestDescriptor``; none of them performs I/O. The
outgoing body format nests each field value under a locale code, mirroring the
locale-keyed shape the decoders read:

```json
{"fields": {"name": {"en-US": "Widget"}, "price": {"en-US": 9.5}}}
```
"""

from typing import Any

from pydantic_core import PydanticSerializationError

from .exceptions import EncodingError, ValidationError
from .log_config import logger
from .models import Page, WritableEntry
from .types import MANAGEMENT_CONTENT_TYPE, RequestDescriptor

SELECT_FIELDS = "sys.id,sys.version,fields"

VERSION_HEADER = "X-Contentful-Version"
CONTENT_TYPE_HEADER = "X-Contentful-Content-Type"

_SYS_ATTRIBUTES = {"contentful_id", "contentful_version"}


def entries_path(space_id: str) -> str:
    return f"/spaces/{space_id}/entries"


def entry_path(space_id: str, entry_id: str) -> str:
    return f"{entries_path(space_id)}/{entry_id}"


def page_request(space_id: str, content_type: str, page: Page) -> RequestDescriptor:
    """Build the request for one page of entries of a content type.

    Only ``sys.id``, ``sys.version`` and ``fields`` are selected, which is all
    the decoders read.
    """
    query = (
        ("content_type", content_type),
        ("select", SELECT_FIELDS),
        ("limit", str(page.items_per_page)),
        ("skip", str(page.skip)),
    )
    return RequestDescriptor(method="GET", path=entries_path(space_id), query=query)


def entry_request(space_id: str, entry_id: str) -> RequestDescriptor:
    """Build the request for a single entry."""
    return RequestDescriptor(method="GET", path=entry_path(space_id, entry_id))


def publish_request(space_id: str, entry_id: str, version: int) -> RequestDescriptor:
    """Build the request publishing ``version`` of an entry."""
    return RequestDescriptor(
        method="PUT",
        path=f"{entry_path(space_id, entry_id)}/published",
        headers={VERSION_HEADER: str(version)},
    )


def encode_entry(entry: WritableEntry, locale_code: str) -> dict[str, Any]:
    """Encode an entry as a request body, every field under ``locale_code``.

    The entry's ``sys`` attributes and fields that are None are left out.
    References are written as link objects.

    Raises:
        EncodingError: The entry cannot be serialised to JSON.
    """
    try:
        dumped = entry.model_dump(
            mode="json", by_alias=True, exclude=_SYS_ATTRIBUTES, exclude_none=True
        )
    except PydanticSerializationError as e:
        raise EncodingError(
            f"Could not encode {type(entry).__name__} for locale {locale_code}: {e}"
        ) from e

    fields = {name: {locale_code: value} for name, value in dumped.items()}
    logger.trace(f"Encoded {len(fields)} fields of {type(entry).__name__}")
    return {"fields": fields}


def create_request(
    space_id: str, entry: WritableEntry, locale_code: str
) -> RequestDescriptor:
    """Build the request creating ``entry`` as a new entry of its content type.

    Raises:
        ValidationError: The entry class declares no ``content_type``.
    """
    content_type = getattr(type(entry), "content_type", None)
    if not content_type:
        raise ValidationError(f"{type(entry).__name__} declares no content_type")
    return RequestDescriptor(
        method="POST",
        path=entries_path(space_id),
        headers={CONTENT_TYPE_HEADER: content_type},
        body=encode_entry(entry, locale_code),
    )


def update_request(
    space_id: str, entry: WritableEntry, locale_code: str
) -> RequestDescriptor:
    """Build the request overwriting an existing entry with the contents of ``entry``.

    Raises:
        ValidationError: ``entry`` has no ``contentful_id`` or ``contentful_version``.
    """
    entry_id, version = _require_sys(entry)
    return RequestDescriptor(
        method="PUT",
        path=entry_path(space_id, entry_id),
        headers={
            VERSION_HEADER: str(version),
            "Content-Type": MANAGEMENT_CONTENT_TYPE,
        },
        body=encode_entry(entry, locale_code),
    )


def publish_entry_request(space_id: str, entry: WritableEntry) -> RequestDescriptor:
    """Build the request publishing the version of ``entry`` it was read at."""
    entry_id, version = _require_sys(entry)
    return publish_request(space_id, entry_id, version)


def _require_sys(entry: WritableEntry) -> tuple[str, int]:
    if entry.contentful_id is None or entry.contentful_version is None:
        raise ValidationError(
            f"{type(entry).__name__} needs contentful_id and contentful_version "
            "to address an existing entry"
        )
    return entry.contentful_id, entry.contentful_version
