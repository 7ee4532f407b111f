"""Item and page decoders built on the unboxing engine.

Both decoders take the raw response body, the schema and constructor of one
content type, and an optional locale preference. They are pure functions: no
state is kept between calls, so they can be used from any number of threads.

Entry-level problems never escape as exceptions. ``decode_item`` returns them
inside an ``ItemResult`` and ``decode_page`` records them per row, so a single
malformed entry does not cost the caller the rest of a page.
"""

import json
from collections.abc import Callable
from decimal import Decimal
from typing import Any, TypeVar

from .exceptions import (
    ConstructionError,
    DecodingError,
    EnvelopeError,
    InvalidPageError,
    MalformedEntryError,
)
from .log_config import logger
from .models import ItemResult, Page, PagedResult, UnboxedFields
from .schema import FieldMapping, LocaleSet
from .unboxing import unbox_entry

T = TypeVar("T")

_PAGE_KEYS = ("total", "skip", "limit")


def _load_json(data: bytes | str) -> Any:
    # Decimal floats keep DECIMAL fields exact
    return json.loads(data, parse_float=Decimal)


def _decode_entry(
    entry: Any,
    schema: FieldMapping,
    constructor: Callable[[UnboxedFields], T],
    locale: LocaleSet | None,
) -> ItemResult[T]:
    try:
        fields = unbox_entry(entry, schema, locale)
    except DecodingError as e:
        return ItemResult.failure(e)

    try:
        return ItemResult.success(constructor(fields))
    except Exception as e:
        logger.debug(f"Constructor rejected entry '{fields['id']}': {e!r}")
        return ItemResult.failure(
            ConstructionError(
                f"Could not construct entry '{fields['id']}': {type(e).__name__}: {e}"
            )
        )


def decode_item(
    data: bytes | str,
    schema: FieldMapping,
    constructor: Callable[[UnboxedFields], T],
    locale: LocaleSet | None = None,
) -> ItemResult[T]:
    """Decode a single-entry response body into one application object.

    Args:
        data: The raw body of a single-entry response.
        schema: Field schema of the entry's content type.
        constructor: Builds the application object from the unboxed fields.
        locale: Locale preference, or None to take whichever locale is present.

    Returns:
        ItemResult[T]: The constructed object, or the ``DecodingError`` that
            prevented it. Malformed JSON is reported as ``MalformedEntryError``
            and any exception raised by the constructor as ``ConstructionError``.
    """
    try:
        envelope = _load_json(data)
    except ValueError as e:
        return ItemResult.failure(MalformedEntryError(f"Invalid JSON: {e}"))

    result = _decode_entry(envelope, schema, constructor, locale)
    if not result.ok:
        logger.debug(f"Entry failed to decode: {result.error!r}")
    return result


def _page_value(envelope: dict[str, Any], key: str) -> int:
    if key not in envelope:
        raise EnvelopeError(f"List response has no '{key}'")
    value = envelope[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise EnvelopeError(f"List response '{key}' is not an integer: {value!r}")
    return value


def decode_page(
    data: bytes | str,
    schema: FieldMapping,
    constructor: Callable[[UnboxedFields], T],
    locale: LocaleSet | None = None,
) -> PagedResult[T]:
    """Decode a list response body into a page of application objects.

    Every element of ``items`` is decoded independently, the same way
    ``decode_item`` decodes a single entry. Failed rows are kept with their
    index in ``items``; successes keep their relative order. Whatever the
    constructor raises for a row is recorded as that row's ``ConstructionError``.

    Args:
        data: The raw body of a list response,
            ``{"total": ..., "skip": ..., "limit": ..., "items": [...]}``.
        schema: Field schema of the entries' content type.
        constructor: Builds an application object from unboxed fields.
        locale: Locale preference, or None.

    Returns:
        PagedResult[T]: Decoded items, per-row failures and the page state, with
            ``current_page = skip // limit``.

    Raises:
        EnvelopeError: The body is not valid JSON, or ``total``, ``skip``,
            ``limit`` or ``items`` is missing or of the wrong type.
        InvalidPageError: ``limit`` is not positive, or ``skip``/``total`` is
            negative.
    """
    try:
        envelope = _load_json(data)
    except ValueError as e:
        raise EnvelopeError(f"Invalid JSON in list response: {e}") from e
    if not isinstance(envelope, dict):
        raise EnvelopeError("List response must be a JSON object")

    total, skip, limit = (_page_value(envelope, key) for key in _PAGE_KEYS)
    if limit <= 0:
        raise InvalidPageError(f"List response has non-positive limit {limit}")
    if skip < 0 or total < 0:
        raise InvalidPageError(
            f"List response has negative skip ({skip}) or total ({total})"
        )

    raw_items = envelope.get("items")
    if not isinstance(raw_items, list):
        raise EnvelopeError("List response has no 'items' array")

    items: list[T] = []
    failures: list[tuple[int, DecodingError]] = []
    for index, entry in enumerate(raw_items):
        result = _decode_entry(entry, schema, constructor, locale)
        if result.ok:
            items.append(result.value)  # type: ignore[arg-type]
        else:
            logger.warning(f"Entry at index {index} failed to decode: {result.error!r}")
            failures.append((index, result.error))  # type: ignore[arg-type]

    page = Page(
        items_per_page=limit,
        current_page=skip // limit,
        total_items_available=total,
    )
    logger.debug(
        f"Decoded page {page.current_page}: {len(items)} entries, "
        f"{len(failures)} failures, {total} available"
    )
    return PagedResult(items=items, failures=failures, page=page)
