"""The field-unboxing engine.

Turns the ``fields`` object of an API entry, where every value is a dictionary
keyed by locale code, into a flat read-only mapping of field name to typed
value. The caller's schema decides which fields are read, what type each must
have and which ones must be present.

Decoding is all-or-nothing per entry: the first problem raises a
``DecodingError`` and no partially filled mapping ever escapes.
"""

import re
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from .exceptions import (
    FieldFormatError,
    MalformedEntryError,
    MissingRequiredFieldsError,
    RequiredKeyMissingError,
    TypeMismatchError,
)
from .log_config import logger
from .models import FieldValue, Reference, UnboxedFields
from .schema import (
    FieldMapping,
    FieldType,
    LocaleSet,
    lookup,
    required_fields,
    resolve_locale,
)

_FULL_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def _decode_string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeMismatchError(name, FieldType.STRING)
    return value


def _decode_int(name: str, value: Any) -> int:
    # bool is a subclass of int but never a valid Integer field value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeMismatchError(name, FieldType.INT)
    return value


def _decode_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeMismatchError(name, FieldType.BOOL)
    return value


def _decode_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, int | float | Decimal):
        raise TypeMismatchError(name, FieldType.DECIMAL)
    decoded = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    # NaN never equals itself; infinities are not representable by the API
    if not decoded.is_finite():
        raise FieldFormatError(name)
    return decoded


def _decode_date(name: str, value: Any) -> date:
    if not isinstance(value, str):
        raise TypeMismatchError(name, FieldType.DATE)
    if not _FULL_DATE.fullmatch(value):
        raise FieldFormatError(name)
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise FieldFormatError(name) from e


def _link_target(value: Any) -> Reference | None:
    """Read ``{"sys": {"id": ..., "linkType": ...}}``; None if the shape is off."""
    if not isinstance(value, Mapping):
        return None
    sys = value.get("sys")
    if not isinstance(sys, Mapping):
        return None
    link_id = sys.get("id")
    link_type = sys.get("linkType")
    if not isinstance(link_id, str) or not isinstance(link_type, str):
        return None
    return Reference(id=link_id, link_type=link_type)


def _decode_one_ref(name: str, value: Any) -> Reference:
    reference = _link_target(value)
    if reference is None:
        raise TypeMismatchError(name, FieldType.ONE_TO_ONE_REF)
    return reference


def _decode_many_refs(name: str, value: Any) -> tuple[Reference, ...]:
    if not isinstance(value, list):
        raise TypeMismatchError(name, FieldType.ONE_TO_MANY_REF)
    references = [_link_target(link) for link in value]
    if any(reference is None for reference in references):
        raise TypeMismatchError(name, FieldType.ONE_TO_MANY_REF)
    return tuple(references)  # type: ignore[arg-type]


_DECODERS: dict[FieldType, Callable[[str, Any], FieldValue]] = {
    FieldType.STRING: _decode_string,
    FieldType.INT: _decode_int,
    FieldType.BOOL: _decode_bool,
    FieldType.DECIMAL: _decode_decimal,
    FieldType.DATE: _decode_date,
    FieldType.ONE_TO_ONE_REF: _decode_one_ref,
    FieldType.ONE_TO_MANY_REF: _decode_many_refs,
}


def _system_fields(system_metadata: Any) -> dict[str, FieldValue]:
    if not isinstance(system_metadata, Mapping):
        raise MalformedEntryError("Entry 'sys' must be an object")
    entry_id = system_metadata.get("id")
    version = system_metadata.get("version")
    if not isinstance(entry_id, str):
        raise MalformedEntryError("Entry 'sys.id' is missing or not a string")
    if isinstance(version, bool) or not isinstance(version, int):
        raise MalformedEntryError("Entry 'sys.version' is missing or not an integer")
    return {"id": entry_id, "version": version}


def unbox_fields(
    raw_fields: Mapping[str, Any],
    system_metadata: Mapping[str, Any],
    schema: FieldMapping,
    locale: LocaleSet | None = None,
) -> UnboxedFields:
    """Decode the ``fields`` object of one entry against a schema.

    Args:
        raw_fields: The entry's ``fields`` object as parsed from JSON.
        system_metadata: The entry's ``sys`` object; ``id`` and ``version`` are
            copied into the result.
        schema: Field name -> (type, required) for the entry's content type.
        locale: Locale preference; see ``schema.resolve_locale``.

    Returns:
        UnboxedFields: A read-only mapping holding ``id``, ``version`` and every
            field of ``raw_fields`` that is known to the schema and resolved to
            a non-null value. Fields unknown to the schema are ignored.

    Raises:
        MalformedEntryError: ``sys`` lacks a string ``id`` or integer ``version``,
            or ``raw_fields`` is not an object.
        MissingRequiredFieldsError: Required fields are absent from ``raw_fields``.
            Raised before any field is decoded.
        TypeMismatchError: A field's value does not have its declared shape.
        FieldFormatError: A date field is not a ``YYYY-MM-DD`` date.
        RequiredKeyMissingError: A required field resolved to no value.
    """
    unboxed = _system_fields(system_metadata)

    if not isinstance(raw_fields, Mapping):
        raise MalformedEntryError("Entry 'fields' must be an object")

    missing = required_fields(schema) - raw_fields.keys()
    if missing:
        raise MissingRequiredFieldsError(missing)

    for name, locale_map in raw_fields.items():
        declared = lookup(schema, name)
        if declared is None:
            logger.trace(f"Skipping field '{name}': not in the schema")
            continue
        field_type, required = declared

        if not isinstance(locale_map, Mapping):
            raise TypeMismatchError(name, field_type)

        resolved = resolve_locale(locale_map, locale)
        if resolved is not None:
            unboxed[name] = _DECODERS[field_type](name, resolved)
        elif required:
            raise RequiredKeyMissingError(name)

    return MappingProxyType(unboxed)


def unbox_entry(
    entry: Any, schema: FieldMapping, locale: LocaleSet | None = None
) -> UnboxedFields:
    """Decode a whole entry envelope ``{"sys": {...}, "fields": {...}}``.

    Raises:
        MalformedEntryError: The envelope is not an object or lacks ``sys`` or
            ``fields``.
        DecodingError: Any error raised by ``unbox_fields``.
    """
    if not isinstance(entry, Mapping):
        raise MalformedEntryError("Entry must be a JSON object")
    if "sys" not in entry:
        raise MalformedEntryError("Entry has no 'sys' object")
    if "fields" not in entry:
        raise MalformedEntryError("Entry has no 'fields' object")
    return unbox_fields(entry["fields"], entry["sys"], schema, locale)
