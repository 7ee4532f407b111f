"""Field schemas and locale resolution.

A content type's fields are described by a :data:`FieldMapping`: a plain
mapping from field name to ``(FieldType, required)``. The API stores every
field value as a dictionary keyed by locale code, so reading a field always
starts with picking the right locale out of that dictionary.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class FieldType(Enum):
    """The closed set of field types the unboxing engine can decode."""

    STRING = "string"
    INT = "int"
    BOOL = "bool"
    DECIMAL = "decimal"
    DATE = "date"
    ONE_TO_ONE_REF = "one_to_one_ref"
    ONE_TO_MANY_REF = "one_to_many_ref"


FieldMapping = Mapping[str, tuple[FieldType, bool]]
"""Field name -> (declared type, required flag) for one content type."""


class LocaleSet(BaseModel):
    """A favoured locale code and the code to fall back to when it is missing."""

    model_config = ConfigDict(frozen=True)

    favoured: str
    fallback: str

    @property
    def search_order(self) -> tuple[str, str]:
        return (self.favoured, self.fallback)


def lookup(schema: FieldMapping, name: str) -> tuple[FieldType, bool] | None:
    """Return the declared type and required flag of ``name``, or None if unknown."""
    return schema.get(name)


def required_fields(schema: FieldMapping) -> frozenset[str]:
    """Names of every field the schema marks as required."""
    return frozenset(name for name, (_, required) in schema.items() if required)


def resolve_locale(locale_map: Mapping[str, Any], locale: LocaleSet | None) -> Any:
    """Pick the value for the preferred locale out of a locale-keyed dictionary.

    With a ``LocaleSet``, the favoured code is tried first and then the fallback.
    The first code present as a key wins, even when the value stored under it is
    ``None``; a missing favoured key is what triggers the fallback, not a null
    value. If neither key is present, None is returned.

    Without a ``LocaleSet``, the value under the first key of the dictionary is
    returned. When the dictionary holds several locales it is unspecified which
    one that is; callers that need a particular locale must pass a ``LocaleSet``.

    Args:
        locale_map: A field value as stored by the API, e.g. ``{"en-US": "a"}``.
        locale: The locale preference, or None.

    Returns:
        The resolved value, or None when nothing could be resolved.
    """
    if locale is not None:
        for code in locale.search_order:
            if code in locale_map:
                return locale_map[code]
        return None

    for code in locale_map:
        return locale_map[code]
    return None
