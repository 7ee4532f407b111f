"""contentbridge: typed data mapping for a headless CMS content management API.

The API returns entries as generic, locale-keyed JSON fields. This package
decodes them against a caller-supplied schema into typed values and
application objects, builds the request descriptors for reading, creating,
updating and publishing entries, and ships an async httpx transport that
executes those descriptors.

Decoding is pure and stateless: ``decode_item`` and ``decode_page`` can be used
on response bodies obtained by any HTTP stack.
"""

__version__ = "0.1.0"

from . import (
    auth,
    client,
    config,
    decoding,
    endpoints,
    exceptions,
    log_config,
    models,
    resources,
    schema,
    types,
    unboxing,
)
from .decoding import decode_item, decode_page
from .models import (
    EntryDescriptor,
    EntryType,
    ItemResult,
    JsonDecimal,
    Page,
    PagedResult,
    Reference,
    SysData,
    UnboxedFields,
    WritableEntry,
)
from .schema import FieldMapping, FieldType, LocaleSet
from .unboxing import unbox_entry, unbox_fields

__all__ = [
    "__version__",
    "auth",
    "client",
    "config",
    "decoding",
    "endpoints",
    "exceptions",
    "log_config",
    "models",
    "resources",
    "schema",
    "types",
    "unboxing",
    "EntryDescriptor",
    "EntryType",
    "FieldMapping",
    "FieldType",
    "ItemResult",
    "JsonDecimal",
    "LocaleSet",
    "Page",
    "PagedResult",
    "Reference",
    "SysData",
    "UnboxedFields",
    "WritableEntry",
    "decode_item",
    "decode_page",
    "unbox_entry",
    "unbox_fields",
]
