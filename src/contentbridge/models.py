"""Value objects and descriptor protocols for the contentbridge library.

Everything a decode produces lives here: references to linked entries, page
descriptors, per-item and per-page results. All of them are frozen pydantic
models created fresh per decode call.

This module also defines how callers describe their content types. Instead of a
registry, each decode entry point receives an ``EntryDescriptor``: the field
schema of one content type plus the function that builds an application object
from its unboxed fields.
"""

from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from typing import (
    Annotated,
    Any,
    ClassVar,
    Generic,
    Protocol,
    Self,
    TypeVar,
    runtime_checkable,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    model_serializer,
    model_validator,
)

from .exceptions import DecodingError
from .schema import FieldMapping, FieldType

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Reference(BaseModel):
    """A link from a field to another entry or asset.

    The reference is only a named pointer; resolving it is left to the caller.
    Dumping a reference produces the API's link object, so references survive a
    round trip through an outgoing request body.

    Attributes:
        id: The id of the linked entry or asset.
        link_type: The kind of link target, e.g. ``"Entry"`` or ``"Asset"``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    link_type: str

    @model_serializer
    def serialize_as_link(self) -> dict[str, Any]:
        return {"sys": {"type": "Link", "linkType": self.link_type, "id": self.id}}


FieldValue = str | int | bool | Decimal | date | Reference | tuple[Reference, ...]
"""The closed set of values a decoded field can hold."""

UnboxedFields = Mapping[str, FieldValue]
"""Decoded fields of one entry; always holds ``id`` (str) and ``version`` (int)."""

JsonDecimal = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]
"""A DECIMAL field value that is written to request bodies as a JSON number."""


class Page(BaseModel):
    """Pagination state of a list request or response.

    Attributes:
        items_per_page: Page size; the API's ``limit``.
        current_page: Zero-based page index.
        total_items_available: Total entries matching the query, as reported by
            the server. Zero for pages built locally to make a request.
    """

    model_config = ConfigDict(frozen=True)

    items_per_page: int = Field(gt=0)
    current_page: int = Field(default=0, ge=0)
    total_items_available: int = Field(default=0, ge=0)

    @property
    def skip(self) -> int:
        """Offset of the first entry of this page."""
        return self.items_per_page * self.current_page

    @property
    def has_next(self) -> bool:
        return self.skip + self.items_per_page < self.total_items_available

    def next(self) -> "Page":
        return self.model_copy(update={"current_page": self.current_page + 1})


class SysData(BaseModel):
    """Identity and version of an entry as reported in its ``sys`` object."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    version: int


class ItemResult(BaseModel, Generic[T]):
    """Outcome of decoding one entry: either a value or a ``DecodingError``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: T | None = None
    error: DecodingError | None = None

    @model_validator(mode="after")
    def check_single_outcome(self) -> Self:
        if self.error is not None and self.value is not None:
            raise ValueError("An ItemResult holds either a value or an error")
        return self

    @classmethod
    def success(cls, value: T) -> "ItemResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DecodingError) -> "ItemResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the decoded value, raising the captured error if there is one."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class PagedResult(BaseModel, Generic[T]):
    """Outcome of decoding one page of entries.

    Attributes:
        items: Successfully decoded entries, in their original relative order.
        failures: ``(index, error)`` pairs for rows that failed to decode. The
            index is the row's position in the response's ``items`` array, not
            in ``items`` above.
        page: Pagination state reported by the server.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    items: tuple[T, ...] = ()
    failures: tuple[tuple[int, DecodingError], ...] = ()
    page: Page

    @property
    def failed_indices(self) -> tuple[int, ...]:
        return tuple(index for index, _ in self.failures)


@runtime_checkable
class EntryDescriptor(Protocol[T_co]):
    """What the decoders need to know about one content type.

    Attributes:
        content_type: The API's content type id, e.g. ``"product"``.
        field_mapping: Schema of the content type's fields.
    """

    content_type: str
    field_mapping: FieldMapping

    def create(self, fields: UnboxedFields) -> T_co:
        """Build an application object from a decoded entry."""
        ...


class EntryType(BaseModel, Generic[T]):
    """Concrete ``EntryDescriptor`` wrapping a schema and a constructor function.

    Example:
        ```python
        cities = EntryType(
            content_type="city",
            field_mapping={"name": (FieldType.STRING, True)},
            constructor=lambda fields: City(fields["id"], fields["name"]),
        )
        ```
    """

    model_config = ConfigDict(frozen=True)

    content_type: str
    field_mapping: dict[str, tuple[FieldType, bool]]
    constructor: Callable[[UnboxedFields], T]

    def create(self, fields: UnboxedFields) -> T:
        return self.constructor(fields)


class WritableEntry(BaseModel):
    """Base class for application objects that can be read, created and updated.

    Subclasses declare their content type and field schema as class variables,
    which makes the class itself usable as an ``EntryDescriptor``:

    ```python
    class Product(WritableEntry):
        content_type: ClassVar[str] = "product"
        field_mapping: ClassVar[FieldMapping] = {"name": (FieldType.STRING, True)}

        name: str
    ```

    ``contentful_id`` and ``contentful_version`` carry the entry's ``sys`` data;
    they are never written into the ``fields`` of a request body.
    Declare DECIMAL fields as ``JsonDecimal`` so they are sent as JSON numbers.
    """

    model_config = ConfigDict(populate_by_name=True)

    content_type: ClassVar[str]
    field_mapping: ClassVar[FieldMapping] = {}

    contentful_id: str | None = None
    contentful_version: int | None = None

    @classmethod
    def create(cls, fields: UnboxedFields) -> Self:
        """Validate a decoded entry into an instance of this class."""
        values = {
            name: value
            for name, value in fields.items()
            if name not in ("id", "version")
        }
        values["contentful_id"] = fields["id"]
        values["contentful_version"] = fields["version"]
        return cls.model_validate(values)
