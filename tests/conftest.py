# tests/conftest.py
import json
from typing import Any, ClassVar

import pytest

from contentbridge.config import ContentSettings
from contentbridge.models import JsonDecimal, WritableEntry
from contentbridge.schema import FieldMapping, FieldType, LocaleSet

PRODUCT_SCHEMA: FieldMapping = {
    "name": (FieldType.STRING, True),
    "stock": (FieldType.INT, False),
    "active": (FieldType.BOOL, False),
    "price": (FieldType.DECIMAL, False),
    "launched": (FieldType.DATE, False),
    "brand": (FieldType.ONE_TO_ONE_REF, False),
    "related": (FieldType.ONE_TO_MANY_REF, False),
}


class Product(WritableEntry):
    content_type: ClassVar[str] = "product"
    field_mapping: ClassVar[FieldMapping] = PRODUCT_SCHEMA

    name: str
    stock: int | None = None
    active: bool | None = None
    price: JsonDecimal | None = None


def link(entry_id: str, link_type: str = "Entry") -> dict[str, Any]:
    return {"sys": {"type": "Link", "linkType": link_type, "id": entry_id}}


def make_entry(entry_id: str = "e1", version: int = 3, **fields: Any) -> dict[str, Any]:
    """An entry envelope; each keyword becomes an ``en-US`` localised field."""
    return {
        "sys": {"id": entry_id, "version": version},
        "fields": {name: {"en-US": value} for name, value in fields.items()},
    }


def as_body(payload: Any) -> bytes:
    return json.dumps(payload).encode("utf-8")


@pytest.fixture
def schema() -> FieldMapping:
    return PRODUCT_SCHEMA


@pytest.fixture
def us_locale() -> LocaleSet:
    return LocaleSet(favoured="en-US", fallback="en-GB")


@pytest.fixture
def settings() -> ContentSettings:
    return ContentSettings(
        base_url="https://api.example.com",
        space_id="space1",
        access_token="cma-token",
        favoured_locale="en-US",
        fallback_locale="en-GB",
        default_page_size=2,
        max_retries=2,
        backoff_factor=0.01,
    )
