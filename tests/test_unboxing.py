"""Tests for the field-unboxing engine."""

from datetime import date
from decimal import Decimal

import pytest
from conftest import as_body, link, make_entry

from contentbridge.decoding import decode_item
from contentbridge.exceptions import (
    FieldFormatError,
    MalformedEntryError,
    MissingRequiredFieldsError,
    RequiredKeyMissingError,
    TypeMismatchError,
)
from contentbridge.models import Reference
from contentbridge.schema import FieldType, LocaleSet
from contentbridge.unboxing import unbox_entry, unbox_fields

SYS = {"id": "e1", "version": 7}


def test_unbox_all_field_types(schema, us_locale):
    entry = make_entry(
        name="Widget",
        stock=12,
        active=True,
        price=9.5,
        launched="2020-01-15",
        brand=link("b1"),
        related=[link("r1"), link("r2", "Asset")],
    )

    fields = unbox_entry(entry, schema, us_locale)

    assert dict(fields) == {
        "id": "e1",
        "version": 3,
        "name": "Widget",
        "stock": 12,
        "active": True,
        "price": Decimal("9.5"),
        "launched": date(2020, 1, 15),
        "brand": Reference(id="b1", link_type="Entry"),
        "related": (
            Reference(id="r1", link_type="Entry"),
            Reference(id="r2", link_type="Asset"),
        ),
    }


def test_result_contains_only_schema_fields(schema):
    raw = {"name": {"en-US": "Widget"}, "unknownField": {"en-US": "ignored"}}

    fields = unbox_fields(raw, SYS, schema)

    assert set(fields) == {"id", "version", "name"}


def test_result_is_read_only(schema):
    fields = unbox_fields({"name": {"en-US": "Widget"}}, SYS, schema)
    with pytest.raises(TypeError):
        fields["name"] = "Other"  # type: ignore[index]


def test_missing_required_fields_lists_every_name():
    schema = {
        "title": (FieldType.STRING, True),
        "slug": (FieldType.STRING, True),
        "body": (FieldType.STRING, True),
        "tags": (FieldType.STRING, False),
    }
    raw = {"body": {"en-US": "text"}, "tags": {"en-US": "x"}}

    with pytest.raises(MissingRequiredFieldsError) as exc_info:
        unbox_fields(raw, SYS, schema)

    assert exc_info.value.names == {"title", "slug"}


def test_missing_required_fields_checked_before_field_decoding():
    """A badly typed field is not reported while required fields are missing."""
    schema = {"title": (FieldType.STRING, True), "count": (FieldType.INT, False)}
    raw = {"count": {"en-US": "not-an-int"}}

    with pytest.raises(MissingRequiredFieldsError):
        unbox_fields(raw, SYS, schema)


def test_required_field_without_value_for_locale(schema):
    raw = {"name": {"fr": "Machin"}}

    with pytest.raises(RequiredKeyMissingError) as exc_info:
        unbox_fields(raw, SYS, schema, LocaleSet(favoured="de", fallback="es"))

    assert exc_info.value.name == "name"


def test_required_field_with_null_value(schema):
    with pytest.raises(RequiredKeyMissingError):
        unbox_fields({"name": {"en-US": None}}, SYS, schema)


def test_optional_field_without_value_is_omitted(schema, us_locale):
    raw = {"name": {"en-US": "Widget"}, "stock": {"fr": 4}, "active": {"en-US": None}}

    fields = unbox_fields(raw, SYS, schema, us_locale)

    assert "stock" not in fields
    assert "active" not in fields


def test_fallback_locale_is_used(schema, us_locale):
    raw = {"name": {"en-GB": "Colour chart"}}

    fields = unbox_fields(raw, SYS, schema, us_locale)

    assert fields["name"] == "Colour chart"


def test_date_parses_full_date(schema):
    raw = {"name": {"en-US": "x"}, "launched": {"en-US": "2020-01-15"}}
    assert unbox_fields(raw, SYS, schema)["launched"] == date(2020, 1, 15)


@pytest.mark.parametrize("value", ["not-a-date", "2020-13-01", "2020-01-15T10:00:00Z"])
def test_date_format_error_names_field(schema, value):
    raw = {"name": {"en-US": "x"}, "launched": {"en-US": value}}

    with pytest.raises(FieldFormatError) as exc_info:
        unbox_fields(raw, SYS, schema)

    assert exc_info.value.name == "launched"


def test_one_to_one_reference_missing_link_type(schema):
    raw = {"name": {"en-US": "x"}, "brand": {"en-US": {"sys": {"id": "b1"}}}}

    with pytest.raises(TypeMismatchError) as exc_info:
        unbox_fields(raw, SYS, schema)

    assert exc_info.value.name == "brand"
    assert exc_info.value.expected is FieldType.ONE_TO_ONE_REF


def test_one_to_one_reference_with_null_id(schema):
    raw = {
        "name": {"en-US": "x"},
        "brand": {"en-US": {"sys": {"id": None, "linkType": "Entry"}}},
    }
    with pytest.raises(TypeMismatchError):
        unbox_fields(raw, SYS, schema)


def test_one_to_many_reference_keeps_source_order(schema):
    raw = {
        "name": {"en-US": "x"},
        "related": {"en-US": [link("c"), link("a"), link("b")]},
    }

    related = unbox_fields(raw, SYS, schema)["related"]

    assert [ref.id for ref in related] == ["c", "a", "b"]


def test_one_to_many_reference_entry_without_id(schema):
    broken = {"sys": {"type": "Link", "linkType": "Entry"}}
    raw = {"name": {"en-US": "x"}, "related": {"en-US": [link("a"), broken, link("b")]}}

    with pytest.raises(TypeMismatchError) as exc_info:
        unbox_fields(raw, SYS, schema)

    assert exc_info.value.expected is FieldType.ONE_TO_MANY_REF


def test_one_to_many_reference_empty_list(schema):
    raw = {"name": {"en-US": "x"}, "related": {"en-US": []}}
    assert unbox_fields(raw, SYS, schema)["related"] == ()


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("name", 5),
        ("stock", "12"),
        ("stock", True),
        ("active", 1),
        ("price", "9.99"),
        ("launched", 20200115),
        ("related", link("a")),
    ],
)
def test_scalar_type_mismatch(schema, field, value):
    raw = {"name": {"en-US": "x"}, field: {"en-US": value}}

    with pytest.raises(TypeMismatchError) as exc_info:
        unbox_fields(raw, SYS, schema)

    assert exc_info.value.name == field


def test_field_not_locale_keyed(schema):
    with pytest.raises(TypeMismatchError):
        unbox_fields({"name": "Widget"}, SYS, schema)


def test_decimal_accepts_integers(schema):
    raw = {"name": {"en-US": "x"}, "price": {"en-US": 10}}
    assert unbox_fields(raw, SYS, schema)["price"] == Decimal(10)


@pytest.mark.parametrize(
    "sys",
    [
        {"version": 1},
        {"id": "e1"},
        {"id": 5, "version": 1},
        {"id": "e1", "version": "1"},
        None,
    ],
)
def test_malformed_system_metadata(schema, sys):
    with pytest.raises(MalformedEntryError):
        unbox_fields({"name": {"en-US": "x"}}, sys, schema)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "entry",
    [[], {"fields": {}}, {"sys": {"id": "e1", "version": 1}}],
)
def test_malformed_entry_envelope(schema, entry):
    with pytest.raises(MalformedEntryError):
        unbox_entry(entry, schema)


def test_unboxing_twice_gives_equal_results(schema, us_locale):
    entry = make_entry(name="Widget", related=[link("a"), link("b")])
    assert unbox_entry(entry, schema, us_locale) == unbox_entry(entry, schema, us_locale)


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
def test_decimal_rejects_non_finite_numbers(schema, literal):
    # json.dumps writes these as the bare NaN and Infinity literals
    body = as_body(make_entry(name="x", price=float(literal)))
    first = decode_item(body, schema, dict)
    second = decode_item(body, schema, dict)

    assert first.error == FieldFormatError("price")
    assert first == second
