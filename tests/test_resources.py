# tests/test_resources.py
from unittest.mock import AsyncMock

import pytest
from conftest import Product, as_body, make_entry

from contentbridge.client import ContentApiClient
from contentbridge.endpoints import (
    entry_request,
    page_request,
    publish_request,
)
from contentbridge.exceptions import (
    FieldFormatError,
    MalformedEntryError,
    NotFoundError,
    ValidationError,
)
from contentbridge.models import Page, SysData
from contentbridge.resources import EntriesClient
from contentbridge.schema import LocaleSet

# --- Mocks and Fixtures ---


def page_body(items, total, skip, limit):
    return as_body({"total": total, "skip": skip, "limit": limit, "items": items})


@pytest.fixture
def mock_api_client(settings):
    client = AsyncMock(spec=ContentApiClient)
    client.settings = settings
    client.space_id = "space1"
    client.locale = settings.locale_set()
    client.fetch = AsyncMock()
    client.fetch_json = AsyncMock()
    return client


@pytest.fixture
def products(mock_api_client) -> EntriesClient:
    return EntriesClient(mock_api_client, Product)


# --- BaseResourceClient ---


def test_locale_defaults_to_client_locale(products, mock_api_client):
    assert products._locale == LocaleSet(favoured="en-US", fallback="en-GB")
    french = LocaleSet(favoured="fr", fallback="fr")
    explicit = EntriesClient(mock_api_client, Product, french)
    assert explicit._locale == french


# --- GettableMixin ---


@pytest.mark.asyncio
async def test_get_decodes_entry(products, mock_api_client):
    mock_api_client.fetch.return_value = as_body(make_entry("p1", 4, name="Widget"))

    result = await products.get("p1")

    mock_api_client.fetch.assert_awaited_once_with(entry_request("space1", "p1"))
    assert result.unwrap() == Product(
        contentful_id="p1", contentful_version=4, name="Widget"
    )


@pytest.mark.asyncio
async def test_get_returns_decoding_failure(products, mock_api_client):
    mock_api_client.fetch.return_value = as_body(
        make_entry("p1", name="Widget", launched="yesterday")
    )

    result = await products.get("p1")

    assert result.error == FieldFormatError("launched")


@pytest.mark.asyncio
async def test_get_propagates_transport_errors(products, mock_api_client):
    mock_api_client.fetch.side_effect = NotFoundError("Resource not found")

    with pytest.raises(NotFoundError):
        await products.get("missing")


# --- PageableMixin ---


@pytest.mark.asyncio
async def test_page_uses_default_page_size(products, mock_api_client):
    mock_api_client.fetch.return_value = page_body(
        [make_entry("a", name="A"), make_entry("b", name="B")], total=5, skip=2, limit=2
    )

    result = await products.page(1)

    mock_api_client.fetch.assert_awaited_once_with(
        page_request("space1", "product", Page(items_per_page=2, current_page=1))
    )
    assert [product.name for product in result.items] == ["A", "B"]
    assert result.page == Page(
        items_per_page=2, current_page=1, total_items_available=5
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(("page_index", "page_size"), [(-1, 10), (0, -5)])
async def test_page_rejects_invalid_range(
    products, mock_api_client, page_index, page_size
):
    with pytest.raises(ValidationError):
        await products.page(page_index, page_size)
    mock_api_client.fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_iterate_walks_every_page(products, mock_api_client):
    mock_api_client.fetch.side_effect = [
        page_body([make_entry("a", name="A"), make_entry("b", name="B")], 5, 0, 2),
        page_body([make_entry("c", name="C"), make_entry("d", stock=1)], 5, 2, 2),
        page_body([make_entry("e", name="E")], 5, 4, 2),
    ]

    names = [product.name async for product in products.iterate()]

    assert names == ["A", "B", "C", "E"]
    assert mock_api_client.fetch.await_count == 3
    last_request = mock_api_client.fetch.await_args.args[0]
    assert ("skip", "4") in last_request.query


@pytest.mark.asyncio
async def test_iterate_follows_server_capped_limit(products, mock_api_client):
    entries = [make_entry(f"n{i}", name=f"n{i}") for i in range(6)]
    mock_api_client.fetch.side_effect = [
        page_body(entries[0:2], 6, 0, 2),
        page_body(entries[2:4], 6, 2, 2),
        page_body(entries[4:6], 6, 4, 2),
    ]

    names = [product.name async for product in products.iterate(page_size=4)]

    assert names == ["n0", "n1", "n2", "n3", "n4", "n5"]
    requests = [call.args[0] for call in mock_api_client.fetch.await_args_list]
    assert [dict(request.query)["limit"] for request in requests] == ["4", "2", "2"]
    assert [dict(request.query)["skip"] for request in requests] == ["0", "2", "4"]


@pytest.mark.asyncio
async def test_iterate_stops_when_server_returns_no_rows(products, mock_api_client):
    mock_api_client.fetch.return_value = page_body([], 10, 0, 2)

    assert [product async for product in products.iterate()] == []
    assert mock_api_client.fetch.await_count == 1


@pytest.mark.asyncio
async def test_iterate_stops_on_empty_result(products, mock_api_client):
    mock_api_client.fetch.return_value = page_body([], 0, 0, 2)

    assert [product async for product in products.iterate()] == []
    assert mock_api_client.fetch.await_count == 1


# --- WritableMixin ---


@pytest.mark.asyncio
async def test_create_returns_new_sys(products, mock_api_client):
    mock_api_client.fetch_json.return_value = {
        "sys": {"id": "new1", "version": 1, "type": "Entry"},
        "fields": {},
    }

    sys_data = await products.create(Product(name="Widget", stock=2), "en-US")

    assert sys_data == SysData(id="new1", version=1)
    descriptor = mock_api_client.fetch_json.await_args.args[0]
    assert descriptor.method == "POST"
    assert descriptor.headers["X-Contentful-Content-Type"] == "product"
    assert descriptor.body == {
        "fields": {"name": {"en-US": "Widget"}, "stock": {"en-US": 2}}
    }


@pytest.mark.asyncio
async def test_update_sends_current_version(products, mock_api_client):
    mock_api_client.fetch_json.return_value = {"sys": {"id": "p1", "version": 6}}
    product = Product(contentful_id="p1", contentful_version=5, name="Renamed")

    sys_data = await products.update(product, "en-US")

    assert sys_data.version == 6
    descriptor = mock_api_client.fetch_json.await_args.args[0]
    assert descriptor.method == "PUT"
    assert descriptor.path == "/spaces/space1/entries/p1"
    assert descriptor.headers["X-Contentful-Version"] == "5"


@pytest.mark.asyncio
async def test_publish(products, mock_api_client):
    mock_api_client.fetch_json.return_value = {"sys": {"id": "p1", "version": 7}}
    product = Product(contentful_id="p1", contentful_version=6, name="Widget")

    assert await products.publish(product) == SysData(id="p1", version=7)
    mock_api_client.fetch_json.assert_awaited_once_with(
        publish_request("space1", "p1", 6)
    )


@pytest.mark.asyncio
async def test_update_requires_existing_entry(products, mock_api_client):
    with pytest.raises(ValidationError):
        await products.update(Product(name="Widget"), "en-US")
    mock_api_client.fetch_json.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload", [{"fields": {}}, {"sys": {"id": "p1"}}, ["not", "an", "object"]]
)
async def test_write_with_malformed_response(products, mock_api_client, payload):
    mock_api_client.fetch_json.return_value = payload

    with pytest.raises(MalformedEntryError):
        await products.create(Product(name="Widget"), "en-US")
