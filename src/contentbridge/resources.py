"""Resource mixins for the entries endpoints.

These mixins glue the request builders, the ``ContentApiClient`` transport and
the decoders together for one content type. ``EntriesClient`` combines all of
them; a read-only client can be composed from ``GettableMixin`` and
``PageableMixin`` alone.

The content type is described by an ``EntryDescriptor`` passed to the resource
client, so schema and constructor travel explicitly with every decode call.
"""

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Protocol

from .decoding import decode_item, decode_page
from .endpoints import (
    create_request,
    entry_request,
    page_request,
    publish_entry_request,
    update_request,
)
from .exceptions import MalformedEntryError, ValidationError
from .log_config import logger
from .models import (
    EntryDescriptor,
    ItemResult,
    Page,
    PagedResult,
    SysData,
    WritableEntry,
)
from .schema import LocaleSet
from .types import RequestDescriptor

if TYPE_CHECKING:
    from .client import ContentApiClient


class ResourceClientProtocol(Protocol):
    """Interface the mixins expect from the class they are mixed into."""

    _api_client: "ContentApiClient"
    _descriptor: EntryDescriptor[Any]
    _locale: LocaleSet | None

    @property
    def space_id(self) -> str: ...


class BaseResourceClient:
    """Base class for resource clients bound to one content type.

    Attributes:
        _api_client: The ``ContentApiClient`` used for HTTP requests.
        _descriptor: Schema and constructor of the content type.
        _locale: Locale preference used when decoding; defaults to the client's
            configured locales.
    """

    def __init__(
        self,
        api_client: "ContentApiClient",
        descriptor: EntryDescriptor[Any],
        locale: LocaleSet | None = None,
    ):
        self._api_client = api_client
        self._descriptor = descriptor
        self._locale = locale if locale is not None else api_client.locale
        logger.debug(
            f"{self.__class__.__name__} initialized for content type "
            f"'{descriptor.content_type}'"
        )

    @property
    def space_id(self) -> str:
        return self._api_client.space_id


class GettableMixin:
    """Mixin providing ``get()`` for single entries."""

    async def get(self: ResourceClientProtocol, entry_id: str) -> ItemResult[Any]:
        """Fetch and decode a single entry.

        Args:
            entry_id: Id of the entry to fetch.

        Returns:
            ItemResult: The decoded entry, or the decoding error for it.

        Raises:
            NotFoundError: If the entry does not exist.
            ContentBridgeError: If the request fails.
        """
        logger.info(f"Fetching entry with ID: {entry_id}")
        body = await self._api_client.fetch(entry_request(self.space_id, entry_id))
        return decode_item(
            body,
            self._descriptor.field_mapping,
            self._descriptor.create,
            self._locale,
        )


class PageableMixin:
    """Mixin providing offset-paginated reads: ``page()`` and ``iterate()``."""

    async def page(
        self: ResourceClientProtocol,
        page_index: int = 0,
        page_size: int | None = None,
    ) -> PagedResult[Any]:
        """Fetch and decode one page of entries of the content type.

        Args:
            page_index: Zero-based page number.
            page_size: Entries per page; defaults to ``settings.default_page_size``.

        Returns:
            PagedResult: Decoded entries, failed rows and the server's page state.

        Raises:
            ValidationError: If ``page_index`` or ``page_size`` is out of range.
            EnvelopeError: If the response is not a well-formed list envelope.
        """
        size = page_size or self._api_client.settings.default_page_size
        if page_index < 0 or size <= 0:
            raise ValidationError(
                f"Invalid page request: page_index={page_index}, page_size={size}"
            )
        request_page = Page(items_per_page=size, current_page=page_index)
        logger.info(
            f"Fetching '{self._descriptor.content_type}' page {page_index} (size {size})"
        )
        body = await self._api_client.fetch(
            page_request(self.space_id, self._descriptor.content_type, request_page)
        )
        return decode_page(
            body,
            self._descriptor.field_mapping,
            self._descriptor.create,
            self._locale,
        )

    async def iterate(
        self: ResourceClientProtocol, page_size: int | None = None
    ) -> AsyncIterator[Any]:
        """Iterate over every entry of the content type, page by page.

        Rows that fail to decode are logged and skipped. Each following page is
        requested with the ``limit`` the server reported, which may be lower
        than ``page_size`` when the server caps page sizes.

        Args:
            page_size: Entries requested for the first page.

        Yields:
            Any: Each successfully decoded entry, in server order.
        """
        result = await self.page(0, page_size)  # type: ignore[attr-defined]
        while True:
            for index, error in result.failures:
                logger.warning(
                    f"Skipping entry {result.page.skip + index} of "
                    f"'{self._descriptor.content_type}': {error}"
                )
            for item in result.items:
                yield item

            rows = len(result.items) + len(result.failures)
            if not result.page.has_next or rows == 0:
                logger.debug(
                    f"No more pages for '{self._descriptor.content_type}', stopping iteration."
                )
                break

            next_page = result.page.next()
            if page_size and next_page.items_per_page != page_size:
                logger.debug(
                    f"Server limited page size to {next_page.items_per_page} "
                    f"(requested {page_size})"
                )
            result = await self.page(  # type: ignore[attr-defined]
                next_page.current_page, next_page.items_per_page
            )


class WritableMixin:
    """Mixin providing ``create()``, ``update()`` and ``publish()``."""

    async def _write(
        self: ResourceClientProtocol, action: str, request: RequestDescriptor
    ) -> SysData:
        payload = await self._api_client.fetch_json(request)
        sys = payload.get("sys") if isinstance(payload, dict) else None
        try:
            sys_data = SysData.model_validate(sys)
        except ValueError as e:
            raise MalformedEntryError(
                f"{action} response carries no valid 'sys' object: {e}"
            ) from e
        logger.info(f"{action} entry {sys_data.id} -> version {sys_data.version}")
        return sys_data

    async def create(self, entry: WritableEntry, locale_code: str) -> SysData:
        """Create ``entry`` as a new entry; returns the new entry's id and version."""
        request = create_request(self.space_id, entry, locale_code)  # type: ignore[attr-defined]
        return await self._write("Create", request)

    async def update(self, entry: WritableEntry, locale_code: str) -> SysData:
        """Overwrite the entry ``entry`` was read from; returns its new version."""
        request = update_request(self.space_id, entry, locale_code)  # type: ignore[attr-defined]
        return await self._write("Update", request)

    async def publish(self, entry: WritableEntry) -> SysData:
        """Publish the version of ``entry`` it was read at."""
        request = publish_entry_request(self.space_id, entry)  # type: ignore[attr-defined]
        return await self._write("Publish", request)


class EntriesClient(GettableMixin, PageableMixin, WritableMixin, BaseResourceClient):
    """Client for the entries of one content type.

    Example:
    ```python
    async with ContentApiClient() as api:
        products = EntriesClient(api, Product)
        page = await products.page(0)
        for product in page.items:
            ...
    ```
    """


__all__ = [
    "BaseResourceClient",
    "EntriesClient",
    "GettableMixin",
    "PageableMixin",
    "WritableMixin",
]
