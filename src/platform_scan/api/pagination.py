"""Cursor-following pagination for the HAL collections of the platform API.

Every page carries a ``_links`` map; a ``next`` relation points at the
following page and its absence marks the last page. Hrefs may be relative to
the API base or fully qualified.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from platform_scan.errors import PageFetchError, PageLimitExceededError
from platform_scan.models import Page
from platform_scan.tasks import cancel_all

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 1000

ItemT = TypeVar("ItemT", bound=BaseModel)
ParentT = TypeVar("ParentT")

JsonGetter = Callable[[str], Awaitable[Any]]


def resolve_href(base_url: str, href: str) -> str:
    """Return *href* unchanged when absolute, otherwise prefixed with *base_url*."""
    if httpx.URL(href).is_absolute_url:
        return href
    return base_url.rstrip("/") + "/" + href.lstrip("/")


class PaginatedFetcher:
    def __init__(self, get_json: JsonGetter, base_url: str, max_pages: int = DEFAULT_MAX_PAGES) -> None:
        self._get_json = get_json
        self._base_url = base_url
        self._max_pages = max_pages

    async def pages(self, url: str, item_model: type[ItemT]) -> AsyncIterator[list[ItemT]]:
        """Yield the items of each page in order, following ``next`` until it is absent."""
        page_type = Page[item_model]  # type: ignore[valid-type]
        next_url: str | None = resolve_href(self._base_url, url)
        fetched = 0
        while next_url is not None:
            if fetched >= self._max_pages:
                raise PageLimitExceededError(next_url, f"Gave up after {self._max_pages} pages")
            logger.debug("Fetching page %d: %s", fetched + 1, next_url)
            payload = await self._get_json(next_url)
            try:
                page = page_type.model_validate(payload)
            except ValidationError as exc:
                raise PageFetchError(next_url, f"Unexpected page shape: {exc.error_count()} error(s)") from exc
            fetched += 1
            yield page.items

            link = page.links.get("next")
            next_url = resolve_href(self._base_url, link.href) if link is not None else None

    async def fetch_all(self, url: str, item_model: type[ItemT]) -> list[ItemT]:
        """Concatenate every page of the collection at *url*.

        Any failure aborts the whole fetch; no partial result is returned.
        """
        items: list[ItemT] = []
        async for page_items in self.pages(url, item_model):
            items.extend(page_items)
        return items

    async def fetch_nested(
        self,
        parents: Sequence[ParentT],
        url_for: Callable[[ParentT], str],
        item_model: type[ItemT],
        concurrency: int = 1,
    ) -> list[ItemT]:
        """Fetch one child collection per parent and flatten them.

        With ``concurrency <= 1`` the children are fetched one parent at a time and
        concatenated in parent order. Otherwise up to *concurrency* collections are
        fetched at once and concatenated in completion order.
        """
        items: list[ItemT] = []
        if concurrency <= 1:
            for parent in parents:
                items.extend(await self.fetch_all(url_for(parent), item_model))
            return items

        semaphore = asyncio.Semaphore(concurrency)

        async def _fetch(parent: ParentT) -> list[ItemT]:
            async with semaphore:
                return await self.fetch_all(url_for(parent), item_model)

        tasks = [asyncio.ensure_future(_fetch(parent)) for parent in parents]
        try:
            for finished in asyncio.as_completed(tasks):
                items.extend(await finished)
        except BaseException:
            await cancel_all(tasks)
            raise
        return items
