"""Suggestion pool construction and caching."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Protocol

from lumiere.clients.tmdb import UpstreamError
from lumiere.models import (
    ContentDetails,
    ContentItem,
    ContentType,
    DiscoverPage,
    FilterSet,
    SuggestionPool,
)
from lumiere.randomness import RandomSource, default_random_source, fisher_yates_shuffle
from lumiere.services.classification import is_miniseries

logger = logging.getLogger(__name__)

MAX_PAGES = 50
PAGE_BATCH_SIZE = 5
DETAIL_BATCH_SIZE = 10
DETAIL_BATCH_DELAY = 0.1


class CatalogClient(Protocol):
    """Catalog operations the pool builder depends on."""

    async def fetch_page(self, filters: FilterSet, page: int = 1) -> DiscoverPage:
        """Return one page of discover results."""

    async def fetch_details(
        self,
        content_type: ContentType | str,
        item_id: int,
        *,
        with_credits: bool = True,
    ) -> ContentDetails:
        """Return the detail record for one item."""


class PoolCache:
    """Holds at most one ``(filters key, pool)`` pair."""

    def __init__(self) -> None:
        self._key: str | None = None
        self._pool: SuggestionPool | None = None

    @property
    def key(self) -> str | None:
        return self._key

    def get(self, key: str) -> SuggestionPool | None:
        if self._key != key:
            return None
        return self._pool

    def set(self, key: str, pool: SuggestionPool) -> None:
        self._key = key
        self._pool = pool

    def invalidate(self) -> None:
        self._key = None
        self._pool = None


class SuggestionPoolBuilder:
    """Builds one deduplicated, shuffled pool per distinct filter set."""

    def __init__(
        self,
        client: CatalogClient,
        *,
        cache: PoolCache | None = None,
        random_source: RandomSource | None = None,
        max_pages: int = MAX_PAGES,
        page_batch_size: int = PAGE_BATCH_SIZE,
        detail_batch_size: int = DETAIL_BATCH_SIZE,
        detail_batch_delay: float = DETAIL_BATCH_DELAY,
        debug: bool = False,
    ) -> None:
        if max_pages < 1 or page_batch_size < 1 or detail_batch_size < 1:
            raise ValueError("max_pages and batch sizes must be positive")
        self._client = client
        self._cache = cache if cache is not None else PoolCache()
        self._random = random_source or default_random_source()
        self._max_pages = max_pages
        self._page_batch_size = page_batch_size
        self._detail_batch_size = detail_batch_size
        self._detail_batch_delay = detail_batch_delay
        self._debug = debug

    @property
    def cache(self) -> PoolCache:
        return self._cache

    def invalidate(self) -> None:
        """Drop the cached pool so the next build starts from scratch."""
        self._cache.invalidate()

    async def build(self, filters: FilterSet) -> SuggestionPool:
        """Return the pool for ``filters``, building it on first use.

        A failure on the first page propagates as :class:`UpstreamError`.
        Failures on later pages or on individual detail lookups only shrink
        the pool.
        """
        key = filters.key()
        if self._cache.key != key:
            self._cache.invalidate()

        cached = self._cache.get(key)
        if cached is not None and not cached.is_empty:
            return cached

        first_page = await self._client.fetch_page(filters, 1)
        if not first_page.items:
            if self._debug:
                logger.info("[POOL] First page returned no items; pool is empty")
            pool = SuggestionPool(key=key)
            self._cache.set(key, pool)
            return pool

        total_pages = min(first_page.total_pages, self._max_pages)
        collected = list(first_page.items)
        collected.extend(await self._fetch_remaining_pages(filters, total_pages))

        candidates = _dedupe_by_id(collected)
        if self._debug:
            logger.info(
                f"[POOL] Collected {len(collected)} items from up to {total_pages} pages, "
                f"{len(candidates)} unique"
            )

        if filters.content_type is ContentType.MINISERIES:
            candidates = await self._classify_miniseries(candidates)
            if self._debug:
                logger.info(f"[POOL] {len(candidates)} candidates classified as miniseries")

        pool = SuggestionPool(key=key, items=tuple(fisher_yates_shuffle(candidates, self._random)))
        self._cache.set(key, pool)
        return pool

    async def _fetch_remaining_pages(self, filters: FilterSet, total_pages: int) -> list[ContentItem]:
        items: list[ContentItem] = []
        for start in range(2, total_pages + 1, self._page_batch_size):
            end = min(start + self._page_batch_size - 1, total_pages)
            pages = range(start, end + 1)
            results = await asyncio.gather(
                *(self._client.fetch_page(filters, page) for page in pages),
                return_exceptions=True,
            )

            failures = [result for result in results if isinstance(result, BaseException)]
            if failures:
                for failure in failures:
                    if not isinstance(failure, UpstreamError):
                        raise failure
                logger.warning(
                    "Error fetching pages %s-%s, keeping %s items fetched so far: %s",
                    start,
                    end,
                    len(items),
                    failures[0],
                )
                break

            for page in results:
                items.extend(page.items)
        return items

    async def _classify_miniseries(self, candidates: list[ContentItem]) -> list[ContentItem]:
        kept: list[ContentItem] = []
        for start in range(0, len(candidates), self._detail_batch_size):
            if start and self._detail_batch_delay > 0:
                await asyncio.sleep(self._detail_batch_delay)
            batch = candidates[start : start + self._detail_batch_size]
            results = await asyncio.gather(*(self._classify_one(item) for item in batch))
            kept.extend(item for item in results if item is not None)
        return kept

    async def _classify_one(self, item: ContentItem) -> ContentItem | None:
        try:
            details = await self._client.fetch_details(
                ContentType.TV, item.id, with_credits=False
            )
        except UpstreamError as exc:
            logger.warning("Error getting details for %s (%s): %s", item.title, item.id, exc)
            return None

        if not is_miniseries(details):
            return None
        return item.with_details(details.model_dump(exclude_none=True))


def _dedupe_by_id(items: Iterable[ContentItem]) -> list[ContentItem]:
    seen: set[int] = set()
    unique: list[ContentItem] = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


__all__ = [
    "CatalogClient",
    "DETAIL_BATCH_DELAY",
    "DETAIL_BATCH_SIZE",
    "MAX_PAGES",
    "PAGE_BATCH_SIZE",
    "PoolCache",
    "SuggestionPoolBuilder",
]
