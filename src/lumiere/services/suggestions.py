from __future__ import annotations

from collections.abc import Iterable

from lumiere.clients.tmdb import TMDBClient
from lumiere.config import Settings
from lumiere.models import (
    ContentDetails,
    ContentItem,
    ContentType,
    FilterSet,
    Genre,
    ServedState,
    SuggestionPool,
)
from lumiere.randomness import RandomSource
from lumiere.services.pool import SuggestionPoolBuilder
from lumiere.services.selector import SuggestionSelector


class SuggestionService:
    """Entry points the display layer uses to request suggestions."""

    def __init__(
        self,
        client: TMDBClient,
        *,
        builder: SuggestionPoolBuilder | None = None,
        random_source: RandomSource | None = None,
        debug: bool = False,
    ) -> None:
        self._client = client
        self._builder = builder or SuggestionPoolBuilder(
            client, random_source=random_source, debug=debug
        )
        self._selector = SuggestionSelector(self._builder)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        random_source: RandomSource | None = None,
        debug: bool = False,
    ) -> SuggestionService:
        client = TMDBClient(
            settings.tmdb_api_key,
            base_url=settings.tmdb_base_url,
            language=settings.tmdb_language,
            min_vote_count=settings.min_vote_count,
            timeout=settings.tmdb_timeout,
            random_source=random_source,
        )
        builder = SuggestionPoolBuilder(
            client,
            random_source=random_source,
            max_pages=settings.max_pages,
            page_batch_size=settings.page_batch_size,
            detail_batch_size=settings.detail_batch_size,
            detail_batch_delay=settings.detail_batch_delay,
            debug=debug,
        )
        return cls(client, builder=builder)

    async def build(self, filters: FilterSet) -> SuggestionPool:
        return await self._builder.build(filters)

    async def next(self, filters: FilterSet, exclude_ids: Iterable[int] = ()) -> ContentItem | None:
        return await self._selector.next(filters, exclude_ids)

    async def suggest(
        self, filters: FilterSet, served: ServedState | None = None
    ) -> tuple[ContentItem | None, ServedState]:
        """Return the next pick together with the updated served state."""
        served = served or ServedState()
        item = await self._selector.next(filters, served.ids)
        if item is None:
            return None, served
        return item, served.record(item)

    async def get_genres(self, content_type: ContentType | str) -> list[Genre]:
        return await self._client.get_genres(content_type)

    async def fetch_details(self, content_type: ContentType | str, item_id: int) -> ContentDetails:
        return await self._client.fetch_details(content_type, item_id)

    def invalidate(self) -> None:
        """Forget the current pool; call whenever the active filters change."""
        self._builder.invalidate()

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> SuggestionService:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.close()


__all__ = ["SuggestionService"]
