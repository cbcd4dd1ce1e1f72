from __future__ import annotations

from collections.abc import Iterable

from lumiere.models import ContentItem, FilterSet, SuggestionPool
from lumiere.services.pool import SuggestionPoolBuilder


def select_from_pool(pool: SuggestionPool, exclude_ids: Iterable[int] = ()) -> ContentItem | None:
    """Pick the first pool item not yet served.

    Returns ``None`` for an empty pool. Once every id is excluded the pool's
    first item is returned again; the repeated id tells the caller to restart
    its served-id tracking.
    """
    if pool.is_empty:
        return None
    excluded = frozenset(exclude_ids)
    for item in pool:
        if item.id not in excluded:
            return item
    return pool.first


class SuggestionSelector:
    """Serves non-repeating picks from the current pool."""

    def __init__(self, builder: SuggestionPoolBuilder) -> None:
        self._builder = builder

    async def next(self, filters: FilterSet, exclude_ids: Iterable[int] = ()) -> ContentItem | None:
        pool = await self._builder.build(filters)
        return select_from_pool(pool, exclude_ids)


__all__ = ["SuggestionSelector", "select_from_pool"]
