from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from lumiere.models.content import ContentItem


@dataclass(frozen=True)
class SuggestionPool:
    """Deduplicated, shuffled candidates for a single filters key."""

    key: str
    items: tuple[ContentItem, ...] = ()

    def __post_init__(self) -> None:
        ids = [item.id for item in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError("SuggestionPool items must have unique ids")

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def first(self) -> ContentItem | None:
        return self.items[0] if self.items else None

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(item.id for item in self.items)


@dataclass(frozen=True)
class ServedState:
    """Ids already shown to the user for the current pool.

    The state is replaced, never mutated: ``record`` returns the next state.
    Seeing an id that was already served means the pool cycled, so tracking
    restarts with just that id.
    """

    ids: frozenset[int] = field(default_factory=frozenset)

    def cycled_on(self, item: ContentItem) -> bool:
        return item.id in self.ids

    def record(self, item: ContentItem) -> ServedState:
        if self.cycled_on(item):
            return ServedState(ids=frozenset({item.id}))
        return ServedState(ids=self.ids | {item.id})

    def __len__(self) -> int:
        return len(self.ids)
