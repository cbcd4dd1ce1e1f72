from .content import ContentDetails, ContentItem, ContentType, DiscoverPage, FilterSet, Genre
from .pool import ServedState, SuggestionPool

__all__ = [
    "ContentDetails",
    "ContentItem",
    "ContentType",
    "DiscoverPage",
    "FilterSet",
    "Genre",
    "ServedState",
    "SuggestionPool",
]
