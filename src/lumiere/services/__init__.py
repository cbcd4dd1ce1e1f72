from .classification import is_miniseries
from .pool import PoolCache, SuggestionPoolBuilder
from .selector import SuggestionSelector, select_from_pool
from .suggestions import SuggestionService

__all__ = [
    "PoolCache",
    "SuggestionPoolBuilder",
    "SuggestionSelector",
    "SuggestionService",
    "is_miniseries",
    "select_from_pool",
]
