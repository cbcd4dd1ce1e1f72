"""Approximate miniseries detection from series detail metadata."""

from __future__ import annotations

from lumiere.models import ContentDetails

MINISERIES_TYPE = "Miniseries"
MAX_MINISERIES_EPISODES = 12
SINGLE_SEASON_STATUSES = frozenset({"Ended", "Returning Series"})


def is_miniseries(details: ContentDetails) -> bool:
    """Return True when a series looks like a miniseries.

    The catalog labels some series explicitly; otherwise a single season of
    at most twelve episodes that has ended or is still returning qualifies.
    """
    if details.type == MINISERIES_TYPE:
        return True
    if details.status not in SINGLE_SEASON_STATUSES:
        return False
    return (
        details.number_of_seasons == 1
        and details.number_of_episodes is not None
        and details.number_of_episodes <= MAX_MINISERIES_EPISODES
    )


__all__ = ["is_miniseries"]
