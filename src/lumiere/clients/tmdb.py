from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx
from pydantic import ValidationError

from lumiere.models import ContentDetails, ContentItem, ContentType, DiscoverPage, FilterSet, Genre
from lumiere.randomness import RandomSource, default_random_source

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_LANGUAGE = "en-US"
DEFAULT_TIMEOUT = 20.0
DEFAULT_MIN_VOTE_COUNT = 10
USER_AGENT = "lumiere/0.1.0"

# One ordering is drawn per discover call so that rebuilds sample different
# windows of the catalog's truncated result ranking.
SORT_ORDERS: tuple[str, ...] = (
    "popularity.desc",
    "popularity.asc",
    "release_date.desc",
    "release_date.asc",
    "vote_average.desc",
    "vote_average.asc",
    "vote_count.desc",
    "vote_count.asc",
)


class UpstreamError(RuntimeError):
    """Raised when the catalog API cannot satisfy a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TMDBClient:
    """Thin asynchronous wrapper around the TMDB v3 discover and detail APIs."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        language: str = DEFAULT_LANGUAGE,
        min_vote_count: int = DEFAULT_MIN_VOTE_COUNT,
        timeout: float = DEFAULT_TIMEOUT,
        random_source: RandomSource | None = None,
    ) -> None:
        self._api_key = api_key or ""
        self._language = language
        self._min_vote_count = min_vote_count
        self._random = random_source or default_random_source()
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_page(self, filters: FilterSet, page: int = 1) -> DiscoverPage:
        """Run one discover query and normalize its results."""
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")

        sort_by = self._random.choice(SORT_ORDERS)
        params = build_discover_params(
            filters,
            page=page,
            sort_by=sort_by,
            min_vote_count=self._min_vote_count,
        )
        payload = await self._get_json(f"/discover/{filters.content_type.upstream_type}", params)

        try:
            results = payload.get("results") or []
            return DiscoverPage(
                page=int(payload.get("page") or page),
                items=[ContentItem.from_upstream(record) for record in results],
                total_pages=int(payload.get("total_pages") or 0),
                total_results=int(payload.get("total_results") or 0),
            )
        except (ValueError, TypeError, AttributeError) as exc:  # ValidationError is a ValueError
            raise _malformed(f"discover page {page}", exc) from exc

    async def fetch_details(
        self,
        content_type: ContentType | str,
        item_id: int,
        *,
        with_credits: bool = True,
    ) -> ContentDetails:
        """Fetch extended metadata for a single movie or series."""
        resource = ContentType(content_type).upstream_type
        params: dict[str, Any] = {}
        if with_credits:
            params["append_to_response"] = "credits"
        payload = await self._get_json(f"/{resource}/{item_id}", params)
        try:
            return ContentDetails.model_validate(payload)
        except ValidationError as exc:
            raise _malformed(f"{resource} {item_id}", exc) from exc

    async def get_genres(self, content_type: ContentType | str) -> list[Genre]:
        """List the genres available for a content type."""
        resource = ContentType(content_type).upstream_type
        payload = await self._get_json(f"/genre/{resource}/list")
        try:
            return [Genre.model_validate(genre) for genre in payload.get("genres") or []]
        except (ValidationError, TypeError, AttributeError) as exc:
            raise _malformed(f"{resource} genres", exc) from exc

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        if not self._api_key:
            raise UpstreamError("TMDB API key is required")

        query = {"api_key": self._api_key, "language": self._language, **(params or {})}
        try:
            response = await self._client.get(path, params=query)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request to %s failed: %s", path, exc)
            raise UpstreamError(f"TMDB request to {path} failed: {exc}") from exc

        if response.status_code >= 400:
            logger.warning("TMDB API error %s for %s", response.status_code, path)
            raise UpstreamError(
                f"TMDB API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:  # body was not JSON
            raise UpstreamError(f"TMDB returned an invalid body for {path}") from exc

    async def __aenter__(self) -> TMDBClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.close()


def _malformed(what: str, exc: Exception) -> UpstreamError:
    logger.warning("TMDB returned a malformed payload for %s: %s", what, exc)
    return UpstreamError(f"TMDB returned a malformed payload for {what}")


@asynccontextmanager
async def tmdb_client(
    api_key: str | None,
    *,
    base_url: str = DEFAULT_BASE_URL,
    language: str = DEFAULT_LANGUAGE,
    min_vote_count: int = DEFAULT_MIN_VOTE_COUNT,
    timeout: float = DEFAULT_TIMEOUT,
    random_source: RandomSource | None = None,
):
    client = TMDBClient(
        api_key,
        base_url=base_url,
        language=language,
        min_vote_count=min_vote_count,
        timeout=timeout,
        random_source=random_source,
    )
    try:
        yield client
    finally:
        await client.close()


def build_discover_params(
    filters: FilterSet,
    *,
    page: int,
    sort_by: str,
    min_vote_count: int = DEFAULT_MIN_VOTE_COUNT,
) -> dict[str, Any]:
    """Translate a filter set into discover query parameters."""

    params: dict[str, Any] = {
        "page": page,
        "vote_average.gte": filters.min_rating,
        "vote_count.gte": min_vote_count,
        "sort_by": sort_by,
    }

    if filters.genre_ids:
        params["with_genres"] = ",".join(str(genre) for genre in sorted(filters.genre_ids))

    date_field = (
        "primary_release_date"
        if filters.content_type.upstream_type == "movie"
        else "first_air_date"
    )
    if filters.year_from is not None:
        params[f"{date_field}.gte"] = f"{filters.year_from}-01-01"
    if filters.year_to is not None:
        params[f"{date_field}.lte"] = f"{filters.year_to}-12-31"

    if filters.has_language_filter:
        params["with_original_language"] = filters.language

    return params


__all__ = [
    "SORT_ORDERS",
    "TMDBClient",
    "UpstreamError",
    "build_discover_params",
    "tmdb_client",
]
