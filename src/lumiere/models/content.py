from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class ContentType(str, Enum):
    """Kinds of content a user can ask for."""

    MOVIE = "movie"
    TV = "tv"
    MINISERIES = "miniseries"

    @property
    def upstream_type(self) -> str:
        """Resource name used by the catalog API (it has no miniseries type)."""
        return "tv" if self is ContentType.MINISERIES else self.value


class FilterSet(BaseModel):
    """Immutable set of user-selected search constraints."""

    content_type: ContentType = ContentType.MOVIE
    genre_ids: frozenset[int] = Field(default_factory=frozenset)
    year_from: int | None = None
    year_to: int | None = None
    language: str | None = None
    min_rating: float = Field(default=0.0, ge=0.0, le=10.0)

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("language", mode="before")
    @classmethod
    def _blank_language_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def has_language_filter(self) -> bool:
        """Whether an original-language predicate should be applied."""
        return bool(self.language) and self.language != "all"

    def key(self) -> str:
        """Deterministic serialization used to key the suggestion pool."""
        payload = {
            "content_type": self.content_type.value,
            "genre_ids": sorted(self.genre_ids),
            "year_from": self.year_from,
            "year_to": self.year_to,
            "language": self.language,
            "min_rating": self.min_rating,
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class ContentItem(BaseModel):
    """A movie or series normalized into one record shape."""

    id: int
    title: str
    original_title: str | None = None
    overview: str = ""
    poster_path: str | None = None
    backdrop_path: str | None = None
    vote_average: float = 0.0
    vote_count: int = 0
    release_date: date | None = None
    genre_ids: list[int] = Field(default_factory=list)
    original_language: str = ""
    popularity: float = 0.0
    details: dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }

    @field_validator("release_date", mode="before")
    @classmethod
    def _parse_release_date(cls, value: Any) -> Any:
        # The catalog sends "" for unreleased titles.
        if value in (None, ""):
            return None
        if isinstance(value, str):
            try:
                return date.fromisoformat(value[:10])
            except ValueError:
                return None
        return value

    @field_validator("overview", mode="before")
    @classmethod
    def _none_overview_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def from_upstream(cls, payload: Mapping[str, Any]) -> ContentItem:
        """Build an item from a raw movie or series discover record."""
        return cls.model_validate(
            {
                **payload,
                "title": payload.get("title") or payload.get("name") or "",
                "original_title": payload.get("original_title") or payload.get("original_name"),
                "release_date": payload.get("release_date") or payload.get("first_air_date"),
                "genre_ids": payload.get("genre_ids") or [],
                "original_language": payload.get("original_language") or "",
            }
        )

    def with_details(self, details: Mapping[str, Any]) -> ContentItem:
        """Return a copy carrying the merged detail record."""
        return self.model_copy(update={"details": {**self.details, **details}})

    @property
    def year(self) -> int | None:
        return self.release_date.year if self.release_date else None


class Genre(BaseModel):
    id: int
    name: str


class DiscoverPage(BaseModel):
    """One page of discover results."""

    page: int = 1
    items: list[ContentItem] = Field(default_factory=list)
    total_pages: int = 0
    total_results: int = 0


class ContentDetails(BaseModel):
    """Extended metadata for a single movie or series."""

    id: int
    type: str | None = None
    status: str | None = None
    number_of_seasons: int | None = None
    number_of_episodes: int | None = None
    runtime: int | None = None
    episode_run_time: list[int] = Field(default_factory=list)
    created_by: list[dict[str, Any]] = Field(default_factory=list)
    credits: dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "extra": "allow",
    }

    @field_validator("episode_run_time", "created_by", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("credits", mode="before")
    @classmethod
    def _null_credits(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def director(self) -> str | None:
        for person in self.credits.get("crew") or []:
            if person.get("job") == "Director":
                return person.get("name")
        return None

    @property
    def creator(self) -> str | None:
        if self.created_by:
            return self.created_by[0].get("name")
        return None

    @property
    def runtime_minutes(self) -> int | None:
        """Movie runtime, or the first listed episode runtime for series."""
        if self.runtime:
            return self.runtime
        if self.episode_run_time:
            return self.episode_run_time[0]
        return None
