from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

CONFIG_PATH_ENV = "LUMIERE_CONFIG"


class Settings(BaseModel):
    """Application configuration resolved from env vars and optional TOML files."""

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_base_url: str = Field(default="https://api.themoviedb.org/3", alias="TMDB_BASE_URL")
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")
    tmdb_timeout: float = Field(default=20.0, gt=0, alias="TMDB_TIMEOUT")
    min_vote_count: int = Field(default=10, ge=0, alias="TMDB_MIN_VOTE_COUNT")

    # Pool building limits
    max_pages: int = Field(default=50, ge=1, alias="LUMIERE_MAX_PAGES")
    page_batch_size: int = Field(default=5, ge=1, alias="LUMIERE_PAGE_BATCH_SIZE")
    detail_batch_size: int = Field(default=10, ge=1, alias="LUMIERE_DETAIL_BATCH_SIZE")
    detail_batch_delay: float = Field(default=0.1, ge=0, alias="LUMIERE_DETAIL_BATCH_DELAY")

    model_config = {
        "populate_by_name": True,
        "str_strip_whitespace": True,
        "extra": "ignore",
    }

    def require_tmdb(self) -> None:
        """Ensure a TMDB API key is available."""
        if not self.tmdb_api_key:
            raise SettingsError("Missing TMDB_API_KEY. Configure environment or TOML file.")


class SettingsError(RuntimeError):
    """Raised when configuration cannot be resolved."""


@dataclass(frozen=True)
class SettingsLoadResult:
    settings: Settings
    source_path: Path | None


def load_settings(config_path: Path | None = None, *, load_env: bool = True) -> SettingsLoadResult:
    """Load settings from .env files, environment variables, and optional TOML configuration."""

    if load_env:
        load_dotenv()

    resolved_path = _determine_config_path(config_path)
    config_data: dict[str, Any] = {}

    if resolved_path and resolved_path.exists():
        try:
            with resolved_path.open("rb") as handle:
                toml_payload = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise SettingsError(f"Invalid TOML in {resolved_path}: {exc}") from exc
        config_data = _flatten_toml(toml_payload)

    try:
        env_data = _collect_env_overrides()
        merged = {**config_data, **env_data}
        settings = Settings.model_validate(merged)
    except (ValidationError, ValueError) as exc:
        raise SettingsError(str(exc)) from exc

    return SettingsLoadResult(settings=settings, source_path=resolved_path)


def _determine_config_path(config_path: Path | None) -> Path | None:
    if config_path:
        return config_path

    env_override = os.getenv(CONFIG_PATH_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve()

    default_path = Path.home() / ".config" / "lumiere" / "config.toml"
    return default_path if default_path.exists() else None


def _flatten_toml(payload: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}

    tmdb_cfg = payload.get("tmdb", {})
    if "api_key" in tmdb_cfg:
        result["tmdb_api_key"] = tmdb_cfg.get("api_key")
    if "base_url" in tmdb_cfg:
        result["tmdb_base_url"] = tmdb_cfg.get("base_url")
    if "language" in tmdb_cfg:
        result["tmdb_language"] = tmdb_cfg.get("language")
    if "timeout" in tmdb_cfg:
        result["tmdb_timeout"] = float(tmdb_cfg.get("timeout"))
    if "min_vote_count" in tmdb_cfg:
        result["min_vote_count"] = int(tmdb_cfg.get("min_vote_count"))

    pool_cfg = payload.get("pool", {})
    for field in ("max_pages", "page_batch_size", "detail_batch_size"):
        if field in pool_cfg:
            result[field] = int(pool_cfg.get(field))
    if "detail_batch_delay" in pool_cfg:
        result["detail_batch_delay"] = float(pool_cfg.get("detail_batch_delay"))

    return result


def _collect_env_overrides() -> dict[str, Any]:
    mapping: dict[str, str] = {
        "TMDB_API_KEY": "tmdb_api_key",
        "TMDB_BASE_URL": "tmdb_base_url",
        "TMDB_LANGUAGE": "tmdb_language",
        "TMDB_TIMEOUT": "tmdb_timeout",
        "TMDB_MIN_VOTE_COUNT": "min_vote_count",
        "LUMIERE_MAX_PAGES": "max_pages",
        "LUMIERE_PAGE_BATCH_SIZE": "page_batch_size",
        "LUMIERE_DETAIL_BATCH_SIZE": "detail_batch_size",
        "LUMIERE_DETAIL_BATCH_DELAY": "detail_batch_delay",
    }

    result: dict[str, Any] = {}
    for env_name, field in mapping.items():
        if env_name not in os.environ:
            continue
        value = os.environ[env_name]
        if field in {"min_vote_count", "max_pages", "page_batch_size", "detail_batch_size"}:
            result[field] = int(value)
        elif field in {"tmdb_timeout", "detail_batch_delay"}:
            result[field] = float(value)
        else:
            result[field] = value
    return result


__all__ = ["Settings", "SettingsError", "SettingsLoadResult", "load_settings"]
