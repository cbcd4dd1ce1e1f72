from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

import typer

from lumiere import __version__
from lumiere.clients.tmdb import UpstreamError
from lumiere.config import Settings, SettingsError, SettingsLoadResult, load_settings
from lumiere.models import ContentDetails, ContentItem, ContentType, FilterSet, ServedState
from lumiere.services.suggestions import SuggestionService

app = typer.Typer(
    add_completion=False,
    help="Pick something to watch at random from the TMDB catalog.",
)


@app.callback()
def _cli_entry(ctx: typer.Context) -> None:
    """Entrypoint for the lumiere CLI."""
    ctx.obj = {} if ctx.obj is None else ctx.obj


@app.command()
def version() -> None:
    """Print the installed version."""
    typer.echo(__version__)


@app.command()
def config(show_sources: bool = typer.Option(False, help="Display where settings came from.")) -> None:
    """Describe configuration expectations."""
    load_result = _safe_load_settings(load_even_if_missing=True)
    if load_result is None:
        raise typer.Exit(code=1)

    settings = load_result.settings
    values: dict[str, Any] = {
        "tmdb_api_key": "<set>" if settings.tmdb_api_key else "<unset>",
        "tmdb_base_url": settings.tmdb_base_url,
        "tmdb_language": settings.tmdb_language,
        "tmdb_timeout": settings.tmdb_timeout,
        "min_vote_count": settings.min_vote_count,
        "max_pages": settings.max_pages,
        "page_batch_size": settings.page_batch_size,
        "detail_batch_size": settings.detail_batch_size,
        "detail_batch_delay": settings.detail_batch_delay,
    }

    for key, value in values.items():
        typer.echo(f"{key}: {value}")

    if show_sources:
        source_hint = load_result.source_path or "<env/.env>"
        typer.echo(f"resolved_from: {source_hint}")
        typer.echo(
            "Set TMDB_API_KEY or configure ~/.config/lumiere/config.toml for persistent settings.",
        )


@app.command()
def genres(
    content_type: ContentType = typer.Option(
        ContentType.MOVIE, case_sensitive=False, help="movie, tv, or miniseries."
    ),
) -> None:
    """List the genres available for a content type."""
    settings = _require_settings()
    try:
        genre_list = asyncio.run(_run_genres(settings, content_type))
    except UpstreamError as exc:
        typer.secho(f"Error loading genres: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    for genre in genre_list:
        typer.echo(f"{genre.id}\t{genre.name}")


@app.command()
def suggest(
    content_type: ContentType = typer.Option(
        ContentType.MOVIE, case_sensitive=False, help="movie, tv, or miniseries."
    ),
    genre: list[int] | None = typer.Option(
        None, "--genre", help="Genre id; repeat to match any of several genres."
    ),
    year_from: int | None = typer.Option(None, help="Earliest release year."),
    year_to: int | None = typer.Option(None, help="Latest release year."),
    language: str = typer.Option(
        "en", help="Original language code, or 'all' for any language."
    ),
    min_rating: float = typer.Option(8.0, min=0.0, max=10.0, help="Minimum average rating."),
    count: int = typer.Option(1, min=1, help="Number of suggestions to draw."),
    details: bool = typer.Option(True, help="Show director/creator and runtime."),
    seed: int | None = typer.Option(None, help="Seed the random source for repeatable picks."),
    debug: bool = typer.Option(False, help="Enable debug logging."),
) -> None:
    """Suggest something to watch that matches the filters."""
    if debug:
        _setup_logging(logging.INFO)

    settings = _require_settings()
    filters = FilterSet(
        content_type=content_type,
        genre_ids=frozenset(genre or []),
        year_from=year_from,
        year_to=year_to,
        language=language,
        min_rating=min_rating,
    )

    exit_code = asyncio.run(
        _run_suggest(
            settings=settings,
            filters=filters,
            count=count,
            show_details=details,
            seed=seed,
            debug=debug,
        )
    )
    raise typer.Exit(code=exit_code)


@app.command("details")
def show_details(
    item_id: int = typer.Argument(..., help="TMDB id of the movie or series."),
    content_type: ContentType = typer.Option(
        ContentType.MOVIE, case_sensitive=False, help="movie, tv, or miniseries."
    ),
) -> None:
    """Show presentation metadata for a single title."""
    settings = _require_settings()
    try:
        record = asyncio.run(_run_details(settings, content_type, item_id))
    except UpstreamError as exc:
        typer.secho(f"Error fetching details: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    title = getattr(record, "title", None) or getattr(record, "name", None) or str(item_id)
    typer.secho(title, fg=typer.colors.CYAN)
    _render_details(record, content_type)


def main() -> None:
    """Expose Typer app for the console script."""
    app()


def _safe_load_settings(load_even_if_missing: bool = False) -> SettingsLoadResult | None:
    try:
        return load_settings()
    except SettingsError as exc:
        if load_even_if_missing:
            typer.secho(
                f"Warning: configuration incomplete – {exc}",
                fg=typer.colors.YELLOW,
            )
            return SettingsLoadResult(settings=Settings(), source_path=None)
        typer.secho(str(exc), fg=typer.colors.RED)
        return None


def _require_settings() -> Settings:
    load_result = _safe_load_settings()
    if load_result is None:
        raise typer.Exit(code=1)

    settings = load_result.settings
    try:
        settings.require_tmdb()
    except SettingsError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    return settings


def _setup_logging(level: int = logging.INFO) -> None:
    """Configure logging for debug mode."""
    logging.basicConfig(
        format="%(message)s",
        level=level,
        force=True,
    )


async def _run_genres(settings: Settings, content_type: ContentType):
    async with SuggestionService.from_settings(settings) as service:
        return await service.get_genres(content_type)


async def _run_details(settings: Settings, content_type: ContentType, item_id: int) -> ContentDetails:
    async with SuggestionService.from_settings(settings) as service:
        return await service.fetch_details(content_type, item_id)


async def _run_suggest(
    *,
    settings: Settings,
    filters: FilterSet,
    count: int,
    show_details: bool,
    seed: int | None,
    debug: bool,
) -> int:
    random_source = random.Random(seed) if seed is not None else None
    served = ServedState()

    async with SuggestionService.from_settings(
        settings, random_source=random_source, debug=debug
    ) as service:
        for idx in range(1, count + 1):
            try:
                item, next_served = await service.suggest(filters, served)
            except UpstreamError as exc:
                typer.secho(
                    "Error fetching suggestion. Please try again in a few moments.",
                    fg=typer.colors.RED,
                )
                typer.echo(f"   {exc}")
                return 1

            if item is None:
                typer.secho(
                    "No suggestion found. Try adjusting the filters to find more content.",
                    fg=typer.colors.YELLOW,
                )
                return 0

            if served.cycled_on(item):
                typer.secho(
                    "Every match has been shown; starting over.", fg=typer.colors.YELLOW
                )
            served = next_served

            _render_item(idx, item)
            if show_details:
                try:
                    record = await service.fetch_details(filters.content_type, item.id)
                except UpstreamError as exc:
                    if debug:
                        typer.echo(f"   details unavailable: {exc}")
                else:
                    _render_details(record, filters.content_type)
    return 0


def _render_item(idx: int, item: ContentItem) -> None:
    year = item.year or "TBA"
    typer.secho(f"{idx}. {item.title} ({year})", fg=typer.colors.CYAN)
    typer.echo(f"   rating={item.vote_average:.1f} • votes={item.vote_count} • tmdb:{item.id}")
    if item.original_title and item.original_title != item.title:
        typer.echo(f"   original title: {item.original_title}")
    if item.overview:
        typer.echo(f"   {item.overview}")


def _render_details(record: ContentDetails, content_type: ContentType) -> None:
    if record.director:
        typer.echo(f"   director: {record.director}")
    elif record.creator:
        typer.echo(f"   created by: {record.creator}")

    runtime = record.runtime_minutes
    if runtime:
        suffix = "" if content_type is ContentType.MOVIE else "/episode"
        typer.echo(f"   runtime: {runtime} min{suffix}")

    if content_type is not ContentType.MOVIE and record.number_of_seasons:
        typer.echo(
            f"   seasons: {record.number_of_seasons} • episodes: {record.number_of_episodes or '?'}"
        )
