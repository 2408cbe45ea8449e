import asyncio
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from .config import get_search_config, get_store_config
from .controller import QueryController
from .index import create_local_index
from .ranking import merge_suggestions
from .store import SearchStore, open_store
from .version import __version__


def _open_store(ctx: click.Context) -> SearchStore:
    return asyncio.run(open_store(ctx.obj["storage_dir"]))


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--storage-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding search history, favorites and preferences.",
)
@click.option(
    "--places",
    "places_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file with the places to search (defaults to the bundled sample).",
)
@click.pass_context
def cli(ctx: click.Context, storage_dir: Path | None, places_path: Path | None) -> None:
    """Place finder CLI - search places and manage search history."""
    logging.basicConfig(level=logging.INFO)
    load_dotenv()
    try:
        store_config = get_store_config()
    except ValueError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        ctx.exit(1)
    ctx.ensure_object(dict)
    ctx.obj["storage_dir"] = storage_dir or store_config.storage_dir
    ctx.obj["places_path"] = places_path or store_config.places_path


@cli.command()
@click.argument("query")
@click.option(
    "--category",
    "-c",
    "categories",
    multiple=True,
    help="Only show places in this category. May be repeated.",
)
@click.pass_context
def search(ctx: click.Context, query: str, categories: tuple[str, ...]) -> None:
    """Search places and record the query in the history."""
    try:
        config = get_search_config()
    except ValueError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)
    if categories:
        config = config.model_copy(update={"categories": list(categories)})

    async def _run() -> None:
        index = create_local_index(ctx.obj["places_path"])
        store = await open_store(ctx.obj["storage_dir"])
        async with QueryController(index, config, store=store) as controller:
            await controller.search(query)
            state = controller.state

        if state.error:
            click.echo(f"Search failed: {state.error.value}", err=True)
            sys.exit(1)
        if not state.results:
            click.echo(f"No places found for '{query}'.")
        for place in state.results:
            marker = "*" if store.is_favorite(place.id) else " "
            location = ", ".join(p for p in (place.city, place.district) if p)
            click.echo(f"{marker} {place.id:<20} {place.name} ({location})")
        if state.suggestions:
            click.echo("Suggestions: " + ", ".join(state.suggestions))
        click.echo(
            f"Took {controller.performance_stats.last_search_duration_ms:.2f}ms",
            err=True,
        )

    asyncio.run(_run())


@cli.command()
@click.argument("partial")
@click.option("--limit", default=8, show_default=True, type=int)
@click.pass_context
def suggest(ctx: click.Context, partial: str, limit: int) -> None:
    """Suggest completions from the history and the place index."""
    index = create_local_index(ctx.obj["places_path"])
    store = _open_store(ctx)
    for suggestion in merge_suggestions(
        store.get_history_based_suggestions(partial),
        index.suggest(partial, limit),
        limit,
    ):
        click.echo(suggestion)


@cli.command()
@click.option("--clear", is_flag=True, default=False, help="Delete the history.")
@click.pass_context
def history(ctx: click.Context, *, clear: bool) -> None:
    """Show (or clear) the search history, newest first."""
    store = _open_store(ctx)
    if clear:
        asyncio.run(store.clear_search_history())
        click.echo("Search history cleared.")
        return
    for item in store.search_history:
        click.echo(f"{item.id}  {item.query}  ({item.result_count} results)")


@cli.command()
@click.pass_context
def popular(ctx: click.Context) -> None:
    """Show the most frequent searches."""
    store = _open_store(ctx)
    for query in store.get_popular_searches():
        click.echo(query)


@cli.group()
def favorites() -> None:
    """Manage favorite places."""


@favorites.command("list")
@click.pass_context
def list_favorites(ctx: click.Context) -> None:
    """List favorite places, most recently added first."""
    store = _open_store(ctx)
    for favorite in store.favorite_places:
        notes = f" - {favorite.notes}" if favorite.notes else ""
        click.echo(f"{favorite.place.id:<20} {favorite.place.name}{notes}")


@favorites.command("add")
@click.argument("place_id")
@click.option("--notes", default=None, help="Personal notes for this place.")
@click.pass_context
def add_favorite(ctx: click.Context, place_id: str, notes: str | None) -> None:
    """Add a place to the favorites, or update its notes."""
    index = create_local_index(ctx.obj["places_path"])
    place = index.get(place_id)
    if place is None:
        click.echo(f"Unknown place id '{place_id}'.", err=True)
        sys.exit(1)

    async def _run() -> None:
        store = await open_store(ctx.obj["storage_dir"])
        await store.add_to_favorites(place, notes)

    asyncio.run(_run())
    click.echo(f"Added {place.name} to favorites.")


@favorites.command("remove")
@click.argument("place_id")
@click.pass_context
def remove_favorite(ctx: click.Context, place_id: str) -> None:
    """Remove a place from the favorites."""

    async def _run() -> None:
        store = await open_store(ctx.obj["storage_dir"])
        await store.remove_from_favorites(place_id)

    asyncio.run(_run())
    click.echo(f"Removed {place_id} from favorites.")


@cli.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export_command(ctx: click.Context, path: Path) -> None:
    """Write history, favorites and preferences to a JSON file."""
    store = _open_store(ctx)
    path.write_text(store.export_data(), encoding="utf-8")
    click.echo(f"Exported search data to {path}")


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_command(ctx: click.Context, path: Path) -> None:
    """Replace all search data with the contents of an exported file."""

    async def _run() -> bool:
        store = await open_store(ctx.obj["storage_dir"])
        return await store.import_data(path.read_text(encoding="utf-8"))

    if not asyncio.run(_run()):
        click.echo(f"Could not import {path}: invalid or unsupported file.", err=True)
        sys.exit(1)
    click.echo(f"Imported search data from {path}")


@cli.command()
@click.confirmation_option(prompt="Delete all history, favorites and preferences?")
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Reset every stored record to its default."""
    store = _open_store(ctx)
    asyncio.run(store.clear_all_data())
    click.echo("All search data cleared.")


def main() -> None:
    """Main entry point for the CLI."""
    cli()
