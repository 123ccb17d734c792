"""regcache CLI — inspect and edit a registry cache stored in a JSON file."""

import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import replace

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from regcache import __version__
from regcache.cache import RegistryCache, Selection
from regcache.config import load_config
from regcache.errors import InvalidRegistryName, RegCacheError
from regcache.stores import storage_available

console = Console()


def _miss(message: str):
    console.print(f"[yellow]{message}[/]")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, type=click.Path(exists=True), help="YAML config file")
@click.option("--store", "store_path", default=None, help="Path of the JSON store file")
@click.option("--registry", "-r", default=None, help="Registry to operate on (default: global)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, store_path: str | None, registry: str | None, verbose: bool):
    """regcache — namespaced key-value cache.

    Values are grouped into registries; each registry can be listed or
    cleared as a whole without touching the others.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    try:
        config = load_config(config_path)
    except (RegCacheError, yaml.YAMLError) as e:
        raise click.UsageError(str(e))
    if store_path:
        config = replace(config, store_path=store_path)

    ctx.obj = {"config": config, "registry": registry}


def _cache(ctx: click.Context) -> RegistryCache:
    return RegistryCache.from_config(ctx.obj["config"])


def _select(ctx: click.Context, cache: RegistryCache) -> Selection:
    try:
        return cache.registry(ctx.obj["registry"])
    except InvalidRegistryName as e:
        raise click.BadParameter(str(e), param_hint="--registry")


@contextmanager
def _reported(action: str):
    """Turn store and decode failures into a red message and exit status 1."""
    try:
        yield
    except (RegCacheError, json.JSONDecodeError, ValueError, OSError) as e:
        console.print(f"  [red]{action} failed:[/] {escape(str(e))}")
        sys.exit(1)


def _parse_value(raw: str, as_json: bool):
    if not as_json:
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="VALUE")


def _show(value) -> str:
    return value if isinstance(value, str) else json.dumps(value, indent=2)


# ── Values ───────────────────────────────────────────────────────────


@main.command(name="set")
@click.argument("key")
@click.argument("value")
@click.option("--json", "as_json", is_flag=True, help="Parse VALUE as JSON before storing")
@click.pass_context
def set_value(ctx: click.Context, key: str, value: str, as_json: bool):
    """Store VALUE under KEY."""
    value = _parse_value(value, as_json)
    with _reported("Set"):
        cache = _cache(ctx)
        stored = _select(ctx, cache).set(key, value)
    if not stored:
        _miss(f"Nothing stored for '{key}'.")
    console.print(f"  [green]v[/] {escape(key.lower())}")


@main.command(name="get")
@click.argument("key")
@click.option("--json", "as_json", is_flag=True, help="Decode the stored value as JSON")
@click.pass_context
def get_value(ctx: click.Context, key: str, as_json: bool):
    """Print the value cached under KEY."""
    with _reported("Get"):
        cache = _cache(ctx)
        selection = _select(ctx, cache)
        name = selection.name
        value = selection.get(key, as_json)
        found = value is not False or (as_json and cache.has(key, registry=name))
    if not found:
        _miss(f"No entry for '{key}'.")
    console.print(_show(value), markup=False)


@main.command(name="all")
@click.option("--json", "as_json", is_flag=True, help="Decode stored values as JSON")
@click.pass_context
def get_all(ctx: click.Context, as_json: bool):
    """List every entry of the registry."""
    with _reported("Listing"):
        cache = _cache(ctx)
        selection = _select(ctx, cache)
        name = selection.name
        entries = selection.get_all(as_json)
    if entries is False:
        _miss(f"Registry '{name}' is empty.")

    table = Table(title=f"{escape(name)} ({len(entries)} entries)")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key in sorted(entries):
        table.add_row(escape(key), escape(_show(entries[key])))
    console.print(table)


@main.command()
@click.argument("key")
@click.pass_context
def unset(ctx: click.Context, key: str):
    """Remove KEY from the registry."""
    with _reported("Unset"):
        cache = _cache(ctx)
        removed = _select(ctx, cache).unset(key)
    if not removed:
        _miss(f"No entry for '{key}'.")
    console.print(f"  [green]v[/] removed {escape(key.lower())}")


@main.command()
@click.pass_context
def clear(ctx: click.Context):
    """Remove every entry of the registry."""
    with _reported("Clear"):
        cache = _cache(ctx)
        selection = _select(ctx, cache)
        name = selection.name
        cleared = selection.clear()
    if not cleared:
        _miss(f"Registry '{name}' is empty.")
    console.print(f"  [green]v[/] cleared {escape(name)}")


# ── Store ────────────────────────────────────────────────────────────


@main.command()
@click.pass_context
def registries(ctx: click.Context):
    """List the registries present in the store."""
    with _reported("Listing registries"):
        cache = _cache(ctx)
        counts = {name: len(cache.load_directory(name)) for name in cache.registries()}
    if not counts:
        console.print("[yellow]Store holds no registries.[/]")
        return

    table = Table(title=f"Registries ({len(counts)})")
    table.add_column("Name", style="cyan")
    table.add_column("Entries", justify="right")
    for name, count in counts.items():
        table.add_row(escape(name), str(count))
    console.print(table)


@main.command()
@click.pass_context
def check(ctx: click.Context):
    """Check that the configured store can be written."""
    config = ctx.obj["config"]
    with _reported("Opening store"):
        store = config.open_store()
    if not storage_available(store):
        console.print(f"[red]Store {config.store_path} is not usable.[/]")
        sys.exit(1)
    console.print(f"  [green]v[/] {config.store_path} ({store.usage}/{store.quota} characters)")


if __name__ == "__main__":
    main()
