"""CLI entry point for demoday-kv.

Invoked as::

    demoday-kv [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m demoday_kv.cli.main

Commands
--------
- version           — Show version information
- info              — Show the active backend and its sync state
- keys              — List stored keys
- get               — Print the value of one key as JSON
- set               — Store a value (parsed as JSON when possible)
- delete            — Remove a key
- flush             — Push pending remote changes now
- configure-remote  — Switch to a remote gist document
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from demoday_kv.adapter import KVAdapter
from demoday_kv.config import AdapterSettings, load_settings
from demoday_kv.errors import ConfigurationError
from demoday_kv.remote.coalescer import WriteCoalescer
from demoday_kv.storage.base import StorageBackend

console = Console()
error_console = Console(stderr=True)

_T = TypeVar("_T")
_MISSING = object()

# ---------------------------------------------------------------------------
# Storage backend factory
# ---------------------------------------------------------------------------


def _make_backend(
    storage: str,
    db_path: str | None,
    storage_dir: str | None,
) -> StorageBackend:
    """Instantiate the requested local storage backend.

    Parameters
    ----------
    storage:
        Backend name: ``"memory"``, ``"filesystem"``, or ``"sqlite"``.
    db_path:
        Path to the SQLite database (used when ``storage="sqlite"``).
    storage_dir:
        Directory for the filesystem backend (used when ``storage="filesystem"``).
    """
    from demoday_kv.storage.filesystem import FilesystemBackend
    from demoday_kv.storage.memory import InMemoryBackend
    from demoday_kv.storage.sqlite import SQLiteBackend

    if storage == "memory":
        return InMemoryBackend()
    if storage == "filesystem":
        return FilesystemBackend(storage_dir=Path(storage_dir) if storage_dir else None)
    if storage == "sqlite":
        return SQLiteBackend(db_path=Path(db_path) if db_path else None)
    console.print(f"[red]Unknown storage backend: {storage!r}[/red]")
    sys.exit(1)


def _run(ctx: click.Context, operation: Callable[[KVAdapter], Awaitable[_T]]) -> _T:
    """Run ``operation`` against a fresh adapter and close it afterwards.

    Closing flushes pending remote changes, so a ``set`` issued from the
    command line reaches the remote document before the process exits.  If
    that final flush fails the command exits with status 1.
    """
    options: dict[str, Any] = ctx.obj

    async def runner() -> tuple[_T, WriteCoalescer | None]:
        embedded = None
        if options["redis_url"]:
            from demoday_kv.storage.async_redis import AsyncRedisStore

            embedded = AsyncRedisStore(url=options["redis_url"])
        adapter = KVAdapter(
            local_storage=options["backend"],
            embedded_store=embedded,
            settings=options["settings"],
        )
        async with adapter:
            result = await operation(adapter)
            coalescer = adapter.coalescer
        return result, coalescer

    result, coalescer = asyncio.run(runner())
    if coalescer is not None and coalescer.pending_count:
        reason = coalescer.last_error or "remote document unreachable"
        console.print(
            f"[red]Error:[/red] {coalescer.pending_count} change(s) were not saved "
            f"to the remote document ({reason})"
        )
        sys.exit(1)
    return result


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="demoday-kv")
@click.option(
    "--storage",
    default="sqlite",
    show_default=True,
    type=click.Choice(["memory", "filesystem", "sqlite"], case_sensitive=False),
    help="Local storage backend.",
)
@click.option("--db-path", default=None, help="Path to SQLite database (sqlite backend).")
@click.option("--storage-dir", default=None, help="Directory for filesystem backend.")
@click.option(
    "--redis-url",
    default=None,
    envvar="DEMODAY_KV_REDIS_URL",
    help="Redis URL used as the embedded key-value store.",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with adapter settings.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log adapter activity to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    storage: str,
    db_path: str | None,
    storage_dir: str | None,
    redis_url: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Inspect and edit demo-day judging data."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=error_console, show_path=False)],
        )
    ctx.ensure_object(dict)
    ctx.obj["backend"] = _make_backend(storage, db_path, storage_dir)
    ctx.obj["settings"] = load_settings(config_path) if config_path else AdapterSettings()
    ctx.obj["redis_url"] = redis_url


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from demoday_kv import __version__

    console.print(f"[bold]demoday-kv[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# info / keys
# ---------------------------------------------------------------------------


@cli.command(name="info")
@click.pass_context
def info_command(ctx: click.Context) -> None:
    """Show the active storage backend."""

    async def operation(adapter: KVAdapter) -> tuple[Any, list[str]]:
        return await adapter.storage_info(), await adapter.keys()

    info, keys = _run(ctx, operation)

    table = Table(title="Storage", show_lines=True)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("mode", info.mode.value)
    table.add_row("details", info.details)
    table.add_row("persistent", "yes" if info.is_persistent else "no")
    table.add_row("shared", "yes" if info.is_shared else "no")
    table.add_row("keys", str(len(keys)))
    table.add_row("pending changes", str(info.pending_changes))
    if info.last_sync_error:
        table.add_row("last sync error", f"[red]{info.last_sync_error}[/red]")
    console.print(table)


@cli.command(name="keys")
@click.pass_context
def keys_command(ctx: click.Context) -> None:
    """List all stored keys."""
    keys = _run(ctx, lambda adapter: adapter.keys())
    if not keys:
        console.print("[yellow]No keys stored.[/yellow]")
        return
    for key in sorted(keys):
        console.print(key)


# ---------------------------------------------------------------------------
# get / set / delete / flush
# ---------------------------------------------------------------------------


@cli.command(name="get")
@click.argument("key")
@click.pass_context
def get_command(ctx: click.Context, key: str) -> None:
    """Print the value stored under KEY as JSON."""
    value = _run(ctx, lambda adapter: adapter.get(key, _MISSING))
    if value is _MISSING:
        console.print(f"[red]Key not found:[/red] {key}")
        sys.exit(1)
    console.print_json(data=value)


@cli.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_command(ctx: click.Context, key: str, value: str) -> None:
    """Store VALUE under KEY.

    VALUE is parsed as JSON; anything that is not valid JSON is stored as a
    plain string.
    """
    try:
        parsed: Any = json.loads(value)
    except ValueError:
        parsed = value
    _run(ctx, lambda adapter: adapter.set(key, parsed))
    console.print(f"[green]Saved:[/green] {key}")


@cli.command(name="delete")
@click.argument("key")
@click.pass_context
def delete_command(ctx: click.Context, key: str) -> None:
    """Remove KEY."""
    _run(ctx, lambda adapter: adapter.delete(key))
    console.print(f"[green]Deleted:[/green] {key}")


@cli.command(name="flush")
@click.pass_context
def flush_command(ctx: click.Context) -> None:
    """Push pending remote changes now."""
    _run(ctx, lambda adapter: adapter.flush())
    console.print("[green]Flushed.[/green]")


# ---------------------------------------------------------------------------
# configure-remote
# ---------------------------------------------------------------------------


@cli.command(name="configure-remote")
@click.option(
    "--token",
    required=True,
    envvar="DEMODAY_KV_TOKEN",
    help="API token with gist permission.",
)
@click.option("--document-id", default=None, help="Existing gist id to reuse.")
@click.pass_context
def configure_remote_command(
    ctx: click.Context, token: str, document_id: str | None
) -> None:
    """Store data in a remote gist from now on.

    Reuses --document-id when it is readable with the token; otherwise
    creates a new private gist.  Prints the gist id to share with judges.
    """
    try:
        new_id = _run(
            ctx, lambda adapter: adapter.configure_remote_storage(token, document_id)
        )
    except ConfigurationError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    console.print(f"[green]Remote storage configured:[/green] {new_id}")


if __name__ == "__main__":
    cli()
