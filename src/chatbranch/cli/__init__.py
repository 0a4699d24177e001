"""chatbranch CLI -- terminal interface for conversation branch stores.

This module is NEVER imported from chatbranch/__init__.py.
It is only loaded via the ``chatbranch`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

import click

from chatbranch.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from chatbranch.store import BranchStore


@click.group()
@click.option(
    "--db",
    default=".chatbranch.db",
    envvar="CHATBRANCH_DB",
    help="Path to the branch store database.",
)
@click.option(
    "--store",
    "store_key",
    default="default",
    envvar="CHATBRANCH_STORE",
    help="Store key inside the database.",
)
@click.option(
    "--author",
    default=None,
    envvar="CHATBRANCH_AUTHOR",
    help="Author recorded on new branches and merges.",
)
@click.pass_context
def cli(ctx: click.Context, db: str, store_key: str, author: str | None) -> None:
    """chatbranch: branch, merge and compare conversation threads."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["store_key"] = store_key
    ctx.obj["author"] = author


def _open_store(ctx: click.Context) -> "BranchStore":
    """Open a BranchStore from Click context."""
    from chatbranch.models.config import BranchStoreConfig
    from chatbranch.store import BranchStore

    config = BranchStoreConfig()
    if ctx.obj.get("author"):
        config = BranchStoreConfig(author=ctx.obj["author"])

    return BranchStore.open(
        path=ctx.obj["db_path"],
        store_key=ctx.obj["store_key"],
        config=config,
    )


@contextmanager
def _store_session(ctx: click.Context) -> Iterator[tuple[BranchStore, Console]]:
    """Open a store, yield (store, console), and handle cleanup.

    Ensures the store is closed on exit and formats exceptions as CLI errors.
    """
    console = get_console()
    try:
        store = _open_store(ctx)
        try:
            yield store, console
            store.flush()
        finally:
            store.close()
    except SystemExit:
        raise
    except click.ClickException:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from chatbranch.cli.commands.status import status  # noqa: E402
from chatbranch.cli.commands.branch import branch  # noqa: E402
from chatbranch.cli.commands.switch import switch  # noqa: E402
from chatbranch.cli.commands.fork import fork  # noqa: E402
from chatbranch.cli.commands.message import edit, log, say  # noqa: E402
from chatbranch.cli.commands.merge import merge  # noqa: E402
from chatbranch.cli.commands.compare import compare  # noqa: E402
from chatbranch.cli.commands.tree import tree  # noqa: E402
from chatbranch.cli.commands.checkpoint import checkpoint  # noqa: E402
from chatbranch.cli.commands.transfer import export_cmd, import_cmd  # noqa: E402

cli.add_command(status)
cli.add_command(branch)
cli.add_command(switch)
cli.add_command(fork)
cli.add_command(say)
cli.add_command(edit)
cli.add_command(log)
cli.add_command(merge)
cli.add_command(compare)
cli.add_command(tree)
cli.add_command(checkpoint)
cli.add_command(export_cmd)
cli.add_command(import_cmd)
