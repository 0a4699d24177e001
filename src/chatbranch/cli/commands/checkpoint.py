"""chatbranch checkpoint -- create, list and restore checkpoints."""

from __future__ import annotations

import click

from chatbranch.cli.formatting import format_checkpoints


@click.group()
def checkpoint() -> None:
    """Manage store checkpoints."""


@checkpoint.command("create")
@click.argument("name")
@click.option("--description", default="", help="Checkpoint description.")
@click.pass_context
def create(ctx: click.Context, name: str, description: str) -> None:
    """Snapshot the whole store as NAME."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        cp = store.create_checkpoint(name, description)
        console.print(f"Created checkpoint [cyan]{cp.name}[/cyan] ({len(cp.branches)} branches)")


@checkpoint.command("list")
@click.pass_context
def list_(ctx: click.Context) -> None:
    """List checkpoints."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        format_checkpoints(store.list_checkpoints(), console)


@checkpoint.command("restore")
@click.argument("name")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def restore(ctx: click.Context, name: str, yes: bool) -> None:
    """Roll the store back to checkpoint NAME."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        if not yes and not click.confirm(f"Replace all branches with checkpoint '{name}'?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return
        cp = store.restore_checkpoint(name)
        console.print(
            f"Restored checkpoint [cyan]{cp.name}[/cyan]; "
            f"on branch [cyan]{store.current_branch}[/cyan]"
        )
