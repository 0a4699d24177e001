"""chatbranch fork -- branch off the current branch."""

from __future__ import annotations

import click


@click.command()
@click.argument("name")
@click.option("--from-message", type=int, default=None, help="Fork point index (default: last message).")
@click.option("--stay", is_flag=True, help="Do not switch to the new branch.")
@click.option("--description", default="", help="Branch description.")
@click.option("--experimental", is_flag=True, help="Mark the branch as experimental.")
@click.pass_context
def fork(
    ctx: click.Context,
    name: str,
    from_message: int | None,
    stay: bool,
    description: str,
    experimental: bool,
) -> None:
    """Fork the current branch into NAME and switch to it."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        parent = store.current_branch
        forked = store.fork(
            name,
            from_message=from_message,
            switch_to=not stay,
            description=description,
            experimental=experimental,
        )
        console.print(
            f"Forked [cyan]{forked.name}[/cyan] from [cyan]{parent}[/cyan] "
            f"({forked.stats.message_count} messages)"
        )
