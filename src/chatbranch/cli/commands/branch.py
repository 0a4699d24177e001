"""chatbranch branch -- list, create or delete branches."""

from __future__ import annotations

import click

from chatbranch.cli.formatting import format_branch_list


@click.command()
@click.argument("name", required=False, default=None)
@click.option("--from-index", type=int, default=None, help="Copy parent messages up to this index (inclusive).")
@click.option("--parent", default=None, help="Parent branch (default: current branch).")
@click.option("--description", default="", help="Branch description.")
@click.option("--tag", "tags", multiple=True, help="Tag to attach (repeatable).")
@click.option("-d", "--delete", "delete", is_flag=True, help="Delete the named branch.")
@click.pass_context
def branch(
    ctx: click.Context,
    name: str | None,
    from_index: int | None,
    parent: str | None,
    description: str,
    tags: tuple[str, ...],
    delete: bool,
) -> None:
    """List branches, or create / delete NAME.

    With no NAME, lists all branches. With NAME, creates it from the
    current branch (or --parent). With -d, deletes NAME.
    """
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        if name is None:
            if delete:
                raise click.UsageError("--delete requires a branch name")
            format_branch_list(store.list_branches(), console)
            return

        if delete:
            store.delete_branch(name)
            console.print(f"Deleted branch [cyan]{name}[/cyan]")
            return

        created = store.create_branch(
            name,
            from_index,
            parent=parent,
            description=description,
            tags=tags,
        )
        console.print(
            f"Created branch [cyan]{created.name}[/cyan] from "
            f"[cyan]{created.parent}[/cyan] ({created.stats.message_count} messages)"
        )
