"""chatbranch say / edit / log -- work with messages on a branch."""

from __future__ import annotations

import click

from chatbranch.formatting import pprint_messages


@click.command()
@click.argument("content")
@click.option("--role", default="user", show_default=True, help="Message role.")
@click.pass_context
def say(ctx: click.Context, content: str, role: str) -> None:
    """Append CONTENT to the current branch."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        message = store.add_message(role, content)
        console.print(
            f"[yellow]{message.id[:8]}[/yellow] added to "
            f"[cyan]{message.branch}[/cyan] at index {message.index}"
        )


@click.command()
@click.argument("message_id")
@click.argument("content")
@click.option("--in-place", is_flag=True, help="Edit on the current branch instead of forking.")
@click.option("--branch-name", default=None, help="Name for the edit branch.")
@click.pass_context
def edit(
    ctx: click.Context,
    message_id: str,
    content: str,
    in_place: bool,
    branch_name: str | None,
) -> None:
    """Replace the content of MESSAGE_ID (full id or unique prefix).

    By default the edit happens on a new branch forked at the message.
    """
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        current = store.get_current_branch()
        matches = [m.id for m in current.messages if m.id.startswith(message_id)]
        if len(matches) > 1:
            raise click.UsageError(f"Ambiguous message id prefix '{message_id}'")
        full_id = matches[0] if matches else message_id

        edited = store.edit_message(
            full_id,
            content,
            create_branch=not in_place,
            branch_name=branch_name,
        )
        console.print(
            f"Edited [yellow]{edited.id[:8]}[/yellow] on "
            f"[cyan]{store.current_branch}[/cyan]"
        )


@click.command()
@click.argument("name", required=False, default=None)
@click.option("--full", is_flag=True, help="Do not truncate message content.")
@click.pass_context
def log(ctx: click.Context, name: str | None, full: bool) -> None:
    """Show the messages of branch NAME (default: current branch)."""
    from chatbranch.cli import _store_session
    from chatbranch.exceptions import BranchNotFoundError

    with _store_session(ctx) as (store, console):
        target = name or store.current_branch
        branch = store.get_branch(target)
        if branch is None:
            raise BranchNotFoundError(target)
        pprint_messages(branch.messages, abbreviate=not full, file=console.file)
