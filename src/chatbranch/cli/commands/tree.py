"""chatbranch tree -- draw the branch tree."""

from __future__ import annotations

import click

from chatbranch.formatting import pprint_tree


@click.command()
@click.pass_context
def tree(ctx: click.Context) -> None:
    """Draw the branch tree, current branch marked with ``*``."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        pprint_tree(store.visualize_branches(), current=store.current_branch, file=console.file)
