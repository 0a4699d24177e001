"""chatbranch compare -- show where two branches diverge."""

from __future__ import annotations

import click

from chatbranch.formatting import pprint_comparison


@click.command()
@click.argument("branch_a")
@click.argument("branch_b", required=False, default=None)
@click.pass_context
def compare(ctx: click.Context, branch_a: str, branch_b: str | None) -> None:
    """Compare BRANCH_A with BRANCH_B (default: the current branch)."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        result = store.compare_branches(branch_a, branch_b or store.current_branch)
        pprint_comparison(result, file=console.file)
