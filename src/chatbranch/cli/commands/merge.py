"""chatbranch merge -- merge one branch into another."""

from __future__ import annotations

import click

from chatbranch.formatting import pprint_merge_result


@click.command()
@click.argument("source")
@click.argument("target", required=False, default=None)
@click.option(
    "--strategy",
    type=click.Choice(["append", "interleave", "replace", "smart"], case_sensitive=False),
    default="append",
    help="Merge strategy (default: append).",
)
@click.option("--force", is_flag=True, help="Allow merging into a protected branch.")
@click.option("--merge-point", type=int, default=None, help="Cut index for the replace strategy.")
@click.option("--delete-source", is_flag=True, help="Delete SOURCE after merging.")
@click.pass_context
def merge(
    ctx: click.Context,
    source: str,
    target: str | None,
    strategy: str,
    force: bool,
    merge_point: int | None,
    delete_source: bool,
) -> None:
    """Merge SOURCE into TARGET (default: the current branch)."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        result = store.merge_branches(
            source,
            target or store.current_branch,
            strategy=strategy.lower(),
            force=force,
            merge_point=merge_point,
            delete_source=delete_source,
        )
        pprint_merge_result(result, file=console.file)
