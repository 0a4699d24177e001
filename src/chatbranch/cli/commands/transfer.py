"""chatbranch export / import -- move store state through JSON files."""

from __future__ import annotations

import json

import click


@click.command("export")
@click.argument("output", type=click.File("w"), default="-")
@click.option("--indent", type=int, default=2, show_default=True)
@click.pass_context
def export_cmd(ctx: click.Context, output, indent: int) -> None:  # type: ignore[no-untyped-def]
    """Write the store as a versioned JSON envelope to OUTPUT (default: stdout)."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, _console):
        json.dump(store.export_branches(), output, indent=indent)
        output.write("\n")


@click.command("import")
@click.argument("source", type=click.File("r"))
@click.pass_context
def import_cmd(ctx: click.Context, source) -> None:  # type: ignore[no-untyped-def]
    """Replace the store with the JSON envelope in SOURCE."""
    from chatbranch.cli import _store_session

    with _store_session(ctx) as (store, console):
        try:
            data = json.load(source)
        except json.JSONDecodeError as exc:
            raise click.BadParameter(f"not valid JSON: {exc}", param_hint="SOURCE") from exc
        store.import_branches(data)
        console.print(f"Imported {len(store)} branches; on branch [cyan]{store.current_branch}[/cyan]")
