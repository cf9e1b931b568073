"""Command line interface: rank owner groups of a recorded pull request.

The ``report`` command runs one resolution pass over a fixture file, and
``resolve`` prints the owners a CODEOWNERS file assigns to given paths.
"""

import asyncio
import sys
from pathlib import Path

import click
from rich import print as rich_print
from rich.console import Console
from rich.table import Table

from codeowners_review.config import Settings
from codeowners_review.engine import OwnershipEngine
from codeowners_review.exceptions import FixtureError
from codeowners_review.fixture_source import (
    FixtureDataSource,
    StaticContextProvider,
    load_fixture,
)
from codeowners_review.grouping import any_reviewer_approvers, sort_owners_for_display
from codeowners_review.logger import setup_logging
from codeowners_review.models import OwnerGroup, ResultState, ReviewResult
from codeowners_review.ownership import EmptyOwnersPolicy, OwnershipResolver


def _owner_labels(group: OwnerGroup, result: ReviewResult) -> str:
    if group.owners is None:
        approvers = any_reviewer_approvers(result.owner_approvals)
        label = "any reviewer"
        if group.approved:
            label = f"[green]✓ {label}[/]"
        if approvers:
            label += f" ({', '.join(approvers)})"
        return label
    if not group.owners:
        return "[dim]unowned[/]"

    user_teams = {
        owner
        for owner, flags in result.owner_flags.items()
        if flags.covered_by_current_user
    }
    labels = []
    for owner in sort_owners_for_display(sorted(group.owners), user_teams):
        flags = result.owner_flags[owner]
        star = ""
        if flags.covered_by_current_user:
            star = " ☆" if flags.approved else " ★"
        label = f"{'✓ ' if flags.approved else ''}{owner}{star}"
        labels.append(f"[green]{label}[/]" if flags.approved else label)
    return ", ".join(labels)


def print_result(result: ReviewResult, console: Console) -> None:
    if result.state != ResultState.ACTIVE:
        console.print(result.state.description)
        return

    status = result.approval_status
    if status is not None:
        file_text = "file" if status.total_files == 1 else "files"
        console.print(
            f"{status.received} of {status.required} required approvals "
            f"received ({status.total_files} {file_text})"
        )

    table = Table("Priority", "Owners", "Approved", "Files")
    for group in result.groups:
        table.add_row(
            str(group.priority),
            _owner_labels(group, result),
            "yes" if group.approved else "no",
            "\n".join(f.path for f in group.files),
        )
    console.print(table)


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Logging level (defaults to CODEOWNERS_REVIEW_LOG_LEVEL).",
)
@click.pass_context
def root(ctx: click.Context, log_level: str | None) -> None:
    """Show code owner approval obligations of a pull request."""
    ctx.ensure_object(dict)
    setup_logging(log_level)
    ctx.obj["settings"] = Settings()


@root.command()
@click.argument("fixture", type=click.Path(exists=True, dir_okay=False))
@click.option("--user", default=None, help="View the pull request as this login.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON.")
@click.pass_context
def report(ctx: click.Context, fixture: str, user: str | None, as_json: bool) -> None:
    """Rank the owner groups of a recorded pull request.

    FIXTURE is a YAML or JSON file describing the pull request, its
    CODEOWNERS file, changed files, reviews and team rosters.
    """
    try:
        data = load_fixture(fixture)
    except FixtureError as e:
        rich_print(f"[b red]{e.message}")
        sys.exit(1)

    context = data.pull_request
    if user is not None:
        context = context.model_copy(update={"current_user": user})

    engine = OwnershipEngine(
        FixtureDataSource(data, paths=ctx.obj["settings"].codeowners_paths),
        StaticContextProvider(context),
        settings=ctx.obj["settings"],
    )
    result = asyncio.run(engine.run_pass())
    if result is None:
        rich_print("[b red]Could not resolve code owners")
        sys.exit(1)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return
    print_result(result, Console())


@root.command()
@click.argument("codeowners", type=click.Path(exists=True, dir_okay=False))
@click.argument("paths", nargs=-1)
@click.option(
    "--empty-owners",
    type=click.Choice([p.value for p in EmptyOwnersPolicy]),
    default=None,
    help="Resolution of rules listing no owners.",
)
@click.pass_context
def resolve(
    ctx: click.Context, codeowners: str, paths: tuple[str, ...], empty_owners: str | None
) -> None:
    """Print the owners of each PATH according to the CODEOWNERS file."""
    settings: Settings = ctx.obj["settings"]
    policy = EmptyOwnersPolicy(empty_owners or settings.empty_owners_policy)
    resolver = OwnershipResolver.from_text(
        Path(codeowners).read_text(encoding="utf-8"), empty_owners=policy
    )

    table = Table("Path", "Owners")
    for path in paths:
        owners = resolver.owners_for(path)
        if owners is None:
            shown = "[yellow]any reviewer[/]"
        elif not owners:
            shown = "[dim]unowned[/]"
        else:
            shown = " ".join(sorted(owners))
        table.add_row(path, shown)
    Console().print(table)
