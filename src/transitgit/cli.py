"""transitgit CLI - typer application entry point."""

from __future__ import annotations

import atexit
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from transitgit.errors import TransitGitError
from transitgit.observability import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

if TYPE_CHECKING:
    from transitgit.config import BuildConfig
    from transitgit.graph import BuildResult, VersionStore
    from transitgit.graph.git_store import GitVersionStore
    from transitgit.models import RouteSummary


def _is_interactive_tty() -> bool:
    """Check if stdin/stdout are connected to a TTY."""
    return sys.stdin.isatty() and sys.stdout.isatty()


# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="transitgit",
    help="transitgit: Build a git commit graph from transit routes.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)

DEFAULT_GIT_DIR = Path("result")
LOGS_DIRNAME = ".transitgit-logs"

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False

FeedArgument = Annotated[
    str,
    typer.Argument(help="GTFS feed: a directory, a .zip file, or an http(s) URL to a .zip."),
]
PrefilterOption = Annotated[
    str | None,
    typer.Option(
        "--prefilter",
        help="Comma-separated route short/long names to keep (speeds up large feeds).",
    ),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Config file (default: ./transitgit.yaml when present).",
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log: Annotated[
        bool,
        typer.Option(
            "--log",
            help=f"Enable file logging to {{git-dir}}/{LOGS_DIRNAME}/debug.jsonl.",
        ),
    ] = False,
) -> None:
    """transitgit: Build a git commit graph from transit routes."""
    global _verbose, _log_enabled
    _verbose = verbose
    _log_enabled = log

    # Configure console logging (file logging configured once the output dir is known)
    configure_logging(verbosity=verbose)


def _configure_build_logging(git_dir: Path) -> None:
    """Configure file logging if --log flag was set."""
    if _log_enabled:
        configure_logging(verbosity=_verbose, log_to_file=True, log_dir=git_dir / LOGS_DIRNAME)
        atexit.register(close_file_logging)
        logs_dir = get_logs_dir()
        if logs_dir is not None:
            console.print(f"Logging to {logs_dir / 'debug.jsonl'}", highlight=False)


def _fail(error: TransitGitError) -> typer.Exit:
    """Print an error report and return the exit to raise."""
    console.print(f"[red]Error:[/red] {escape(str(error))}", highlight=False)
    report = error.to_report()
    if report != str(error):
        console.print()
        console.print(report, markup=False, highlight=False)
    return typer.Exit(1)


def _load_config(config_path: Path | None) -> BuildConfig:
    from transitgit.config import load_config

    try:
        return load_config(config_path)
    except TransitGitError as e:
        raise _fail(e) from e


def _load_summaries(
    feed: str,
    config: BuildConfig,
    prefilter: str | None,
    selectors: list[str] | None = None,
) -> list[RouteSummary]:
    """Read the feed and apply the prefilter and explicit route selection."""
    from transitgit.feed import filter_routes, load_feed, parse_name_list, select_routes

    console.print(f"Reading the GTFS feed from {feed}. This might take a while…", highlight=False)
    try:
        loaded = load_feed(feed, config.feed)
        summaries = filter_routes(loaded.routes, parse_name_list(prefilter))
        return select_routes(summaries, selectors or [], location=loaded.location)
    except TransitGitError as e:
        raise _fail(e) from e


def _routes_table(summaries: list[RouteSummary], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Route", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Trip", style="dim")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Stops", justify="right")

    for summary in summaries:
        first = summary.stops[0].name if summary.stops else "-"
        last = summary.stops[-1].name if summary.stops else "-"
        table.add_row(
            summary.route_id,
            escape(summary.display_name),
            summary.trip_id,
            escape(first),
            escape(last),
            str(len(summary.stops)),
        )
    return table


def _print_result(result: BuildResult, target: str) -> None:
    table = Table(title=f"Branches in {target}")
    table.add_column("Branch", style="cyan")
    table.add_column("Route", style="bold")
    table.add_column("Head", style="dim")

    for route in result.routes:
        branch = result.branches[route.id]
        head = result.heads.get(branch, "")
        table.add_row(escape(branch), escape(route.name), head[:12])

    console.print()
    console.print(table)
    console.print()
    console.print(
        f"[green]✓[/green] Created [bold]{result.commit_count}[/bold] commits "
        f"([bold]{result.merge_count}[/bold] merges) on "
        f"[bold]{len(set(result.branches.values()))}[/bold] branches"
    )


# =============================================================================
# CLI Commands
# =============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from transitgit import __version__

    console.print(f"transitgit v{__version__}")


@app.command()
def routes(
    feed: FeedArgument,
    prefilter: PrefilterOption = None,
    config: ConfigOption = None,
) -> None:
    """List the routes of a feed with their representative trip."""
    build_config = _load_config(config)
    summaries = _load_summaries(feed, build_config, prefilter)

    console.print()
    console.print(_routes_table(summaries, title=f"Routes in {feed}"))
    console.print(f"{len(summaries)} route(s)")


@app.command()
def build(
    feed: FeedArgument,
    git_dir: Annotated[
        Path,
        typer.Option(
            "--git-dir",
            "-g",
            help="Directory where the git repository is created.",
        ),
    ] = DEFAULT_GIT_DIR,
    prefilter: PrefilterOption = None,
    route: Annotated[
        list[str] | None,
        typer.Option(
            "--route",
            "-r",
            help="Route id or name to include. Repeatable. Default: every route.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Build the graph in memory and report counts without writing a repository.",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the selection confirmation prompt."),
    ] = False,
    config: ConfigOption = None,
) -> None:
    """Build the commit graph for the selected routes.

    Each route becomes a branch with one commit per stop. Stops shared by
    several routes become merge commits joining their branches.
    """
    from transitgit.graph import DictVersionStore, build_repository

    build_config = _load_config(config)
    if not dry_run:
        _configure_build_logging(git_dir)

    summaries = _load_summaries(feed, build_config, prefilter, route)
    if not summaries:
        console.print("[red]Error:[/red] No routes selected.")
        raise typer.Exit(1)

    console.print()
    console.print(_routes_table(summaries, title="Selected routes"))

    if _is_interactive_tty() and not yes:
        if not typer.confirm("Are you satisfied with the selection?", default=False):
            raise typer.Exit(0)

    selected = [summary.to_route() for summary in summaries]

    git_store: GitVersionStore | None = None
    store: VersionStore
    if dry_run:
        store = DictVersionStore()
        target = "memory (dry run)"
    else:
        from transitgit.graph.git_store import GitVersionStore

        console.print(f"Creating the git repository in {git_dir}", highlight=False)
        store = git_store = GitVersionStore(git_dir, build_config.git)
        target = str(git_dir)

    try:
        result = build_repository(
            selected,
            store,
            branch_prefix=build_config.git.branch_prefix,
        )
        if git_store is not None:
            git_store.checkout_branch(result.branches[result.routes[0].id])
    except TransitGitError as e:
        log.error("build_failed", error=str(e))
        raise _fail(e) from e
    finally:
        if git_store is not None:
            git_store.close()

    _print_result(result, target)


if __name__ == "__main__":
    app()
