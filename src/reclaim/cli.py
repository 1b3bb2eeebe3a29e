"""CLI interface for reclaim."""

import json
import logging
import time
from typing import Callable, Optional, Sequence, TypeVar

import typer

from reclaim import __version__, rules
from reclaim.apps import scan_applications
from reclaim.cleaner import (
    delete_paths,
    select_applications,
    select_installers,
    select_project_dirs,
    uninstall_applications,
)
from reclaim.config import ReclaimConfig, load_config
from reclaim.display import (
    confirm_action,
    console,
    show_applications,
    show_deletion_preview,
    show_deletion_report,
    show_installers,
    show_projects,
    show_scanning_progress,
    show_status,
)
from reclaim.installers import scan_installers
from reclaim.models import (
    ApplicationRecord,
    DeletionReport,
    DeletionTarget,
    InstallerRecord,
    ProjectRecord,
)
from reclaim.status import get_disk_usage, get_system_info, get_volume_usage
from reclaim.workspace import scan_workspaces

T = TypeVar("T")

app = typer.Typer(
    name="reclaim",
    help="Find and remove apps, leftover installers and build caches on macOS",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"reclaim version {__version__}")
        raise typer.Exit()


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-V", count=True, help="Increase verbosity (-V info, -VV debug)."
    ),
) -> None:
    """reclaim - reclaim disk space on macOS."""
    _setup_logging(verbose)
    ctx.obj = load_config()


def _config(ctx: typer.Context) -> ReclaimConfig:
    return ctx.obj if isinstance(ctx.obj, ReclaimConfig) else load_config()


def _scan(description: str, scan: Callable[[], T], quiet: bool = False) -> T:
    if quiet:
        return scan()
    with show_scanning_progress() as progress:
        progress.add_task(description, total=None)
        return scan()


def _emit_json(items: Sequence) -> None:
    typer.echo(json.dumps([item.model_dump(mode="json") for item in items], indent=2))


def _search_applications(apps: list[ApplicationRecord], text: str | None):
    if not text:
        return apps
    return [a for a in apps if text.lower() in a.name.lower()]


def _search_installers(installers: list[InstallerRecord], text: str | None):
    if not text:
        return installers
    return [i for i in installers if text.lower() in i.display_name.lower()]


def _search_projects(projects: list[ProjectRecord], text: str | None):
    if not text:
        return projects
    needle = text.lower()
    return [
        p
        for p in projects
        if needle in p.name.lower()
        or needle in p.path.lower()
        or any(needle in e.lower() for e in p.ecosystems)
    ]


def _confirm_deletion(
    targets: Sequence[DeletionTarget],
    select_all: bool,
    yes: bool,
    dry_run: bool,
    noun: str,
) -> None:
    """Show every target and ask before deleting; exits if the user declines."""
    show_deletion_preview(targets, dry_run=dry_run)
    if yes or dry_run:
        return

    console.print()
    if select_all:
        console.print("[bold red]Warning: Dangerous Operation[/bold red]")
        console.print(
            f"You are about to select every listed {noun} for deletion. This action cannot be undone."
        )
        if not confirm_action("Select all?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    if not confirm_action(f"Delete {len(targets)} {noun}(s)?"):
        console.print("[yellow]Cancelled[/yellow]")
        raise typer.Exit(0)


def _require_selection(terms: Optional[list[str]], select_all: bool, hint: str) -> None:
    if not terms and not select_all:
        console.print("[red]Error: Specify what to delete or use --all[/red]")
        console.print(f"  {hint}")
        raise typer.Exit(1)


def _finish(report: DeletionReport, noun: str, rescan: Callable[[], Sequence]) -> None:
    show_deletion_report(report, noun)
    if any(r.dry_run for r in report.results):
        return
    remaining = _scan("Rescanning...", rescan)
    console.print(f"[dim]{len(remaining)} {noun}(s) remaining[/dim]")


# =============================================================================
# Applications
# =============================================================================


@app.command()
def apps(
    ctx: typer.Context,
    raw: bool = typer.Option(
        False, "--raw", help="Pipe-delimited records: epoch|path|name|bundle_id|size|last_used|size_kb"
    ),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by name"),
) -> None:
    """List removable applications, largest first."""
    config = _config(ctx)
    found = _scan(
        "Scanning applications...",
        lambda: scan_applications(
            roots=config.applications.roots,
            include_volumes=config.applications.include_volumes,
            max_workers=config.scan.max_workers,
        ),
        quiet=raw or as_json,
    )
    found = _search_applications(found, search)

    if raw:
        epoch = int(time.time())
        for record in found:
            typer.echo(record.to_record_line(epoch))
    elif as_json:
        _emit_json(found)
    else:
        show_applications(found)


@app.command()
def uninstall(
    ctx: typer.Context,
    names: Optional[list[str]] = typer.Argument(None, help="App names or paths"),
    select_all: bool = typer.Option(False, "--all", help="Select every listed app"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without deleting"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
) -> None:
    """Uninstall applications (asks for an administrator password when needed)."""
    _require_selection(names, select_all, "reclaim uninstall Slack")
    config = _config(ctx)

    def rescan() -> list[ApplicationRecord]:
        return scan_applications(
            roots=config.applications.roots,
            include_volumes=config.applications.include_volumes,
            max_workers=config.scan.max_workers,
        )

    found = _scan("Scanning applications...", rescan)
    selected = select_applications(found, None if select_all else names)
    if not selected:
        console.print("[yellow]No matching applications.[/yellow]")
        raise typer.Exit(1)

    targets = [
        DeletionTarget(path=a.path, label=a.name, size_bytes=a.size_bytes) for a in selected
    ]
    _confirm_deletion(targets, select_all, yes, dry_run, "app")

    report = uninstall_applications(selected, dry_run=dry_run)
    _finish(report, "app", rescan)


# =============================================================================
# Installers
# =============================================================================


@app.command()
def installers(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by name"),
    delete: Optional[list[str]] = typer.Option(
        None, "--delete", "-d", help="Delete installers matching this name or path (repeatable)"
    ),
    select_all: bool = typer.Option(False, "--all", help="Delete every listed installer"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without deleting"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
) -> None:
    """List (and optionally delete) leftover installer files."""
    config = _config(ctx)

    def rescan() -> list[InstallerRecord]:
        return scan_installers(
            roots=config.installers.roots, max_depth=config.installers.max_depth
        )

    found = _search_installers(_scan("Scanning installers...", rescan, quiet=as_json), search)

    if not delete and not select_all:
        if as_json:
            _emit_json(found)
        else:
            show_installers(found)
        return

    targets = select_installers(found, None if select_all else delete)
    if not targets:
        console.print("[yellow]No matching installer files.[/yellow]")
        raise typer.Exit(1)

    _confirm_deletion(targets, select_all, yes, dry_run, "installer")
    report = delete_paths(targets, dry_run=dry_run)
    _finish(report, "installer", rescan)


# =============================================================================
# Projects
# =============================================================================


@app.command()
def projects(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    search: Optional[str] = typer.Option(
        None, "--search", "-s", help="Filter by project name, path or ecosystem"
    ),
    delete: Optional[list[str]] = typer.Option(
        None,
        "--delete",
        "-d",
        help="Clean projects matching this name, path or ecosystem (repeatable)",
    ),
    dirs: Optional[list[str]] = typer.Option(
        None, "--dir", help="Only clean directories with this name (e.g. node_modules)"
    ),
    select_all: bool = typer.Option(False, "--all", help="Clean every listed project"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without deleting"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
) -> None:
    """List (and optionally clean) build and cache directories in your projects."""
    config = _config(ctx)

    def rescan() -> list[ProjectRecord]:
        return scan_workspaces(
            roots=config.workspace.roots,
            max_depth=config.workspace.max_depth,
            max_workers=config.scan.max_workers,
        )

    found = _search_projects(_scan("Scanning projects...", rescan, quiet=as_json), search)

    if not delete and not select_all:
        if as_json:
            _emit_json(found)
        else:
            show_projects(found)
        return

    targets = select_project_dirs(found, None if select_all else delete, dirs or ())
    if not targets:
        console.print("[yellow]No matching directories.[/yellow]")
        raise typer.Exit(1)

    _confirm_deletion(targets, select_all, yes, dry_run, "directory")
    report = delete_paths(targets, dry_run=dry_run)
    _finish(report, "directory", rescan)


# =============================================================================
# Misc
# =============================================================================


@app.command()
def status() -> None:
    """Show host details and disk usage."""
    show_status(get_system_info(), get_disk_usage(), get_volume_usage())


@app.command(name="rules")
def list_rules() -> None:
    """List the project ecosystems and installer types reclaim knows about."""
    console.print("[bold]Project Ecosystems[/bold]\n")
    for rule in rules.ECOSYSTEMS:
        markers = [*rule.file_markers, *rule.dir_marker_suffixes, *(f"*{s}" for s in rule.file_suffixes)]
        console.print(f"  • [bold]{rule.id}[/bold]")
        console.print(f"      markers: {', '.join(markers)}")
        console.print(f"      cleans:  {', '.join(rule.clean_dir_names)}")

    console.print("\n[bold]Installer Types[/bold]\n")
    console.print(f"  {', '.join(sorted(rules.INSTALLER_EXTENSIONS))}")
    console.print(
        f"[dim]  .zip files count only if one of their first {rules.ZIP_SAMPLE_ENTRIES} "
        "entries is an app, package or disk image[/dim]"
    )


if __name__ == "__main__":
    app()
