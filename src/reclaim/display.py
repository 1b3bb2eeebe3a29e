"""Rich terminal display for reclaim."""

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from reclaim.models import (
    UNKNOWN_BUNDLE_ID,
    ApplicationRecord,
    DeletionReport,
    DeletionTarget,
    DiskUsage,
    InstallerRecord,
    ProjectRecord,
    format_size,
)

console = Console()


def show_applications(apps: Sequence[ApplicationRecord]) -> None:
    """Display the application list, largest first."""
    table = Table(title=f"{len(apps)} Applications", show_header=True, header_style="bold")
    table.add_column("Name", style="bold")
    table.add_column("Bundle ID", style="dim")
    table.add_column("Size", justify="right")
    table.add_column("Last Used")
    table.add_column("Path")

    for app in apps:
        table.add_row(
            escape(app.name),
            app.bundle_id if app.bundle_id != UNKNOWN_BUNDLE_ID else "",
            app.size_human,
            app.last_used,
            escape(app.path),
        )

    console.print(table)
    console.print(f"[bold]Total: {format_size(sum(a.size_bytes for a in apps))}[/bold]")


def show_installers(installers: Sequence[InstallerRecord]) -> None:
    """Display the installer list, largest first."""
    table = Table(
        title=f"{len(installers)} Installer Files", show_header=True, header_style="bold"
    )
    table.add_column("Name", style="bold")
    table.add_column("Source", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Path", style="dim")

    for installer in installers:
        table.add_row(
            escape(installer.display_name),
            escape(installer.source),
            installer.size_human,
            escape(installer.path),
        )

    console.print(table)
    console.print(
        f"[bold]Total: {format_size(sum(i.size_bytes for i in installers))}[/bold]"
    )


def show_projects(projects: Sequence[ProjectRecord]) -> None:
    """Display each project with its cleanable directories."""
    if not projects:
        console.print("[yellow]No cleanable projects found.[/yellow]")
        return

    for project in projects:
        table = Table(
            title=escape(f"{project.name} [{', '.join(project.ecosystems)}]"),
            caption=escape(project.path),
            show_header=True,
            header_style="bold",
        )
        table.add_column("Directory", style="green")
        table.add_column("Size", justify="right")
        table.add_column("Path", style="dim")
        for clean_dir in project.clean_dirs:
            table.add_row(escape(clean_dir.name), clean_dir.size_human, escape(clean_dir.path))
        console.print(table)

    total = sum(p.total_bytes for p in projects)
    console.print(
        f"[bold]{len(projects)} projects, {format_size(total)} reclaimable[/bold]"
    )


def show_deletion_preview(targets: Sequence[DeletionTarget], dry_run: bool = False) -> None:
    """List every target that is about to be removed."""
    if dry_run:
        console.print("[yellow]DRY RUN - Nothing will be deleted[/yellow]\n")

    console.print(f"[bold]This will permanently remove {len(targets)} item(s):[/bold]")
    for target in targets:
        console.print(f"  • {escape(target.label)}")
    total = sum(t.size_bytes for t in targets)
    console.print(f"\n[bold]Total: {format_size(total)}[/bold]")


def show_deletion_report(report: DeletionReport, noun: str = "item") -> None:
    """Display the outcome of a deletion batch."""
    for result in report.results:
        if not result.success:
            console.print(f"  [red]✗[/red] {escape(result.path)}: {escape(result.error or '')}")

    dry = any(r.dry_run for r in report.results)
    verb = "Would delete" if dry else "Deleted"
    color = "green" if report.failed == 0 else "yellow"
    lines = [
        f"[bold {color}]{verb} {report.deleted} {noun}(s)[/bold {color}]",
        f"Freed {format_size(report.bytes_freed)}",
    ]
    if report.failed:
        lines.append(f"[red]Failed: {report.failed}[/red]")
    console.print(Panel("\n".join(lines), border_style=color))


def show_status(
    info: Sequence[tuple[str, str]],
    disk_usage: DiskUsage,
    volumes: Sequence[DiskUsage] = (),
) -> None:
    """Display host details, disk usage and other mounted volumes."""
    used_percent = disk_usage.used_percent
    if used_percent >= 90:
        color = "red"
    elif used_percent >= 75:
        color = "yellow"
    else:
        color = "green"

    table = Table(title="System Status", show_header=False)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in info:
        table.add_row(key, value)
    table.add_row(
        f"Disk ({disk_usage.mount_point})",
        f"{format_size(disk_usage.used_bytes)} / {format_size(disk_usage.total_bytes)} "
        f"[{color}]({used_percent:.0f}%)[/{color}]",
    )
    table.add_row("Free", format_size(disk_usage.free_bytes))
    for volume in volumes:
        if volume.mount_point == disk_usage.mount_point:
            continue
        table.add_row(
            f"Volume ({escape(volume.mount_point)})",
            f"{format_size(volume.used_bytes)} / {format_size(volume.total_bytes)} "
            f"({volume.used_percent:.0f}%)",
        )
    console.print(table)


def show_scanning_progress() -> Progress:
    """Create a spinner for a scan."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message)
