"""Deletion of selected scan results with safety checks."""

import logging
import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable, Sequence

from reclaim import rules
from reclaim.models import (
    ApplicationRecord,
    DeletionReport,
    DeletionResult,
    DeletionTarget,
    InstallerRecord,
    ProjectRecord,
)
from reclaim.walker import expand_path

log = logging.getLogger(__name__)

# Paths that are never deleted themselves (their contents may be)
BLOCKED_PATHS = [
    "/",
    "~",
    "/Applications",
    "/Library",
    "/System",
    "/Users",
    "/Users/Shared",
    "/Volumes",
    "/usr",
    "/bin",
    "/sbin",
    "/private",
    *rules.APPLICATION_ROOTS,
    *rules.INSTALLER_ROOTS,
    *rules.WORKSPACE_ROOTS,
]

OSASCRIPT_TIMEOUT = 300


def is_path_safe(path: Path) -> bool:
    """
    Check if a path may be deleted.

    Blocked roots themselves are refused; anything beneath them is allowed.
    """
    path_str = os.path.normpath(str(path))
    for blocked in BLOCKED_PATHS:
        if path_str == os.path.normpath(str(expand_path(blocked))):
            return False
    return True


def remove_path(path: Path) -> None:
    """Remove a file or directory tree. A missing path is not an error."""
    if path.is_symlink() or path.is_file():
        path.unlink(missing_ok=True)
    elif path.is_dir():
        shutil.rmtree(path)


def delete_target(target: DeletionTarget, dry_run: bool = False) -> DeletionResult:
    """Delete one target, reporting failure instead of raising."""
    path = expand_path(target.path)

    if not is_path_safe(path):
        log.warning("Refusing to delete protected path %s", path)
        return DeletionResult(
            path=target.path,
            success=False,
            error=f"Blocked path: {path}",
            dry_run=dry_run,
        )

    if dry_run:
        return DeletionResult(path=target.path, bytes_freed=target.size_bytes, dry_run=True)

    try:
        remove_path(path)
    except OSError as e:
        log.warning("Failed to delete %s: %s", path, e)
        return DeletionResult(path=target.path, success=False, error=str(e))

    log.info("Deleted %s", path)
    return DeletionResult(path=target.path, bytes_freed=target.size_bytes)


def delete_paths(
    targets: Iterable[DeletionTarget],
    dry_run: bool = False,
    progress_callback: Callable[[str, int, int], None] | None = None,
) -> DeletionReport:
    """
    Delete each target; a failure does not stop the batch.

    Args:
        targets: Confirmed targets
        dry_run: If True, don't actually delete
        progress_callback: Optional callback(label, current, total)

    Returns:
        DeletionReport with per-target results
    """
    targets = list(targets)
    report = DeletionReport()
    for i, target in enumerate(targets):
        if progress_callback:
            progress_callback(target.label, i + 1, len(targets))
        report.results.append(delete_target(target, dry_run))
    return report


def _run_privileged_remove(paths: Sequence[str]) -> str | None:
    """
    Remove paths through an administrator-privileges prompt.

    Returns:
        Error message, or None on success
    """
    quoted = " ".join(shlex.quote(p) for p in paths)
    command = f"/bin/rm -rf {quoted}"
    escaped = command.replace("\\", "\\\\").replace('"', '\\"')
    script = f'do shell script "{escaped}" with administrator privileges'

    try:
        result = subprocess.run(
            ["/usr/bin/osascript", "-e", script],
            capture_output=True,
            text=True,
            timeout=OSASCRIPT_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        return "Administrator prompt timed out"
    except OSError as e:
        return str(e)

    if result.returncode != 0:
        return result.stderr.strip() or "Command failed"
    return None


def uninstall_applications(
    apps: Sequence[ApplicationRecord],
    dry_run: bool = False,
) -> DeletionReport:
    """
    Remove application bundles.

    Bundles under /Applications or /Library are removed in a single
    privileged call (the user is prompted for credentials); all others are
    removed directly.
    """
    admin_apps = [a for a in apps if a.requires_admin]
    user_apps = [a for a in apps if not a.requires_admin]

    report = delete_paths(
        (DeletionTarget(path=a.path, label=a.name, size_bytes=a.size_bytes) for a in user_apps),
        dry_run=dry_run,
    )

    if not admin_apps:
        return report

    blocked = [a for a in admin_apps if not is_path_safe(Path(a.path))]
    allowed = [a for a in admin_apps if is_path_safe(Path(a.path))]
    for app in blocked:
        report.results.append(
            DeletionResult(path=app.path, success=False, error="Blocked path", dry_run=dry_run)
        )

    if dry_run:
        report.results.extend(
            DeletionResult(path=a.path, bytes_freed=a.size_bytes, dry_run=True) for a in allowed
        )
        return report

    error = _run_privileged_remove([a.path for a in allowed]) if allowed else None
    for app in allowed:
        if error:
            log.warning("Failed to uninstall %s: %s", app.path, error)
            report.results.append(DeletionResult(path=app.path, success=False, error=error))
        else:
            log.info("Uninstalled %s", app.path)
            report.results.append(DeletionResult(path=app.path, bytes_freed=app.size_bytes))
    return report


# =============================================================================
# Selection
# =============================================================================


def _selected(terms: Sequence[str] | None, *fields: str) -> bool:
    if terms is None:
        return True
    for term in terms:
        lowered = term.lower()
        for value in fields:
            if value == term or lowered in value.lower():
                return True
    return False


def select_applications(
    apps: Sequence[ApplicationRecord], terms: Sequence[str] | None
) -> list[ApplicationRecord]:
    """
    Apps named exactly by a term (case-insensitive) or at a given path.

    No substring matching. terms=None selects all.
    """
    if terms is None:
        return list(apps)
    wanted = {t.lower() for t in terms}
    paths = set(terms)
    return [a for a in apps if a.name.lower() in wanted or a.path in paths]


def select_installers(
    installers: Sequence[InstallerRecord], terms: Sequence[str] | None
) -> list[DeletionTarget]:
    """Deletion targets for installers matching any term by name or path."""
    return [
        DeletionTarget(path=i.path, label=i.display_name, size_bytes=i.size_bytes)
        for i in installers
        if _selected(terms, i.display_name, i.path)
    ]


def select_project_dirs(
    projects: Sequence[ProjectRecord],
    terms: Sequence[str] | None,
    dir_names: Sequence[str] = (),
) -> list[DeletionTarget]:
    """
    Deletion targets for cleanable directories of matching projects.

    A project matches a term by name, path or ecosystem id; a single
    directory matches by its own path. dir_names restricts which
    directories (e.g. only node_modules) are taken. terms=None selects every
    project.
    """
    targets = []
    for project in projects:
        project_hit = _selected(terms, project.name, project.path, *project.ecosystems)
        for clean_dir in project.clean_dirs:
            if dir_names and clean_dir.name not in dir_names:
                continue
            if project_hit or _selected(terms, clean_dir.path):
                targets.append(
                    DeletionTarget(
                        path=clean_dir.path,
                        label=f"[{project.name}] {clean_dir.name} ({clean_dir.size_human})",
                        size_bytes=clean_dir.size_bytes,
                    )
                )
    return targets
