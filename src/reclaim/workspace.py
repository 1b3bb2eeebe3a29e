"""Project discovery and build/cache directory measurement.

A directory whose immediate children match any ecosystem rule is a project.
The walk never descends into a project, so projects nested inside another
project are not reported.
"""

import logging
import os
from pathlib import Path

from reclaim import rules
from reclaim.models import CleanableDir, ProjectRecord, ScanTarget
from reclaim.walker import expand_path, list_dir, measure_sizes, walk_target

log = logging.getLogger(__name__)


def is_project(path: Path, file_names: set[str], dir_names: set[str]) -> bool:
    return bool(rules.match_ecosystems(file_names, dir_names))


def find_projects(
    root: Path,
    max_depth: int = rules.WORKSPACE_SCAN_MAX_DEPTH,
) -> list[Path]:
    """
    Find project directories under root, shallowest match first.

    Hidden directories are not descended into.
    """
    target = ScanTarget(root_path=root, max_depth=max_depth)
    return [entry.path for entry in walk_target(target, match=is_project, skip_hidden=True)]


def inspect_project(project_path: Path, max_workers: int = 4) -> ProjectRecord | None:
    """
    Build the record for one project directory.

    Returns:
        ProjectRecord, or None if no ecosystem matches or every cleanable
        directory is missing or empty
    """
    files, dirs = list_dir(project_path)
    file_names = {e.name for e in files}
    dir_names = {e.name for e in dirs}

    matched = rules.match_ecosystems(file_names, dir_names)
    if not matched:
        return None

    candidates = [name for name in rules.clean_dir_names_for(matched) if name in dir_names]
    sizes = measure_sizes((project_path / name for name in candidates), max_workers=max_workers)

    clean_dirs = [
        CleanableDir(name=name, path=str(project_path / name), size_bytes=size)
        for name, size in zip(candidates, sizes)
        if size > 0
    ]
    if not clean_dirs:
        return None

    return ProjectRecord(
        name=project_path.name,
        path=str(project_path),
        ecosystems=[rule.id for rule in matched],
        clean_dirs=clean_dirs,
    )


def scan_workspaces(
    roots: list[str] | None = None,
    max_depth: int = rules.WORKSPACE_SCAN_MAX_DEPTH,
    max_workers: int = 4,
) -> list[ProjectRecord]:
    """
    Scan workspace roots for projects with reclaimable build/cache directories.

    Returns:
        ProjectRecords in discovery order (roots in order, depth-first)
    """
    results: list[ProjectRecord] = []
    seen: set[str] = set()

    for root in roots if roots is not None else rules.WORKSPACE_ROOTS:
        root_path = expand_path(root)
        if not root_path.is_dir():
            continue

        for project_path in find_projects(root_path, max_depth):
            key = str(project_path)
            # Overlapping roots can reach a project twice, or reach inside one
            if key in seen or any(key.startswith(p + os.sep) for p in seen):
                continue
            seen.add(key)

            record = inspect_project(project_path, max_workers=max_workers)
            if record is not None:
                results.append(record)

    log.info("Found %d projects with cleanable directories", len(results))
    return results
