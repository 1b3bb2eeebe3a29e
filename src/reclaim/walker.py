"""Bounded directory traversal and size measurement.

Every filesystem call here is fallible: unreadable directories and entries
contribute nothing and the walk carries on.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Iterator

from reclaim.models import CandidateEntry, ScanTarget

log = logging.getLogger(__name__)

# Decides whether a directory is a terminal match, given the names of its
# regular files and real subdirectories
MatchFn = Callable[[Path, set[str], set[str]], bool]


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


def list_dir(path: Path) -> tuple[list[os.DirEntry], list[os.DirEntry]]:
    """
    List a directory's regular files and real subdirectories, sorted by name.

    Symlinks are left out of both lists. An unreadable directory yields two
    empty lists.
    """
    files: list[os.DirEntry] = []
    dirs: list[os.DirEntry] = []
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                try:
                    if entry.is_symlink():
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        dirs.append(entry)
                    elif entry.is_file(follow_symlinks=False):
                        files.append(entry)
                except OSError:
                    continue
    except OSError as e:
        log.debug("Cannot list %s: %s", path, e)
        return [], []

    files.sort(key=lambda e: e.name)
    dirs.sort(key=lambda e: e.name)
    return files, dirs


def walk(
    root: Path,
    max_depth: int,
    match: MatchFn | None = None,
    skip_hidden: bool = False,
    source: str = "",
) -> Iterator[CandidateEntry]:
    """
    Walk a directory tree down to max_depth (root is depth 1).

    Args:
        root: Directory to start from
        max_depth: Deepest level visited
        match: If given, each directory is offered to it; a match is emitted
            and not descended into. Files are not emitted in this mode.
        skip_hidden: Don't descend into directories whose name starts with '.'
        source: Label copied onto every emitted entry

    Yields:
        CandidateEntry for every regular file (plain walk) or every matched
        directory (match walk)
    """

    def _walk(directory: Path, depth: int) -> Iterator[CandidateEntry]:
        if depth > max_depth:
            return

        files, dirs = list_dir(directory)

        if match is not None and match(
            directory, {e.name for e in files}, {e.name for e in dirs}
        ):
            yield CandidateEntry(path=directory, is_dir=True, source=source)
            return

        if match is None:
            for entry in files:
                try:
                    size = entry.stat(follow_symlinks=False).st_size
                except OSError:
                    continue
                yield CandidateEntry(
                    path=Path(entry.path), is_dir=False, size_bytes=size, source=source
                )

        for entry in dirs:
            if skip_hidden and entry.name.startswith("."):
                continue
            yield from _walk(Path(entry.path), depth + 1)

    yield from _walk(root, 1)


def walk_target(
    target: ScanTarget,
    match: MatchFn | None = None,
    skip_hidden: bool = False,
    source: str = "",
) -> Iterator[CandidateEntry]:
    """Walk a ScanTarget."""
    return walk(target.root_path, target.max_depth, match, skip_hidden, source)


def allocated_size(st: os.stat_result) -> int:
    """Bytes actually allocated for a stat result."""
    blocks = getattr(st, "st_blocks", None)
    if blocks is None:
        return st.st_size
    return blocks * 512


def get_directory_size(path: Path) -> int:
    """
    Disk space allocated to the files under path, in bytes.

    Counts 512-byte blocks like du, so sparse files are not over-reported.
    Symlinks are not followed. Unreadable parts count as zero.
    """
    total_size = 0
    stack = [path]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_symlink():
                            continue
                        if entry.is_file(follow_symlinks=False):
                            total_size += allocated_size(entry.stat(follow_symlinks=False))
                        elif entry.is_dir(follow_symlinks=False):
                            stack.append(Path(entry.path))
                    except OSError:
                        continue
        except OSError:
            continue
    return total_size


def measure_sizes(paths: Iterable[Path], max_workers: int = 4) -> list[int]:
    """Measure several directories in parallel, results in input order."""
    paths = list(paths)
    if not paths:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(get_directory_size, paths))
