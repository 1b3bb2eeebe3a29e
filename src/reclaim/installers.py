"""Leftover installer discovery (disk images, packages, installer archives)."""

import logging
import re
import zipfile
from pathlib import Path

from reclaim import rules
from reclaim.models import CandidateEntry, InstallerRecord, ScanTarget
from reclaim.walker import expand_path, walk_target

log = logging.getLogger(__name__)

_ZIP_PAYLOAD_RE = re.compile(rules.ZIP_PAYLOAD_PATTERN)
_HASH_PREFIX_RE = re.compile(rules.PACKAGE_CACHE_HASH_PREFIX)


def is_installer_zip(path: Path, sample: int = rules.ZIP_SAMPLE_ENTRIES) -> bool:
    """
    Whether a .zip looks like it wraps an installer.

    Only the first `sample` entry names are inspected, so a payload listed
    later in a large archive is missed. Unreadable or corrupt archives never
    qualify.
    """
    try:
        with zipfile.ZipFile(path) as archive:
            names = [info.filename for info in archive.infolist()[:sample]]
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
        log.debug("Cannot inspect %s: %s", path, e)
        return False
    return any(_ZIP_PAYLOAD_RE.search(name) for name in names)


def is_installer(entry: CandidateEntry) -> bool:
    """Whether a file found during a walk counts as an installer."""
    ext = entry.path.suffix.lower()
    if ext not in rules.INSTALLER_EXTENSIONS:
        return False
    if ext == ".zip":
        return is_installer_zip(entry.path)
    return True


def get_source_label(path: Path) -> str:
    """Short label for where an installer lives, based on its parent directory."""
    parent = str(path.parent)
    for prefix, label in rules.INSTALLER_SOURCE_LABELS:
        if parent.startswith(str(expand_path(prefix))):
            return label
    if "Telegram Desktop" in parent:
        return "Telegram"
    return path.parent.name


def get_display_name(path: Path, source: str) -> str:
    """Filename for display; Homebrew's content-hash prefix is dropped."""
    name = path.name
    if source == rules.PACKAGE_CACHE_LABEL:
        stripped = _HASH_PREFIX_RE.sub("", name, count=1)
        if stripped:
            return stripped
    return name


def scan_installers(
    roots: list[str] | None = None,
    max_depth: int = rules.INSTALLER_SCAN_MAX_DEPTH,
) -> list[InstallerRecord]:
    """
    Scan user content directories for installer files.

    A path reachable from more than one root is reported once.

    Returns:
        InstallerRecords sorted by size descending
    """
    found: dict[str, InstallerRecord] = {}

    for root in roots if roots is not None else rules.INSTALLER_ROOTS:
        root_path = expand_path(root)
        if not root_path.is_dir():
            continue

        target = ScanTarget(root_path=root_path, max_depth=max_depth)
        for entry in walk_target(target, source=root):
            key = str(entry.path)
            if key in found or not is_installer(entry):
                continue

            source = get_source_label(entry.path)
            found[key] = InstallerRecord(
                path=key,
                size_bytes=entry.size_bytes,
                source=source,
                display_name=get_display_name(entry.path, source),
            )

    results = sorted(found.values(), key=lambda r: r.size_bytes, reverse=True)
    log.info("Found %d installer files", len(results))
    return results
