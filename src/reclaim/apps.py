"""Installed application discovery."""

import glob
import logging
import os
import plistlib
import shutil
import subprocess
from datetime import datetime
from pathlib import Path
from xml.parsers.expat import ExpatError

from reclaim import rules
from reclaim.models import (
    LAST_USED_NEVER,
    LAST_USED_UNKNOWN,
    UNKNOWN_BUNDLE_ID,
    ApplicationRecord,
)
from reclaim.walker import expand_path, list_dir, measure_sizes

log = logging.getLogger(__name__)

MDLS_TIMEOUT = 10
MDLS_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"


def application_roots(
    roots: list[str] | None = None,
    include_volumes: bool = True,
    volume_glob: str = rules.VOLUME_APPLICATION_GLOB,
) -> list[Path]:
    """
    Directories to look for .app bundles in.

    Mounted volumes' Applications folders are added unless they are the same
    directory (device and inode) as /Applications or ~/Applications.
    """
    base = [expand_path(r) for r in (roots if roots is not None else rules.APPLICATION_ROOTS)]
    result = list(base)
    if not include_volumes:
        return result

    for candidate in sorted(glob.glob(volume_glob)):
        vol_dir = Path(candidate)
        if not vol_dir.is_dir() or not os.access(vol_dir, os.R_OK):
            continue
        if any(_same_directory(vol_dir, existing) for existing in base):
            continue
        result.append(vol_dir)
    return result


def _same_directory(a: Path, b: Path) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def read_bundle_id(app_path: Path) -> str:
    """CFBundleIdentifier from the bundle's Info.plist, or 'unknown'."""
    plist_path = app_path / "Contents" / "Info.plist"
    try:
        with open(plist_path, "rb") as f:
            plist = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException, ValueError, ExpatError) as e:
        log.debug("No bundle id for %s: %s", app_path, e)
        return UNKNOWN_BUNDLE_ID

    bundle_id = plist.get("CFBundleIdentifier") if isinstance(plist, dict) else None
    if not isinstance(bundle_id, str) or not bundle_id:
        return UNKNOWN_BUNDLE_ID
    return bundle_id


def get_last_used(app_path: Path) -> str:
    """
    Last-used date from Spotlight metadata.

    Returns a YYYY-MM-DD string, 'Never' if Spotlight has no date (or mdls
    is unavailable), or 'Unknown' if the value can't be parsed.
    """
    if not shutil.which("mdls"):
        return LAST_USED_NEVER

    try:
        result = subprocess.run(
            ["mdls", "-name", "kMDItemLastUsedDate", "-raw", str(app_path)],
            capture_output=True,
            text=True,
            timeout=MDLS_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        log.debug("mdls failed for %s: %s", app_path, e)
        return LAST_USED_NEVER

    raw = result.stdout.strip()
    if result.returncode != 0 or not raw or raw == "(null)":
        return LAST_USED_NEVER

    return parse_last_used(raw)


def parse_last_used(raw: str) -> str:
    """Convert an mdls date ('2024-02-15 18:22:33 +0000') to YYYY-MM-DD."""
    try:
        return datetime.strptime(raw.strip(), MDLS_DATE_FORMAT).strftime("%Y-%m-%d")
    except ValueError:
        return LAST_USED_UNKNOWN


def find_bundles(root: Path) -> list[Path]:
    """Immediate .app children of root (real directories only)."""
    _, dirs = list_dir(root)
    return [Path(entry.path) for entry in dirs if entry.name.endswith(".app")]


def scan_applications(
    roots: list[str] | None = None,
    include_volumes: bool = True,
    volume_glob: str = rules.VOLUME_APPLICATION_GLOB,
    max_workers: int = 4,
) -> list[ApplicationRecord]:
    """
    Scan for removable applications.

    Protected bundles are dropped before any measurement.

    Returns:
        ApplicationRecords sorted by size (KB) descending
    """
    bundles: list[tuple[Path, str]] = []
    seen: set[str] = set()

    for root in application_roots(roots, include_volumes, volume_glob):
        for app_path in find_bundles(root):
            key = str(app_path)
            if key in seen:
                continue
            seen.add(key)

            bundle_id = read_bundle_id(app_path)
            if rules.is_protected_app(bundle_id, key):
                log.debug("Skipping protected app %s (%s)", app_path, bundle_id)
                continue
            bundles.append((app_path, bundle_id))

    sizes = measure_sizes((path for path, _ in bundles), max_workers=max_workers)

    records = [
        ApplicationRecord(
            path=str(app_path),
            name=app_path.name.removesuffix(".app"),
            bundle_id=bundle_id,
            size_bytes=size,
            last_used=get_last_used(app_path),
        )
        for (app_path, bundle_id), size in zip(bundles, sizes)
    ]

    records.sort(key=lambda r: r.size_kb, reverse=True)
    log.info("Found %d applications", len(records))
    return records
