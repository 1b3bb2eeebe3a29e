"""Data models for reclaim."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_BUNDLE_ID = "unknown"
LAST_USED_NEVER = "Never"
LAST_USED_UNKNOWN = "Unknown"


def format_size(size_bytes: int) -> str:
    """Format bytes as a human-readable string (binary units)."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024**2:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024**3:
        return f"{size_bytes / 1024**2:.1f} MB"
    else:
        return f"{size_bytes / 1024**3:.1f} GB"


class EcosystemRule(BaseModel):
    """Marker files and cache directories of one project ecosystem."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Ecosystem identifier (e.g. 'node-js-ts')")
    file_markers: tuple[str, ...] = Field(
        default=(), description="Exact filenames that identify a project"
    )
    dir_marker_suffixes: tuple[str, ...] = Field(
        default=(), description="Subdirectory name suffixes that identify a project"
    )
    file_suffixes: tuple[str, ...] = Field(
        default=(), description="Filename suffixes that identify a project"
    )
    clean_dir_names: tuple[str, ...] = Field(
        default=(), description="Build/cache directories safe to delete"
    )

    def matches(self, file_names: set[str], dir_names: set[str]) -> bool:
        """Whether a directory with these immediate children belongs to this ecosystem."""
        if any(marker in file_names for marker in self.file_markers):
            return True
        if any(d.endswith(suffix) for suffix in self.dir_marker_suffixes for d in dir_names):
            return True
        return any(f.endswith(suffix) for suffix in self.file_suffixes for f in file_names)


class ScanTarget(BaseModel):
    """A root directory and how deep to walk it."""

    model_config = ConfigDict(frozen=True)

    root_path: Path = Field(..., description="Directory to start walking from")
    max_depth: int = Field(8, ge=1, description="Deepest level visited (root is depth 1)")


class CandidateEntry(BaseModel):
    """A file or directory emitted by a walk."""

    path: Path = Field(..., description="Absolute path of the entry")
    is_dir: bool = Field(False, description="Whether the entry is a directory")
    size_bytes: int = Field(0, description="Apparent size in bytes (files only)")
    source: str = Field("", description="Root the entry was discovered under")


class ApplicationRecord(BaseModel):
    """An installed, non-protected application bundle."""

    path: str = Field(..., description="Absolute path of the .app bundle")
    name: str = Field(..., description="Bundle name without the .app suffix")
    bundle_id: str = Field(UNKNOWN_BUNDLE_ID, description="CFBundleIdentifier")
    size_bytes: int = Field(0, description="Total size of the bundle")
    last_used: str = Field(
        LAST_USED_NEVER, description="Last used date (YYYY-MM-DD) or 'Never'/'Unknown'"
    )

    @property
    def size_kb(self) -> int:
        return self.size_bytes // 1024

    @property
    def size_human(self) -> str:
        """Size in the KB-based form of the app record line."""
        kb = self.size_kb
        if kb >= 1024**2:
            return f"{kb / 1024**2:.1f} GB"
        elif kb >= 1024:
            return f"{kb / 1024:.1f} MB"
        return f"{kb} KB"

    @property
    def requires_admin(self) -> bool:
        """Whether removing this bundle needs administrator privileges."""
        return self.path.startswith("/Applications") or self.path.startswith("/Library")

    def to_record_line(self, epoch: int) -> str:
        """Pipe-delimited line: epoch|path|name|bundle_id|size|last_used|size_kb."""
        return "|".join(
            [
                str(epoch),
                self.path,
                self.name,
                self.bundle_id,
                self.size_human,
                self.last_used,
                str(self.size_kb),
            ]
        )


class InstallerRecord(BaseModel):
    """A leftover installer file."""

    path: str = Field(..., description="Absolute path of the installer")
    size_bytes: int = Field(0, description="File size in bytes")
    source: str = Field(..., description="Where it was found (Downloads, Homebrew, ...)")
    display_name: str = Field(..., description="Filename shown to the user")

    @property
    def size_human(self) -> str:
        return format_size(self.size_bytes)


class CleanableDir(BaseModel):
    """A build or cache directory inside a project."""

    name: str = Field(..., description="Directory name (e.g. 'node_modules')")
    path: str = Field(..., description="Absolute path")
    size_bytes: int = Field(..., description="Total size in bytes")

    @property
    def size_human(self) -> str:
        return format_size(self.size_bytes)


class ProjectRecord(BaseModel):
    """A project directory with at least one non-empty cleanable directory."""

    name: str = Field(..., description="Project directory name")
    path: str = Field(..., description="Absolute project path")
    ecosystems: list[str] = Field(default_factory=list, description="Matched ecosystem ids")
    clean_dirs: list[CleanableDir] = Field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(d.size_bytes for d in self.clean_dirs)

    @property
    def size_human(self) -> str:
        return format_size(self.total_bytes)


class DeletionTarget(BaseModel):
    """One path the user confirmed for deletion."""

    path: str = Field(..., description="Absolute path to delete")
    label: str = Field(..., description="How the target is shown to the user")
    size_bytes: int = Field(0, description="Size measured by the last scan")


class DeletionResult(BaseModel):
    """Outcome of deleting a single target."""

    path: str = Field(..., description="Path that was deleted")
    bytes_freed: int = Field(0, description="Bytes freed (0 on failure)")
    success: bool = Field(True, description="Whether deletion succeeded")
    error: Optional[str] = Field(None, description="Error message if failed")
    dry_run: bool = Field(False, description="Whether this was a dry run")


class DeletionReport(BaseModel):
    """Summary of a batch deletion."""

    results: list[DeletionResult] = Field(default_factory=list)

    @property
    def deleted(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def bytes_freed(self) -> int:
        return sum(r.bytes_freed for r in self.results if r.success)


class DiskUsage(BaseModel):
    """Overall disk usage information."""

    total_bytes: int = Field(..., description="Total disk size in bytes")
    used_bytes: int = Field(..., description="Used space in bytes")
    free_bytes: int = Field(..., description="Free space in bytes")
    mount_point: str = Field("/", description="Mount point")

    @property
    def used_percent(self) -> float:
        """Percentage of disk used."""
        return (self.used_bytes / self.total_bytes) * 100 if self.total_bytes > 0 else 0
