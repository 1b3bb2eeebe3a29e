"""Optional TOML overrides for scan roots and depths."""

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from reclaim import rules

log = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RECLAIM_CONFIG"
DEFAULT_CONFIG_PATH = "~/.config/reclaim/config.toml"


class ApplicationsConfig(BaseModel):
    roots: list[str] = Field(default_factory=lambda: list(rules.APPLICATION_ROOTS))
    include_volumes: bool = Field(True, description="Also scan /Volumes/*/Applications")


class InstallersConfig(BaseModel):
    roots: list[str] = Field(default_factory=lambda: list(rules.INSTALLER_ROOTS))
    max_depth: int = Field(rules.INSTALLER_SCAN_MAX_DEPTH, ge=1)


class WorkspaceConfig(BaseModel):
    roots: list[str] = Field(default_factory=lambda: list(rules.WORKSPACE_ROOTS))
    max_depth: int = Field(rules.WORKSPACE_SCAN_MAX_DEPTH, ge=1)


class ScanConfig(BaseModel):
    max_workers: int = Field(4, ge=1, description="Threads used for size measurement")


class ReclaimConfig(BaseModel):
    """Effective configuration: rule-table defaults plus file overrides."""

    applications: ApplicationsConfig = Field(default_factory=ApplicationsConfig)
    installers: InstallersConfig = Field(default_factory=InstallersConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)


def config_path() -> Path:
    """Location of the config file ($RECLAIM_CONFIG wins)."""
    return Path(os.path.expanduser(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)))


def load_config(path: Path | None = None) -> ReclaimConfig:
    """
    Load configuration, falling back to defaults.

    A missing file is not an error. An unreadable or invalid file is logged
    and ignored as a whole.
    """
    path = path or config_path()
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except (FileNotFoundError, NotADirectoryError):
        return ReclaimConfig()
    except (OSError, tomllib.TOMLDecodeError) as e:
        log.warning("Ignoring config file %s: %s", path, e)
        return ReclaimConfig()

    try:
        config = ReclaimConfig.model_validate(data)
    except ValidationError as e:
        log.warning("Ignoring config file %s: %s", path, e)
        return ReclaimConfig()

    log.debug("Loaded config from %s", path)
    return config
