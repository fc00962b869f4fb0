"""Read ``atlantis.yaml`` into the directory -> workspaces set."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import structlog
import yaml
from pydantic import ValidationError

from driftwatch.config.schema import AtlantisRepoConfig
from driftwatch.core.models import WorkspaceSet
from driftwatch.errors import ConfigError

logger = structlog.get_logger(__name__)


def normalize_dir(directory: str) -> str:
    """Normalise a project dir: ``./a/b/`` -> ``a/b``, ``""`` -> ``.``."""
    normalized = str(PurePosixPath(directory.strip() or "."))
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized or "."


def load_repo_config(config_path: str, local_path: Path) -> AtlantisRepoConfig:
    """Load and validate ``local_path/config_path``.

    Raises:
        ConfigError: If the file is missing, not YAML or not a repo config
    """
    path = local_path / config_path
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"repo config not found: {path}") from e
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"failed to read repo config {path}: {e}") from e

    try:
        return AtlantisRepoConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid repo config {path}: {e}") from e


def config_to_workspaces(config: AtlantisRepoConfig) -> WorkspaceSet:
    """Group project workspaces by directory.

    Workspace order follows first appearance in the file; duplicates are
    dropped.
    """
    entries: dict[str, list[str]] = {}
    for project in config.projects:
        directory = normalize_dir(project.dir)
        workspaces = entries.setdefault(directory, [])
        if project.workspace not in workspaces:
            workspaces.append(project.workspace)
    return WorkspaceSet(entries)


class AtlantisConfigParser:
    """ConfigParser reading Atlantis repo-level configuration."""

    def parse(self, config_path: str, local_path: Path) -> WorkspaceSet:
        config = load_repo_config(config_path, local_path)
        workspaces = config_to_workspaces(config)
        logger.info(
            "Finished parsing repo config from directory.",
            projects=len(config.projects),
            directories=len(workspaces),
        )
        return workspaces
