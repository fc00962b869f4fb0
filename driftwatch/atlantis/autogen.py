"""Generate ``atlantis.yaml`` from the root modules found in a checkout.

A root module is any directory holding a ``.tf`` file that declares a remote
state backend (s3, gcs or azurerm).
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog
import yaml

from driftwatch.config.schema import AtlantisAutoplan, AtlantisProject, AtlantisRepoConfig
from driftwatch.constants import AUTOGEN_BACKENDS, AUTOGEN_WHEN_MODIFIED
from driftwatch.errors import ConfigError

logger = structlog.get_logger(__name__)

BACKEND_PATTERN = re.compile(r'backend\s+"(?:%s)"' % "|".join(AUTOGEN_BACKENDS))


def find_tf_files(root: Path) -> list[Path]:
    return sorted(path for path in root.rglob("*.tf") if path.is_file() and ".terraform" not in path.parts)


def find_root_modules(root: Path, files: list[Path], pattern: re.Pattern[str] = BACKEND_PATTERN) -> list[str]:
    """Return sorted directories (relative to ``root``) whose files match ``pattern``."""
    directories: set[str] = set()
    for file in files:
        try:
            content = file.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ConfigError(f"error reading tf file {file}: {e}") from e
        if pattern.search(content):
            directories.add(file.parent.relative_to(root).as_posix())
    return sorted(directories)


def build_repo_config(directories: list[str]) -> AtlantisRepoConfig:
    return AtlantisRepoConfig(
        version=3,
        parallel_plan=True,
        projects=[
            AtlantisProject(
                name=directory,
                dir=directory,
                autoplan=AtlantisAutoplan(when_modified=list(AUTOGEN_WHEN_MODIFIED)),
            )
            for directory in directories
        ],
    )


def generate_repo_config(local_path: Path, config_path: str) -> Path:
    """Scan ``local_path`` and write the generated config to ``config_path``.

    Returns:
        Path of the written file

    Raises:
        ConfigError: If a file cannot be read or the config cannot be written
    """
    directories = find_root_modules(local_path, find_tf_files(local_path))
    config = build_repo_config(directories)
    content = yaml.safe_dump(config.to_yaml_dict(), sort_keys=False)
    logger.info("atlantis YAML generated successfully.", projects=len(directories))
    logger.debug("yaml content", atlantis_yml=content)

    target = local_path / config_path
    try:
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"error writing Atlantis yaml config file: {e}") from e
    return target
