import os
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from driftwatch.config.schema import Settings
from driftwatch.constants import CONFIG_PATH_ENV, ENV_PREFIX
from driftwatch.errors import ConfigError
from driftwatch.utils import expand_env_vars

logger = structlog.get_logger(__name__)


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read a settings file; a missing file yields an empty mapping."""
    if not path.exists():
        logger.warning("Config file not found, using environment only", path=str(path))
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")
    expanded = expand_env_vars(raw)
    assert isinstance(expanded, dict)
    return expanded


def _env_overrides(environ: Mapping[str, str]) -> dict[str, str]:
    """Collect ``DRIFTWATCH_<FIELD>`` variables for known settings fields."""
    overrides: dict[str, str] = {}
    for field_name in Settings.model_fields:
        value = environ.get(f"{ENV_PREFIX}{field_name.upper()}")
        if value is not None and value != "":
            overrides[field_name] = value
    return overrides


def load_settings(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Load and validate run settings.

    Values come from an optional YAML file (``${VAR}`` references expanded)
    overlaid with ``DRIFTWATCH_*`` environment variables. A ``.env`` file in
    the working directory is loaded first when reading the real environment.

    Args:
        path: Settings file; defaults to ``$DRIFTWATCH_CONFIG_PATH`` if set.
        environ: Environment mapping, for tests. Defaults to ``os.environ``.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If the file cannot be read or validation fails.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    if path is None and environ.get(CONFIG_PATH_ENV):
        path = Path(environ[CONFIG_PATH_ENV]).expanduser()

    data: dict[str, Any] = _read_yaml(path) if path is not None else {}
    data.update(_env_overrides(environ))

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e
