"""Run settings and repo project configuration models."""

from driftwatch.config.loader import load_settings
from driftwatch.config.schema import AtlantisProject, AtlantisRepoConfig, Settings

__all__ = ["AtlantisProject", "AtlantisRepoConfig", "Settings", "load_settings"]
