"""Atlantis integration: plan API client and repo-level configuration."""

from driftwatch.atlantis.autogen import generate_repo_config
from driftwatch.atlantis.client import AtlantisClient
from driftwatch.atlantis.repo_config import AtlantisConfigParser

__all__ = ["AtlantisClient", "AtlantisConfigParser", "generate_repo_config"]
