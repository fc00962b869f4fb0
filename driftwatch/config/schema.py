from datetime import timedelta
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from driftwatch.constants import (
    DEFAULT_CACHE_VALID_DURATION,
    DEFAULT_REF,
    DEFAULT_REPO_CONFIG_FILE,
    DEFAULT_SQLITE_CACHE_PATH,
    DEFAULT_WORKSPACE,
    TELEGRAM_TOKEN_ENV,
)
from driftwatch.utils import parse_duration, split_csv


def _duration(v: Any) -> Any:
    if isinstance(v, str):
        return parse_duration(v)
    if isinstance(v, (int, float)):
        return timedelta(seconds=v)
    return v


class Settings(BaseModel):
    """Run-level settings for one drift audit."""

    model_config = ConfigDict(extra="forbid")

    repo: str
    ref: str = DEFAULT_REF
    repo_config_file: str = DEFAULT_REPO_CONFIG_FILE
    atlantis_url: str
    atlantis_token: str = ""
    github_token: Optional[str] = None
    cache_valid_duration: timedelta = Field(default_factory=lambda: parse_duration(DEFAULT_CACHE_VALID_DURATION))
    parallel_runs: int = Field(default=1, ge=1)
    directory_allowlist: List[str] = []
    skip_workspace_check: bool = False
    auto_generate_config: bool = False
    cache_backend: Literal["sqlite", "memory"] = "sqlite"
    cache_path: str = DEFAULT_SQLITE_CACHE_PATH
    terraform_binary: str = "terraform"
    slack_webhook_url: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    telegram_token_env: str = TELEGRAM_TOKEN_ENV
    log_level: Optional[str] = None

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        """Repositories are addressed as owner/name."""
        if v.count("/") != 1 or v.startswith("/") or v.endswith("/"):
            raise ValueError(f"Invalid repo: {v}. Expected owner/name")
        return v

    @field_validator("cache_valid_duration", mode="before")
    @classmethod
    def parse_cache_valid_duration(cls, v: Any) -> Any:
        return _duration(v)

    @field_validator("directory_allowlist", mode="before")
    @classmethod
    def parse_allowlist(cls, v: Any) -> Any:
        if isinstance(v, str):
            return split_csv(v)
        return v

    @field_validator("atlantis_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class AtlantisAutoplan(BaseModel):
    model_config = ConfigDict(extra="allow")
    when_modified: List[str] = []
    enabled: bool = True


class AtlantisProject(BaseModel):
    model_config = ConfigDict(extra="allow")
    name: Optional[str] = None
    dir: str
    workspace: str = DEFAULT_WORKSPACE
    autoplan: Optional[AtlantisAutoplan] = None


class AtlantisRepoConfig(BaseModel):
    """Subset of ``atlantis.yaml`` the auditor reads and writes."""

    model_config = ConfigDict(extra="allow")
    version: int = 3
    parallel_plan: Optional[bool] = None
    projects: List[AtlantisProject] = []

    @field_validator("projects", mode="before")
    @classmethod
    def null_projects(cls, v: Any) -> Any:
        return [] if v is None else v

    def to_yaml_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
