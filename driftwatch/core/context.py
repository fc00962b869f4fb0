"""Explicit dependency bundle handed to the drift engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Callable

from driftwatch.constants import DEFAULT_REF, DEFAULT_REPO_CONFIG_FILE
from driftwatch.core.directory_filter import DirectoryFilter
from driftwatch.core.models import Clock, utc_now
from driftwatch.core.protocols import Checkout, ConfigParser, Notification, PlanQuery, ResultCache, TerraformOps

TerraformFactory = Callable[[Path], TerraformOps]
ConfigGenerator = Callable[[Path, str], Path]


@dataclass
class DrifterContext:
    """Everything one run needs, constructed once by the caller.

    ``terraform_factory`` receives the checkout path, since terraform runs
    inside the working copy that only exists after checkout.
    """

    repo: str
    checkout: Checkout
    config_parser: ConfigParser
    plan_query: PlanQuery
    terraform_factory: TerraformFactory
    cache: ResultCache
    notification: Notification
    cache_valid_duration: timedelta = timedelta(hours=24)
    ref: str = DEFAULT_REF
    repo_config_file: str = DEFAULT_REPO_CONFIG_FILE
    parallel_runs: int = 1
    directory_filter: DirectoryFilter = field(default_factory=DirectoryFilter)
    skip_workspace_check: bool = False
    auto_generate_config: bool = False
    config_generator: ConfigGenerator | None = None
    clock: Clock = utc_now
