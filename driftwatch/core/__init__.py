"""driftwatch core - concurrent drift orchestration engine."""

from driftwatch.core.cancellation import CancellationToken
from driftwatch.core.context import DrifterContext
from driftwatch.core.directory_filter import DirectoryFilter
from driftwatch.core.drifter import Drifter
from driftwatch.core.models import PlanSummary, RunReport, WorkspaceSet
from driftwatch.core.scheduler import WorkerPool

__all__ = [
    "CancellationToken",
    "DirectoryFilter",
    "Drifter",
    "DrifterContext",
    "PlanSummary",
    "RunReport",
    "WorkerPool",
    "WorkspaceSet",
]
