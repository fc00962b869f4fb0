"""Per-workspace drift check.

For each declared workspace of a directory, in order:

1. consult the drift cache (fresh record -> skip, stale -> evict);
2. ask the plan backend for a summary of the tracked ref;
3. store the result, then notify if the workspace drifted and is not locked.

A temporary plan error only skips the workspace at hand. Every other failure
propagates and aborts the run.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

import structlog

from driftwatch.core.cache_gate import CacheGate
from driftwatch.core.cancellation import CancellationToken
from driftwatch.core.counter import DriftCounter
from driftwatch.core.directory_filter import DirectoryFilter
from driftwatch.core.models import DriftCacheKey, DriftCacheRecord
from driftwatch.core.protocols import Notification, PlanQuery
from driftwatch.core.scheduler import WorkFunc
from driftwatch.errors import CacheError, NotificationError, PlanQueryError, is_temporary

logger = structlog.get_logger(__name__)


class DriftOutcome(Enum):
    """Terminal state of one workspace check."""

    FILTERED = "filtered"
    CACHED = "cached"
    TEMPORARY_ERROR = "temporary_error"
    LOCKED = "locked"
    DRIFTED = "drifted"
    CLEAN = "clean"


class DriftChecker:
    """Runs the drift state machine for the workspaces of one directory."""

    def __init__(
        self,
        *,
        repo: str,
        ref: str,
        plan_query: PlanQuery,
        gate: CacheGate[DriftCacheKey, DriftCacheRecord],
        notification: Notification,
        counter: DriftCounter,
        directory_filter: DirectoryFilter,
    ) -> None:
        self.repo = repo
        self.ref = ref
        self.plan_query = plan_query
        self.gate = gate
        self.notification = notification
        self.counter = counter
        self.directory_filter = directory_filter

    def work_for(self, directory: str, workspaces: Sequence[str]) -> WorkFunc:
        """Bind one directory into a scheduler work function."""

        async def run(token: CancellationToken) -> None:
            await self.check_directory(directory, workspaces, token)

        return run

    async def check_directory(
        self,
        directory: str,
        workspaces: Sequence[str],
        token: CancellationToken,
    ) -> list[DriftOutcome]:
        if self.directory_filter.should_skip(directory):
            logger.info("Skipping directory", dir=directory)
            return [DriftOutcome.FILTERED for _ in workspaces]

        logger.info("Checking for drifted workspaces", dir=directory)
        outcomes: list[DriftOutcome] = []
        for workspace in workspaces:
            token.raise_if_cancelled()
            outcomes.append(await self.check_workspace(directory, workspace, token))
        return outcomes

    async def check_workspace(self, directory: str, workspace: str, token: CancellationToken) -> DriftOutcome:
        key = DriftCacheKey(directory=directory, workspace=workspace)

        try:
            proceed = await self.gate.should_run(key)
        except CacheError as exc:
            raise CacheError(f"failed to read or evict cache value for {directory}/{workspace}: {exc}") from exc
        if not proceed:
            logger.info("Skipping workspace, already checked", dir=directory, workspace=workspace)
            return DriftOutcome.CACHED

        token.raise_if_cancelled()
        try:
            result = await self.plan_query.plan_summary(self.repo, self.ref, directory, workspace)
        except PlanQueryError as exc:
            if is_temporary(exc):
                logger.warning(
                    "Temporary error.  Will try again later.",
                    dir=directory,
                    workspace=workspace,
                    error=str(exc),
                )
                return DriftOutcome.TEMPORARY_ERROR
            raise PlanQueryError(
                f"failed to get plan summary for ({directory}#{workspace}): {exc}",
                status_code=exc.status_code,
            ) from exc

        record = DriftCacheRecord(observed_at=self.gate.now(), drifted=result.has_changes)
        try:
            await self.gate.store(key, record)
        except CacheError as exc:
            raise CacheError(f"failed to store cache value for {directory}/{workspace}: {exc}") from exc

        if result.locked:
            logger.info("Plan is locked, skipping drift check", dir=directory, workspace=workspace)
            return DriftOutcome.LOCKED

        if not result.has_changes:
            logger.debug("No drift", dir=directory, workspace=workspace)
            return DriftOutcome.CLEAN

        drifted = self.counter.increment()
        logger.info("Workspace drifted", dir=directory, workspace=workspace, drifted_so_far=drifted)
        try:
            await self.notification.plan_drift(directory, workspace, result.summary_text)
        except NotificationError as exc:
            raise NotificationError(f"failed to notify of plan drift in {directory}: {exc}") from exc
        return DriftOutcome.DRIFTED
