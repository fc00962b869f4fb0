"""Remote workspace reconciliation.

Lists the workspaces the terraform backend knows for a directory and reports
every one that is neither declared in the project configuration nor the
built-in ``default`` workspace. Declared workspaces that are missing from the
remote are not reported by this pass.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

import structlog

from driftwatch.constants import DEFAULT_WORKSPACE
from driftwatch.core.cache_gate import CacheGate
from driftwatch.core.cancellation import CancellationToken
from driftwatch.core.directory_filter import DirectoryFilter
from driftwatch.core.models import WorkspaceCacheKey, WorkspaceCacheRecord
from driftwatch.core.protocols import Notification, TerraformOps
from driftwatch.core.scheduler import WorkFunc
from driftwatch.errors import CacheError, NotificationError, TerraformError

logger = structlog.get_logger(__name__)


class ReconcileOutcome(Enum):
    FILTERED = "filtered"
    CACHED = "cached"
    RECONCILED = "reconciled"


class WorkspaceReconciler:
    """Runs the reconciliation state machine for one directory at a time."""

    def __init__(
        self,
        *,
        terraform: TerraformOps,
        gate: CacheGate[WorkspaceCacheKey, WorkspaceCacheRecord],
        notification: Notification,
        directory_filter: DirectoryFilter,
    ) -> None:
        self.terraform = terraform
        self.gate = gate
        self.notification = notification
        self.directory_filter = directory_filter

    def work_for(self, directory: str, declared: Sequence[str]) -> WorkFunc:
        async def run(token: CancellationToken) -> None:
            await self.reconcile(directory, declared, token)

        return run

    async def reconcile(
        self,
        directory: str,
        declared: Sequence[str],
        token: CancellationToken,
    ) -> ReconcileOutcome:
        if self.directory_filter.should_skip(directory):
            logger.info("Skipping directory", dir=directory)
            return ReconcileOutcome.FILTERED

        key = WorkspaceCacheKey(directory=directory)
        try:
            proceed = await self.gate.should_run(key)
        except CacheError as exc:
            raise CacheError(f"failed to read or evict cache value for {directory}: {exc}") from exc
        if not proceed:
            logger.info("Skipping directory, in cache", dir=directory)
            return ReconcileOutcome.CACHED

        logger.info("Checking for extra workspaces", dir=directory)
        token.raise_if_cancelled()
        try:
            await self.terraform.init(directory)
        except TerraformError as exc:
            raise TerraformError(
                f"failed to init workspace {directory}: {exc}", returncode=exc.returncode, stderr=exc.stderr
            ) from exc

        expected = set(declared) | {DEFAULT_WORKSPACE}
        token.raise_if_cancelled()
        try:
            remote = await self.terraform.list_workspaces(directory)
        except TerraformError as exc:
            raise TerraformError(
                f"failed to list workspaces in {directory}: {exc}", returncode=exc.returncode, stderr=exc.stderr
            ) from exc

        for workspace in remote:
            if workspace in expected:
                continue
            token.raise_if_cancelled()
            try:
                await self.notification.extra_workspace_in_remote(directory, workspace)
            except NotificationError as exc:
                raise NotificationError(
                    f"failed to notify of extra workspace {workspace} in {directory}: {exc}"
                ) from exc

        record = WorkspaceCacheRecord(observed_at=self.gate.now(), remote_workspaces=tuple(remote))
        try:
            await self.gate.store(key, record)
        except CacheError as exc:
            raise CacheError(f"failed to store cache value for {directory}: {exc}") from exc
        return ReconcileOutcome.RECONCILED
