"""Fan-out notification sink."""

from __future__ import annotations

from typing import Sequence

from driftwatch.core.protocols import Notification


class MultiNotification:
    """Calls each sink in order and stops at the first failure."""

    def __init__(self, notifications: Sequence[Notification]) -> None:
        self.notifications = list(notifications)

    async def temporary_error(self, directory: str, workspace: str, error: BaseException) -> None:
        for notification in self.notifications:
            await notification.temporary_error(directory, workspace, error)

    async def plan_drift(self, directory: str, workspace: str, summary: str) -> None:
        for notification in self.notifications:
            await notification.plan_drift(directory, workspace, summary)

    async def extra_workspace_in_remote(self, directory: str, workspace: str) -> None:
        for notification in self.notifications:
            await notification.extra_workspace_in_remote(directory, workspace)

    async def missing_workspace_in_remote(self, directory: str, workspace: str) -> None:
        for notification in self.notifications:
            await notification.missing_workspace_in_remote(directory, workspace)

    async def workspace_drift_summary(self, drifted: int, undrifted: int, total: int) -> None:
        for notification in self.notifications:
            await notification.workspace_drift_summary(drifted, undrifted, total)
