"""Notification sink that only writes log records."""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class LogNotification:
    """Logs every finding; never fails."""

    async def temporary_error(self, directory: str, workspace: str, error: BaseException) -> None:
        logger.error("Unknown error in remote", dir=directory, workspace=workspace, error=str(error))

    async def plan_drift(self, directory: str, workspace: str, summary: str) -> None:
        logger.info("Plan has drifted", dir=directory, workspace=workspace, cliffnote=summary)

    async def extra_workspace_in_remote(self, directory: str, workspace: str) -> None:
        logger.info("Extra workspace in remote", dir=directory, workspace=workspace)

    async def missing_workspace_in_remote(self, directory: str, workspace: str) -> None:
        logger.info("Missing workspace in remote", dir=directory, workspace=workspace)

    async def workspace_drift_summary(self, drifted: int, undrifted: int, total: int) -> None:
        logger.info("Workspace drift summary", drifted=drifted, undrifted=undrifted, total=total)
