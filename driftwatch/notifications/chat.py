"""Base for sinks that deliver findings as chat messages."""

from __future__ import annotations

from abc import ABC, abstractmethod

from driftwatch.notifications import messages


class ChatNotification(ABC):
    """Formats every finding as text and hands it to :meth:`send`."""

    @abstractmethod
    async def send(self, text: str) -> None:
        """Deliver one message.

        Raises:
            NotificationError: If delivery fails
        """
        ...

    async def temporary_error(self, directory: str, workspace: str, error: BaseException) -> None:
        await self.send(messages.temporary_error(directory, workspace, error))

    async def plan_drift(self, directory: str, workspace: str, summary: str) -> None:
        await self.send(messages.plan_drift(directory, workspace, summary))

    async def extra_workspace_in_remote(self, directory: str, workspace: str) -> None:
        await self.send(messages.extra_workspace_in_remote(directory, workspace))

    async def missing_workspace_in_remote(self, directory: str, workspace: str) -> None:
        await self.send(messages.missing_workspace_in_remote(directory, workspace))

    async def workspace_drift_summary(self, drifted: int, undrifted: int, total: int) -> None:
        await self.send(messages.workspace_drift_summary(drifted, undrifted, total))
