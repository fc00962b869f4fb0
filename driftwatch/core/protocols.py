"""Protocol definitions for the collaborators the drift engine depends on.

The engine only ever sees these capabilities; concrete bindings (Atlantis over
HTTP, the terraform CLI, sqlite, Slack) live in their own modules and tests
substitute in-memory fakes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, TypeVar, runtime_checkable

from driftwatch.core.models import (
    DriftCacheKey,
    DriftCacheRecord,
    PlanSummary,
    WorkspaceCacheKey,
    WorkspaceCacheRecord,
    WorkspaceSet,
)

K = TypeVar("K", contravariant=True)
R = TypeVar("R")


@runtime_checkable
class Checkout(Protocol):
    """Obtains a local working copy of the infrastructure repository."""

    async def checkout(self, repo: str) -> Path:
        """Clone ``repo`` and return the local path.

        Raises:
            CheckoutError: If the repository cannot be cloned
        """
        ...

    async def cleanup(self, path: Path) -> None:
        """Remove a working copy created by :meth:`checkout`."""
        ...


@runtime_checkable
class ConfigParser(Protocol):
    """Turns the repo project configuration into the workspace set."""

    def parse(self, config_path: str, local_path: Path) -> WorkspaceSet:
        """Parse ``config_path`` relative to ``local_path``.

        Raises:
            ConfigError: If the file is missing or invalid
        """
        ...


@runtime_checkable
class PlanQuery(Protocol):
    """Asks the plan backend whether a workspace has pending changes."""

    async def plan_summary(self, repo: str, ref: str, directory: str, workspace: str) -> PlanSummary:
        """Plan ``directory``/``workspace`` of ``repo`` at ``ref``.

        Raises:
            TemporaryPlanError: If the failure is transient (retry next run)
            PlanQueryError: For any other failure
        """
        ...


@runtime_checkable
class TerraformOps(Protocol):
    """Local terraform operations on a checked-out directory."""

    async def init(self, directory: str) -> None:
        """Initialise the backend for ``directory``.

        Raises:
            TerraformError: If ``terraform init`` fails
        """
        ...

    async def list_workspaces(self, directory: str) -> list[str]:
        """List the workspaces known to the remote backend, in CLI order.

        Raises:
            TerraformError: If ``terraform workspace list`` fails
        """
        ...


class KeyedStore(Protocol[K, R]):
    """Async get/put/delete over one record shape.

    Every method raises ``CacheError`` when the backing store fails.
    """

    async def get(self, key: K) -> R | None: ...

    async def put(self, key: K, record: R) -> None: ...

    async def delete(self, key: K) -> None: ...


@runtime_checkable
class ResultCache(Protocol):
    """Backing store for both idempotency record kinds."""

    @property
    def drift_checks(self) -> KeyedStore[DriftCacheKey, DriftCacheRecord]: ...

    @property
    def workspace_listings(self) -> KeyedStore[WorkspaceCacheKey, WorkspaceCacheRecord]: ...


@runtime_checkable
class Notification(Protocol):
    """Sink for audit findings.

    Every method raises ``NotificationError`` when delivery fails; the engine
    treats that as fatal.
    """

    async def plan_drift(self, directory: str, workspace: str, summary: str) -> None: ...

    async def extra_workspace_in_remote(self, directory: str, workspace: str) -> None: ...

    async def missing_workspace_in_remote(self, directory: str, workspace: str) -> None: ...

    async def workspace_drift_summary(self, drifted: int, undrifted: int, total: int) -> None: ...

    async def temporary_error(self, directory: str, workspace: str, error: BaseException) -> None:
        """Report an error that could not be classified as drift or success."""
        ...
