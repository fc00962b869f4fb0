"""One drift-detection run over an Atlantis-managed repository.

A run checks out the repository, resolves the declared directory/workspace
pairs, runs the drift pass and then the reconciliation pass through a
``WorkerPool`` each, and finally posts a summary notification. The checkout
is always removed afterwards.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from driftwatch.core.cache_gate import CacheGate
from driftwatch.core.cancellation import CancellationToken
from driftwatch.core.context import DrifterContext
from driftwatch.core.counter import DriftCounter
from driftwatch.core.drift_checker import DriftChecker
from driftwatch.core.models import RunReport, WorkspaceSet
from driftwatch.core.protocols import TerraformOps
from driftwatch.core.reconciler import WorkspaceReconciler
from driftwatch.core.scheduler import WorkerPool
from driftwatch.errors import ConfigError, NotificationError

logger = structlog.get_logger(__name__)


class Drifter:
    """Coordinates checkout, both audit passes and the summary."""

    def __init__(self, context: DrifterContext) -> None:
        self.context = context
        self.counter = DriftCounter()

    async def run(self, token: CancellationToken | None = None) -> RunReport:
        """Execute one complete run.

        Returns:
            Counters describing what the run saw

        Raises:
            DriftwatchError: On any fatal failure; the run is aborted
        """
        ctx = self.context
        token = token or CancellationToken()
        self.counter = DriftCounter()
        report = RunReport(started_at=ctx.clock())

        logger.info("Checking out Terraform repository.", repo=ctx.repo)
        local_path = await ctx.checkout.checkout(ctx.repo)
        logger.info("Repo location", location=str(local_path))
        try:
            await self._run_in_checkout(local_path, token, report)
        finally:
            await ctx.checkout.cleanup(local_path)

        report.finished_at = ctx.clock()
        return report

    async def _run_in_checkout(self, local_path: Path, token: CancellationToken, report: RunReport) -> None:
        ctx = self.context
        workspaces = await self.load_workspaces(local_path)
        report.directories = len(workspaces)
        report.total_workspaces = workspaces.total_workspaces(ctx.directory_filter.should_skip)

        logger.info("Finished parsing workspaces. Checking for drift.", directories=len(workspaces))
        await self.find_drifted_workspaces(workspaces, token)
        report.drifted_workspaces = self.counter.value
        logger.info("Total number of workspaces drifted", drifted_workspaces=report.drifted_workspaces)

        if ctx.skip_workspace_check:
            logger.info("Skipping check for extra workspaces")
        else:
            logger.info("Checking for extra workspaces.")
            await self.find_extra_workspaces(workspaces, ctx.terraform_factory(local_path), token)
            report.reconciled = True

        # a cancelled run must not report partial counts
        token.raise_if_cancelled()
        try:
            await ctx.notification.workspace_drift_summary(
                report.drifted_workspaces,
                report.undrifted_workspaces,
                report.total_workspaces,
            )
        except NotificationError as exc:
            raise NotificationError(f"failed to send drift summary: {exc}") from exc
        logger.info("Finished drift run", drifted=report.drifted_workspaces, total=report.total_workspaces)

    async def load_workspaces(self, local_path: Path) -> WorkspaceSet:
        """Optionally generate, then parse the repo project configuration."""
        ctx = self.context
        if ctx.auto_generate_config:
            if ctx.config_generator is None:
                raise ConfigError("auto-generation of config requested but no generator is configured")
            logger.info("Auto generation of config option enabled.")
            await asyncio.to_thread(ctx.config_generator, local_path, ctx.repo_config_file)

        logger.info("Parsing repo config from directory.", config=ctx.repo_config_file)
        workspaces = await asyncio.to_thread(ctx.config_parser.parse, ctx.repo_config_file, local_path)
        if not workspaces:
            logger.warning("No projects found in repo config.")
        return workspaces

    async def find_drifted_workspaces(self, workspaces: WorkspaceSet, token: CancellationToken) -> None:
        ctx = self.context
        checker = DriftChecker(
            repo=ctx.repo,
            ref=ctx.ref,
            plan_query=ctx.plan_query,
            gate=CacheGate(ctx.cache.drift_checks, ctx.cache_valid_duration, kind="drift", clock=ctx.clock),
            notification=ctx.notification,
            counter=self.counter,
            directory_filter=ctx.directory_filter,
        )
        items = [checker.work_for(item.directory, item.workspaces) for item in workspaces.work_items()]
        await WorkerPool(ctx.parallel_runs, name="drift").run(items, token)

    async def find_extra_workspaces(
        self,
        workspaces: WorkspaceSet,
        terraform: TerraformOps,
        token: CancellationToken,
    ) -> None:
        ctx = self.context
        reconciler = WorkspaceReconciler(
            terraform=terraform,
            gate=CacheGate(ctx.cache.workspace_listings, ctx.cache_valid_duration, kind="workspaces", clock=ctx.clock),
            notification=ctx.notification,
            directory_filter=ctx.directory_filter,
        )
        items = [reconciler.work_for(item.directory, item.workspaces) for item in workspaces.work_items()]
        await WorkerPool(ctx.parallel_runs, name="workspaces").run(items, token)
