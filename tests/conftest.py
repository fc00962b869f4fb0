"""Pytest configuration and shared fakes for driftwatch tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Sequence

import pytest

from driftwatch.cache import MemoryResultCache
from driftwatch.core.context import DrifterContext
from driftwatch.core.directory_filter import DirectoryFilter
from driftwatch.core.models import PlanSummary, WorkspaceSet
from driftwatch.errors import NotificationError, TerraformError

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_collection_modifyitems(config, items):
    """Set per-marker timeouts: unit=1s, integration=5s."""
    for item in items:
        if "unit" in item.keywords:
            item.add_marker(pytest.mark.timeout(1))
        elif "integration" in item.keywords:
            item.add_marker(pytest.mark.timeout(5))


class FixedClock:
    """Clock whose time only moves when a test moves it."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FakePlanQuery:
    """PlanQuery returning canned results keyed by (directory, workspace).

    A result may be an exception instance, which is raised instead.
    """

    def __init__(self, results: dict[tuple[str, str], PlanSummary | Exception] | None = None) -> None:
        self.results = results or {}
        self.calls: list[tuple[str, str, str, str]] = []
        self.delay_s = 0.0

    async def plan_summary(self, repo: str, ref: str, directory: str, workspace: str) -> PlanSummary:
        self.calls.append((repo, ref, directory, workspace))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        result = self.results.get((directory, workspace), PlanSummary(locked=False, has_changes=False))
        if isinstance(result, Exception):
            raise result
        return result


class FakeTerraform:
    """TerraformOps with fixed remote workspace listings."""

    def __init__(self, remote: dict[str, list[str]] | None = None, fail_init: Sequence[str] = ()) -> None:
        self.remote = remote or {}
        self.fail_init = set(fail_init)
        self.init_calls: list[str] = []
        self.list_calls: list[str] = []

    async def init(self, directory: str) -> None:
        self.init_calls.append(directory)
        if directory in self.fail_init:
            raise TerraformError(f"init failed for {directory}", returncode=1)

    async def list_workspaces(self, directory: str) -> list[str]:
        self.list_calls.append(directory)
        return list(self.remote.get(directory, ["default"]))


class RecordingNotification:
    """Notification sink that records every call.

    ``fail_on`` names methods that raise ``NotificationError`` instead.
    """

    def __init__(self, fail_on: Sequence[str] = ()) -> None:
        self.events: list[tuple[object, ...]] = []
        self.fail_on = set(fail_on)

    def _record(self, name: str, *args: object) -> None:
        if name in self.fail_on:
            raise NotificationError(f"{name} delivery failed")
        self.events.append((name, *args))

    async def plan_drift(self, directory: str, workspace: str, summary: str) -> None:
        self._record("plan_drift", directory, workspace, summary)

    async def extra_workspace_in_remote(self, directory: str, workspace: str) -> None:
        self._record("extra_workspace_in_remote", directory, workspace)

    async def missing_workspace_in_remote(self, directory: str, workspace: str) -> None:
        self._record("missing_workspace_in_remote", directory, workspace)

    async def workspace_drift_summary(self, drifted: int, undrifted: int, total: int) -> None:
        self._record("workspace_drift_summary", drifted, undrifted, total)

    async def temporary_error(self, directory: str, workspace: str, error: BaseException) -> None:
        self._record("temporary_error", directory, workspace, str(error))

    def named(self, name: str) -> list[tuple[object, ...]]:
        return [event for event in self.events if event[0] == name]


class FakeCheckout:
    def __init__(self, path: Path) -> None:
        self.path = path
        self.checked_out: list[str] = []
        self.cleaned: list[Path] = []

    async def checkout(self, repo: str) -> Path:
        self.checked_out.append(repo)
        return self.path

    async def cleanup(self, path: Path) -> None:
        self.cleaned.append(path)


class StaticConfigParser:
    def __init__(self, workspaces: WorkspaceSet) -> None:
        self.workspaces = workspaces

    def parse(self, config_path: str, local_path: Path) -> WorkspaceSet:
        return self.workspaces


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def make_context(tmp_path: Path, clock: FixedClock):
    """Build a DrifterContext wired entirely to fakes."""

    def _make(
        workspaces: dict[str, list[str]],
        *,
        plan_query: FakePlanQuery | None = None,
        terraform: FakeTerraform | None = None,
        notification: RecordingNotification | None = None,
        cache: MemoryResultCache | None = None,
        parallel_runs: int = 1,
        allowlist: Sequence[str] = (),
        skip_workspace_check: bool = False,
        cache_valid_duration: timedelta = timedelta(hours=24),
    ) -> DrifterContext:
        tf = terraform or FakeTerraform()
        return DrifterContext(
            repo="acme/infra",
            checkout=FakeCheckout(tmp_path),
            config_parser=StaticConfigParser(WorkspaceSet(workspaces)),
            plan_query=plan_query or FakePlanQuery(),
            terraform_factory=lambda _root: tf,
            cache=cache or MemoryResultCache(),
            notification=notification or RecordingNotification(),
            cache_valid_duration=cache_valid_duration,
            parallel_runs=parallel_runs,
            directory_filter=DirectoryFilter(allowlist),
            skip_workspace_check=skip_workspace_check,
            clock=clock,
        )

    return _make
