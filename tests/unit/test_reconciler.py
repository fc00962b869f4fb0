"""Unit tests for remote workspace reconciliation."""

from datetime import timedelta

import pytest

from driftwatch.cache import MemoryResultCache, MemoryStore
from driftwatch.core.cache_gate import CacheGate
from driftwatch.core.cancellation import CancellationToken
from driftwatch.core.directory_filter import DirectoryFilter
from driftwatch.core.models import WorkspaceCacheKey, WorkspaceCacheRecord
from driftwatch.core.reconciler import ReconcileOutcome, WorkspaceReconciler
from driftwatch.errors import CacheError, NotificationError, RunCancelled, TerraformError
from tests.conftest import FakeTerraform, FixedClock, RecordingNotification

pytestmark = pytest.mark.unit


class DeleteFailsStore(MemoryStore):
    async def delete(self, key):
        raise CacheError("disk I/O error")


class PutFailsStore(MemoryStore):
    async def put(self, key, record):
        raise CacheError("disk I/O error")


def _reconciler(clock: FixedClock, terraform: FakeTerraform, allowlist=(), fail_on=(), store=None):
    store = store if store is not None else MemoryResultCache().workspace_listings
    notification = RecordingNotification(fail_on=fail_on)
    reconciler = WorkspaceReconciler(
        terraform=terraform,
        gate=CacheGate(store, timedelta(hours=24), kind="workspaces", clock=clock),
        notification=notification,
        directory_filter=DirectoryFilter(allowlist),
    )
    return reconciler, store.records, notification


@pytest.mark.asyncio
async def test_reports_only_undeclared_non_default_workspaces(clock: FixedClock):
    terraform = FakeTerraform({"infra/app": ["default", "a", "b", "c"]})
    reconciler, records, notification = _reconciler(clock, terraform)

    outcome = await reconciler.reconcile("infra/app", ["a", "b"], CancellationToken())

    assert outcome is ReconcileOutcome.RECONCILED
    assert notification.events == [("extra_workspace_in_remote", "infra/app", "c")]
    assert terraform.init_calls == ["infra/app"]
    assert records[WorkspaceCacheKey("infra/app")] == WorkspaceCacheRecord(
        observed_at=clock.now, remote_workspaces=("default", "a", "b", "c")
    )


@pytest.mark.asyncio
async def test_default_is_expected_even_when_undeclared(clock: FixedClock):
    terraform = FakeTerraform({"infra/app": ["default", "prod"]})
    reconciler, records, notification = _reconciler(clock, terraform)

    await reconciler.reconcile("infra/app", ["prod"], CancellationToken())

    assert notification.events == []
    assert WorkspaceCacheKey("infra/app") in records


@pytest.mark.asyncio
async def test_extras_are_reported_in_listing_order(clock: FixedClock):
    terraform = FakeTerraform({"infra/app": ["zeta", "default", "alpha"]})
    reconciler, _records, notification = _reconciler(clock, terraform)

    await reconciler.reconcile("infra/app", [], CancellationToken())

    assert notification.events == [
        ("extra_workspace_in_remote", "infra/app", "zeta"),
        ("extra_workspace_in_remote", "infra/app", "alpha"),
    ]


@pytest.mark.asyncio
async def test_declared_workspaces_missing_remotely_are_not_reported(clock: FixedClock):
    terraform = FakeTerraform({"infra/app": ["default", "a"]})
    reconciler, _records, notification = _reconciler(clock, terraform)

    await reconciler.reconcile("infra/app", ["a", "b"], CancellationToken())

    assert notification.events == []


@pytest.mark.asyncio
async def test_fresh_listing_skips_terraform(clock: FixedClock):
    terraform = FakeTerraform({"infra/app": ["default", "c"]})
    reconciler, records, notification = _reconciler(clock, terraform)
    records[WorkspaceCacheKey("infra/app")] = WorkspaceCacheRecord(observed_at=clock.now - timedelta(hours=2))

    outcome = await reconciler.reconcile("infra/app", [], CancellationToken())

    assert outcome is ReconcileOutcome.CACHED
    assert terraform.init_calls == []
    assert notification.events == []


@pytest.mark.asyncio
async def test_init_failure_is_fatal_and_leaves_no_record(clock: FixedClock):
    terraform = FakeTerraform(fail_init=["infra/app"])
    reconciler, records, _notification = _reconciler(clock, terraform)

    with pytest.raises(TerraformError, match="failed to init workspace infra/app") as exc_info:
        await reconciler.reconcile("infra/app", [], CancellationToken())

    assert exc_info.value.returncode == 1
    assert terraform.list_calls == []
    assert records == {}


@pytest.mark.asyncio
async def test_notification_failure_is_fatal(clock: FixedClock):
    terraform = FakeTerraform({"infra/app": ["default", "orphan"]})
    reconciler, records, _notification = _reconciler(clock, terraform, fail_on=["extra_workspace_in_remote"])

    with pytest.raises(NotificationError, match="extra workspace orphan"):
        await reconciler.reconcile("infra/app", [], CancellationToken())

    assert records == {}


@pytest.mark.asyncio
async def test_filtered_directory_is_skipped(clock: FixedClock):
    terraform = FakeTerraform()
    reconciler, records, _notification = _reconciler(clock, terraform, allowlist=["prod"])

    outcome = await reconciler.reconcile("infra/app", [], CancellationToken())

    assert outcome is ReconcileOutcome.FILTERED
    assert terraform.init_calls == []
    assert records == {}


@pytest.mark.asyncio
async def test_cancelled_token_stops_before_init(clock: FixedClock):
    terraform = FakeTerraform()
    reconciler, _records, _notification = _reconciler(clock, terraform)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(RunCancelled):
        await reconciler.work_for("infra/app", [])(token)

    assert terraform.init_calls == []


@pytest.mark.asyncio
async def test_stale_listing_that_cannot_be_deleted_is_fatal(clock: FixedClock):
    terraform = FakeTerraform({"infra/app": ["default"]})
    store = DeleteFailsStore()
    reconciler, records, _notification = _reconciler(clock, terraform, store=store)
    records[WorkspaceCacheKey("infra/app")] = WorkspaceCacheRecord(observed_at=clock.now - timedelta(days=2))

    with pytest.raises(CacheError, match="failed to read or evict cache value for infra/app"):
        await reconciler.reconcile("infra/app", [], CancellationToken())

    assert terraform.init_calls == []
    assert terraform.list_calls == []


@pytest.mark.asyncio
async def test_store_failure_after_listing_is_fatal(clock: FixedClock):
    terraform = FakeTerraform({"infra/app": ["default", "prod"]})
    reconciler, records, notification = _reconciler(clock, terraform, store=PutFailsStore())

    with pytest.raises(CacheError, match="failed to store cache value for infra/app"):
        await reconciler.reconcile("infra/app", ["prod"], CancellationToken())

    assert terraform.list_calls == ["infra/app"]
    assert records == {}
    assert notification.events == []
