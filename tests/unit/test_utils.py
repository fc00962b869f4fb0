"""Unit tests for driftwatch.utils and the data models."""

from datetime import datetime, timedelta, timezone

import pytest

from driftwatch.core.models import (
    DriftCacheKey,
    DriftCacheRecord,
    RunReport,
    WorkItem,
    WorkspaceCacheRecord,
    WorkspaceSet,
)
from driftwatch.errors import PlanQueryError, TemporaryPlanError, TerraformError, is_temporary
from driftwatch.utils import expand_env_vars, parse_duration, redact, split_csv

pytestmark = pytest.mark.unit


def test_expand_env_vars_nested(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DW_TEST_TOKEN", "abc")
    monkeypatch.delenv("DW_TEST_UNSET", raising=False)

    result = expand_env_vars({"a": "${DW_TEST_TOKEN}", "b": ["x-${DW_TEST_TOKEN}", 3], "c": "${DW_TEST_UNSET}"})

    assert result == {"a": "abc", "b": ["x-abc", 3], "c": "${DW_TEST_UNSET}"}


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("90s", timedelta(seconds=90)),
        ("30m", timedelta(minutes=30)),
        ("24h", timedelta(hours=24)),
        (" 7d ", timedelta(days=7)),
    ],
)
def test_parse_duration(raw: str, expected: timedelta):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "h", "1.5h", "10", "1w", "-1h"])
def test_parse_duration_invalid(raw: str):
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_split_csv():
    assert split_csv(" a, b ,,c ") == ["a", "b", "c"]
    assert split_csv("") == []


def test_redact():
    assert redact("token abc in abc", "abc") == "token *** in ***"
    assert redact("unchanged", None) == "unchanged"


def test_is_temporary():
    assert is_temporary(TemporaryPlanError("timeout"))
    assert not is_temporary(PlanQueryError("bad request"))
    assert not is_temporary(TerraformError("init failed"))


def test_workspace_set_orders_work_items():
    workspaces = WorkspaceSet({"infra/network": ["prod"], "infra/db": ["prod", "dr"]})

    assert workspaces.work_items() == [
        WorkItem("infra/db", ("prod", "dr")),
        WorkItem("infra/network", ("prod",)),
    ]
    assert workspaces.total_workspaces() == 3
    assert workspaces.total_workspaces(lambda d: d == "infra/db") == 1


def test_cache_record_age_and_serialization():
    observed = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    record = DriftCacheRecord(observed_at=observed, drifted=True)

    assert record.age(observed + timedelta(minutes=5)) == 300
    assert DriftCacheRecord.from_dict(record.to_dict()) == record
    # naive timestamps are treated as UTC
    assert WorkspaceCacheRecord(observed_at=observed.replace(tzinfo=None)).age(observed) == 0


def test_cache_key_str():
    assert str(DriftCacheKey("infra/db", "prod")) == "infra/db#prod"


def test_run_report_undrifted():
    assert RunReport(total_workspaces=5, drifted_workspaces=2).undrifted_workspaces == 3
