"""Unit tests for the Atlantis plan client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from driftwatch.atlantis.client import AtlantisClient, classify_result, summarize_output
from driftwatch.errors import PlanQueryError, TemporaryPlanError

pytestmark = pytest.mark.unit

PLAN_URL = "https://atlantis.example.com/api/plan"

CHANGED_OUTPUT = """
Terraform will perform the following actions:

  # aws_s3_bucket.logs will be updated in-place
  ~ resource "aws_s3_bucket" "logs" {
    }

Plan: 0 to add, 1 to change, 0 to destroy.
"""


def _plan_payload(output: str = "", failure: str = "") -> dict:
    project: dict = {"Repo": "acme/infra", "Workspace": "prod"}
    if failure:
        project["Failure"] = failure
    else:
        project["PlanSuccess"] = {"TerraformOutput": output}
    return {"Error": None, "Failure": "", "ProjectResults": [project]}


def _response(status: int = 200, json: object | None = None, text: str | None = None) -> httpx.Response:
    request = httpx.Request("POST", PLAN_URL)
    if json is not None:
        return httpx.Response(status, json=json, request=request)
    return httpx.Response(status, text=text or "", request=request)


def _mock_client(response: httpx.Response | None = None, error: Exception | None = None) -> MagicMock:
    """Create a mock that works as async context manager returning a client with post()."""
    client = AsyncMock()
    if error is not None:
        client.post = AsyncMock(side_effect=error)
    else:
        client.post = AsyncMock(return_value=response)
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=client)
    ctx.__aexit__ = AsyncMock(return_value=False)
    ctx.client = client
    return ctx


async def _query(mock: MagicMock):
    client = AtlantisClient("https://atlantis.example.com/", "s3cret")
    with patch("driftwatch.atlantis.client.httpx.AsyncClient", return_value=mock):
        return await client.plan_summary("acme/infra", "main", "infra/db", "prod")


def test_summarize_output_prefers_plan_line():
    assert summarize_output(CHANGED_OUTPUT) == "Plan: 0 to add, 1 to change, 0 to destroy."


def test_summarize_output_output_only_changes():
    assert summarize_output("Changes to Outputs:\n  + url = (known after apply)") == "Changes to Outputs."


def test_summarize_output_falls_back_to_first_line():
    assert summarize_output("\n\n  something unexpected happened\nmore") == "something unexpected happened"


def test_classify_no_changes():
    summary = classify_result(_plan_payload("No changes. Your infrastructure matches the configuration."))
    assert not summary.locked
    assert not summary.has_changes


def test_classify_changes():
    summary = classify_result(_plan_payload(CHANGED_OUTPUT))
    assert summary.has_changes
    assert summary.summary_text == "Plan: 0 to add, 1 to change, 0 to destroy."


def test_classify_locked():
    summary = classify_result(
        _plan_payload(failure="This project is currently locked by an unapplied plan from pull #42")
    )
    assert summary.locked
    assert not summary.has_changes


def test_classify_failed_plan_is_temporary():
    with pytest.raises(TemporaryPlanError, match="plan failed"):
        classify_result(_plan_payload(failure="Error acquiring the state lock"))


def test_classify_requires_exactly_one_project():
    with pytest.raises(PlanQueryError, match="expected exactly one"):
        classify_result({"ProjectResults": []})


@pytest.mark.asyncio
async def test_plan_summary_posts_request_with_token():
    mock = _mock_client(_response(json=_plan_payload(CHANGED_OUTPUT)))

    summary = await _query(mock)

    assert summary.has_changes
    mock.client.post.assert_awaited_once_with(
        PLAN_URL,
        json={
            "Repository": "acme/infra",
            "Ref": "main",
            "Type": "Github",
            "Paths": [{"Directory": "infra/db", "Workspace": "prod"}],
        },
        headers={"X-Atlantis-Token": "s3cret"},
    )


@pytest.mark.asyncio
async def test_locked_plan_on_error_status_is_not_an_error():
    mock = _mock_client(_response(500, json=_plan_payload(failure="dir is currently locked by #7")))

    summary = await _query(mock)

    assert summary.locked


@pytest.mark.asyncio
async def test_server_error_is_temporary():
    with pytest.raises(TemporaryPlanError) as exc_info:
        await _query(_mock_client(_response(502, text="<html>Bad Gateway</html>")))
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_rate_limit_is_temporary():
    with pytest.raises(TemporaryPlanError):
        await _query(_mock_client(_response(429, text="slow down")))


@pytest.mark.asyncio
async def test_unauthorized_is_permanent():
    with pytest.raises(PlanQueryError) as exc_info:
        await _query(_mock_client(_response(401, text="invalid token")))
    assert not exc_info.value.temporary
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_timeout_is_temporary():
    with pytest.raises(TemporaryPlanError, match="timed out"):
        await _query(_mock_client(error=httpx.ReadTimeout("read timed out")))


@pytest.mark.asyncio
async def test_connection_error_is_temporary():
    with pytest.raises(TemporaryPlanError):
        await _query(_mock_client(error=httpx.ConnectError("connection refused")))


@pytest.mark.asyncio
async def test_non_json_success_is_permanent():
    with pytest.raises(PlanQueryError, match="non-JSON") as exc_info:
        await _query(_mock_client(_response(200, text="<html>login</html>")))
    assert not exc_info.value.temporary
