"""Atlantis API client for plan summaries.

Atlantis plans a directory/workspace on request (``POST /api/plan``) and
returns the terraform output. Failures are tagged for the drift checker:
transport problems, timeouts, rate limiting, 5xx responses and failed project
plans are temporary; client errors and unreadable responses are not.
"""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from driftwatch.constants import (
    ATLANTIS_PLAN_PATH,
    ATLANTIS_TIMEOUT_S,
    ATLANTIS_TOKEN_HEADER,
    DEFAULT_VCS_TYPE,
)
from driftwatch.core.models import PlanSummary
from driftwatch.errors import PlanQueryError, TemporaryPlanError

logger = structlog.get_logger(__name__)

_PLAN_LINE_RE = re.compile(r"Plan: \d+ to add, \d+ to change, \d+ to destroy\.")
_NO_CHANGES_MARKER = "No changes."
_OUTPUT_CHANGES_MARKER = "Changes to Outputs"
_LOCKED_MARKER = "currently locked"
_SUMMARY_MAX_CHARS = 200


def _project_result(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise PlanQueryError("Atlantis returned a non-object plan result")
    results = payload.get("ProjectResults") or []
    if len(results) != 1 or not isinstance(results[0], dict):
        raise PlanQueryError(f"Atlantis returned {len(results)} project results, expected exactly one")
    return results[0]


def _failure_text(project: dict[str, Any]) -> str:
    failure = project.get("Failure") or ""
    error = project.get("Error")
    if error and not failure:
        failure = error if isinstance(error, str) else str(error)
    return str(failure)


def summarize_output(output: str) -> str:
    """Extract a one-line description of a terraform plan output."""
    match = _PLAN_LINE_RE.search(output)
    if match:
        return match.group(0)
    if _OUTPUT_CHANGES_MARKER in output:
        return "Changes to Outputs."
    for line in output.splitlines():
        line = line.strip()
        if line:
            return line[:_SUMMARY_MAX_CHARS]
    return ""


def classify_result(payload: Any) -> PlanSummary:
    """Turn an Atlantis plan response body into a ``PlanSummary``.

    Raises:
        TemporaryPlanError: If the project plan itself failed
        PlanQueryError: If the body does not look like a plan result
    """
    project = _project_result(payload)
    failure = _failure_text(project)
    if failure:
        if _LOCKED_MARKER in failure:
            return PlanSummary(locked=True, has_changes=False, summary_text=failure[:_SUMMARY_MAX_CHARS])
        raise TemporaryPlanError(f"plan failed: {failure[:_SUMMARY_MAX_CHARS]}")

    success = project.get("PlanSuccess")
    if not isinstance(success, dict):
        raise PlanQueryError("Atlantis plan result has neither PlanSuccess nor a failure")
    output = str(success.get("TerraformOutput") or "")
    has_changes = _NO_CHANGES_MARKER not in output
    return PlanSummary(
        locked=False,
        has_changes=has_changes,
        summary_text=summarize_output(output) if has_changes else "No changes.",
    )


class AtlantisClient:
    """PlanQuery implementation backed by the Atlantis API."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        vcs_type: str = DEFAULT_VCS_TYPE,
        timeout_s: float = ATLANTIS_TIMEOUT_S,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.vcs_type = vcs_type
        self.timeout_s = timeout_s

    async def plan_summary(self, repo: str, ref: str, directory: str, workspace: str) -> PlanSummary:
        body = {
            "Repository": repo,
            "Ref": ref,
            "Type": self.vcs_type,
            "Paths": [{"Directory": directory, "Workspace": workspace}],
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                response = await client.post(
                    f"{self.base_url}{ATLANTIS_PLAN_PATH}",
                    json=body,
                    headers={ATLANTIS_TOKEN_HEADER: self.token},
                )
        except httpx.TimeoutException as exc:
            raise TemporaryPlanError(f"Atlantis plan request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise TemporaryPlanError(f"Atlantis plan request failed: {exc}") from exc

        logger.debug("Atlantis plan response", dir=directory, workspace=workspace, status=response.status_code)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code != 200:
            # Atlantis answers 500 with a full result body when the plan itself fails
            if payload is not None:
                try:
                    return classify_result(payload)
                except TemporaryPlanError:
                    raise
                except PlanQueryError:
                    pass
            detail = response.text[:_SUMMARY_MAX_CHARS]
            message = f"Atlantis plan failed (HTTP {response.status_code}): {detail}"
            if response.status_code >= 500 or response.status_code == 429:
                raise TemporaryPlanError(message, status_code=response.status_code)
            raise PlanQueryError(message, status_code=response.status_code)

        if payload is None:
            raise PlanQueryError(f"Atlantis returned non-JSON (HTTP 200): {response.text[:_SUMMARY_MAX_CHARS]}")
        return classify_result(payload)
