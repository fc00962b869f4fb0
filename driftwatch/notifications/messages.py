"""Chat message texts shared by the webhook and Telegram sinks."""

from __future__ import annotations

from driftwatch.constants import SLACK_INLINE_SUMMARY_MAX_CHARS


def _percent(part: int, total: int) -> float:
    return part / total * 100 if total else 0.0


def temporary_error(directory: str, workspace: str, error: BaseException) -> str:
    return f"Unknown error in remote\nDirectory: {directory}\nWorkspace: {workspace}\nError: {error}"


def extra_workspace_in_remote(directory: str, workspace: str) -> str:
    if not workspace:
        return f"Extra workspace in remote\nDirectory: `{directory}`"
    return f"Extra workspace in remote\nDirectory: `{directory}`\nWorkspace: `{workspace}`"


def missing_workspace_in_remote(directory: str, workspace: str) -> str:
    if not workspace:
        return f"Missing workspace in remote\nRoot module: `{directory}`"
    return f"Missing workspace in remote\nRoot module: `{directory}`\nWorkspace: `{workspace}`"


def plan_drift(directory: str, workspace: str, summary: str) -> str:
    lines = [":exclamation: *Drift detected*", f":terraform: *Root module:* `{directory}`"]
    if workspace:
        lines.append(f"Workspace: `{workspace}`")
    if len(summary) > SLACK_INLINE_SUMMARY_MAX_CHARS:
        lines.append(f":pencil: *Result:* \n```\n{summary}\n```")
    else:
        lines.append(f":pencil: *Result:* `{summary}`")
    return "\n".join(lines)


def workspace_drift_summary(drifted: int, undrifted: int, total: int) -> str:
    if drifted == 0:
        head = f":checked_animated: *Total Workspaces Drifted:* 0 / {total}"
    else:
        head = f":checkered_flag: *Total Workspaces Drifted:* {drifted} / {total} ({_percent(drifted, total):.1f}%)"
    tail = f":checked_animated: *Total Workspaces Undrifted:* {undrifted} / {total} ({_percent(undrifted, total):.1f}%)"
    return f"{head}\n{tail}"
