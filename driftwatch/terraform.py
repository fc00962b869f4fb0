"""terraform CLI wrapper used by workspace reconciliation."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from driftwatch.errors import TerraformError
from driftwatch.process import CommandResult, run_command

logger = structlog.get_logger(__name__)

_INIT_TIMEOUT_S = 600.0
_LIST_TIMEOUT_S = 120.0
_NON_INTERACTIVE_ENV = {"TF_IN_AUTOMATION": "1", "TF_INPUT": "0"}


def parse_workspace_list(output: str) -> list[str]:
    """Parse ``terraform workspace list`` output, dropping the ``*`` marker."""
    workspaces: list[str] = []
    for line in output.splitlines():
        name = line.strip().lstrip("*").strip()
        if name:
            workspaces.append(name)
    return workspaces


class TerraformClient:
    """TerraformOps implementation running the terraform binary in a checkout."""

    def __init__(self, root: Path, binary: str = "terraform") -> None:
        self.root = root
        self.binary = binary

    async def _run(self, directory: str, *args: str, timeout: float) -> CommandResult:
        cwd = self.root / directory
        command = [self.binary, *args]
        logger.debug("Running terraform", cmd=" ".join(command), cwd=str(cwd))
        try:
            result = await run_command(command, cwd=cwd, env=_NON_INTERACTIVE_ENV, timeout=timeout)
        except FileNotFoundError as exc:
            raise TerraformError(f"terraform not found ({self.binary}) or missing directory {cwd}") from exc
        except asyncio.TimeoutError as exc:
            raise TerraformError(f"terraform {args[0]} timed out after {timeout:.0f}s in {directory}") from exc
        if not result.ok:
            raise TerraformError(
                f"terraform {' '.join(args)} failed in {directory}: {result.error_text()}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result

    async def init(self, directory: str) -> None:
        await self._run(directory, "init", "-input=false", "-no-color", timeout=_INIT_TIMEOUT_S)

    async def list_workspaces(self, directory: str) -> list[str]:
        result = await self._run(directory, "workspace", "list", timeout=_LIST_TIMEOUT_S)
        return parse_workspace_list(result.stdout)
