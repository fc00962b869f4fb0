"""Shallow git checkout of the infrastructure repository."""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from pathlib import Path

import structlog

from driftwatch.errors import CheckoutError
from driftwatch.process import run_command
from driftwatch.utils import redact

logger = structlog.get_logger(__name__)

_CLONE_TIMEOUT_S = 600.0


class GitCheckout:
    """Checkout implementation cloning ``owner/name`` over HTTPS."""

    def __init__(self, token: str | None = None, *, base_url: str = "https://github.com", ref: str | None = None) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.ref = ref

    def clone_url(self, repo: str) -> str:
        if not self.token:
            return f"{self.base_url}/{repo}.git"
        scheme, _, host = self.base_url.partition("://")
        return f"{scheme}://x-access-token:{self.token}@{host}/{repo}.git"

    async def checkout(self, repo: str) -> Path:
        target = Path(tempfile.mkdtemp(prefix="driftwatch-"))
        args = ["git", "clone", "--depth", "1"]
        if self.ref:
            args += ["--branch", self.ref]
        args += [self.clone_url(repo), str(target)]

        logger.info("Preparing to clone repo.", repo=repo)
        try:
            result = await run_command(args, env={"GIT_TERMINAL_PROMPT": "0"}, timeout=_CLONE_TIMEOUT_S)
        except (FileNotFoundError, asyncio.TimeoutError) as exc:
            await self.cleanup(target)
            raise CheckoutError(f"failed to clone repo {repo}: {exc!r}") from exc
        logger.info("Clone repo cmd complete. Evaluating results.", repo=repo)

        if not result.ok:
            await self.cleanup(target)
            raise CheckoutError(f"failed to clone repo {repo}: {redact(result.error_text(), self.token)}")
        return target

    async def cleanup(self, path: Path) -> None:
        try:
            await asyncio.to_thread(shutil.rmtree, path)
        except OSError as exc:
            logger.warning("failed to cleanup repo", path=str(path), error=str(exc))
