"""Bounded fan-out executor for cancellable work functions.

Work is handed to a fixed number of asyncio workers through a shared FIFO
queue. The first failing work function cancels the run token; workers stop
pulling as soon as they see it, while work already in progress is left to
finish its current step and observe the token on its own.

Example:
    pool = WorkerPool(concurrency=4, name="drift")
    await pool.run([check_dir("a"), check_dir("b")], token)
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence

import structlog

from driftwatch.core.cancellation import CancellationToken
from driftwatch.errors import RunCancelled

logger = structlog.get_logger(__name__)

WorkFunc = Callable[[CancellationToken], Awaitable[None]]


class WorkerPool:
    """Runs an ordered list of work functions with bounded concurrency.

    ``concurrency <= 1`` runs the items strictly in order and stops at the
    first error. Larger values start that many workers; completion order
    across workers is not defined.
    """

    def __init__(self, concurrency: int, *, name: str = "worker") -> None:
        self.concurrency = concurrency
        self.name = name

    async def run(self, items: Sequence[WorkFunc], token: CancellationToken | None = None) -> None:
        """Execute ``items`` and raise the first error any of them raised.

        Args:
            items: Work functions in submission order
            token: Parent run token; a child token is handed to every item

        Raises:
            Exception: The first error raised by an item
            RunCancelled: If ``token`` was cancelled before all items ran
        """
        run_token = token.child() if token is not None else CancellationToken()
        if self.concurrency <= 1:
            await self._run_sequential(items, run_token)
            return
        await self._run_concurrent(items, run_token)

    async def _run_sequential(self, items: Sequence[WorkFunc], run_token: CancellationToken) -> None:
        for item in items:
            run_token.raise_if_cancelled()
            await item(run_token)

    async def _run_concurrent(self, items: Sequence[WorkFunc], run_token: CancellationToken) -> None:
        queue: asyncio.Queue[WorkFunc] = asyncio.Queue()
        for item in items:
            queue.put_nowait(item)

        first_error: list[BaseException] = []

        async def worker(index: int) -> None:
            while not run_token.cancelled:
                try:
                    item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    await item(run_token)
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    if not first_error:
                        first_error.append(exc)
                        logger.warning(
                            "Work function failed; cancelling remaining work",
                            pool=self.name,
                            worker=index,
                            error=str(exc),
                        )
                    run_token.cancel(reason=f"{self.name}: {exc}")
                    return

        worker_count = min(self.concurrency, max(len(items), 1))
        workers = [asyncio.create_task(worker(i), name=f"{self.name}-worker-{i}") for i in range(worker_count)]
        logger.debug("Started workers", pool=self.name, workers=worker_count, items=len(items))
        await asyncio.gather(*workers)

        if first_error:
            raise first_error[0]
        if run_token.cancelled and not queue.empty():
            raise RunCancelled(f"{self.name} cancelled with {queue.qsize()} item(s) not started")
