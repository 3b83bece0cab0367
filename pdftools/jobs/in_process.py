"""In-process job dispatcher using asyncio.

Each job gets its own task; the synchronous runner executes in the default
thread executor so it never blocks the event loop. There is no limit on how
many jobs run at once.
"""

import asyncio
from typing import Callable, Optional, Set

from pdftools.jobs.dispatcher import JobDispatcher
from pdftools.logger import logger


class InProcessDispatcher(JobDispatcher):
    def __init__(self, run_fn: Callable[[int], object], shutdown_grace_seconds: float = 30.0):
        """
        run_fn: callable(job_id) -> Any
            Synchronous function that drives the job to a terminal state.
            Called in a thread executor.
        """
        self._run_fn = run_fn
        self._grace = shutdown_grace_seconds
        self._tasks: Set[asyncio.Task] = set()
        self._running = False

    @property
    def accepting_jobs(self) -> bool:
        return self._running

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False
        if not self._tasks:
            return
        logger.info(f"Waiting for {len(self._tasks)} running job(s)")
        _, pending = await asyncio.wait(set(self._tasks), timeout=self._grace)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning(f"{len(pending)} job(s) still running at shutdown")

    async def dispatch(self, job_id: int) -> None:
        if not self._running:
            raise RuntimeError("Dispatcher is not running")
        task = asyncio.create_task(self._execute(job_id), name=f"job-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait until every dispatched job has finished."""
        while self._tasks:
            await asyncio.gather(*set(self._tasks), return_exceptions=True)

    async def _execute(self, job_id: int) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._run_fn, job_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            # The runner records job failures itself; reaching here means the
            # store could not be written.
            logger.exception(f"Job {job_id} runner crashed")
