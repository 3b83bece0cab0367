"""Job dispatcher interface."""

from abc import ABC, abstractmethod


class JobDispatcher(ABC):
    """Abstract interface for starting job execution.

    dispatch() hands a created job to an execution unit and returns without
    waiting for it; callers observe progress through the job store.
    """

    @property
    @abstractmethod
    def accepting_jobs(self) -> bool:
        """True while dispatch() will accept new jobs."""
        ...

    @abstractmethod
    async def dispatch(self, job_id: int) -> None:
        """Start executing a job that is already in the store."""
        ...

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop accepting work and wait for in-flight jobs."""
        ...
