"""
Job source adapter.

A daemon is parameterized by two capabilities: fetching the next batch of
pending jobs and executing one job. They can be handed to the Supervisor as
plain callables, or bundled in a `JobSource` subclass.
"""
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, MutableSequence, Optional, Sequence


def extract_first(batch: MutableSequence) -> Optional[Any]:
    """
    Removes and returns the head of the batch, or None once it is empty.

    :param batch: A list or deque returned by the job source.
    """
    if not batch:
        return None
    if isinstance(batch, deque):
        return batch.popleft()
    return batch.pop(0)


class JobSource(ABC):
    """
    Base class for concrete daemons.

    Jobs can come from a database, a queue broker, redis, files and so on;
    the supervisor only needs a batch it can consume front-to-back.
    """

    #: Daemon name used for the PID file, log file and process title.
    name: Optional[str] = None

    @abstractmethod
    def fetch_pending_jobs(self) -> Sequence:
        """Returns the currently pending jobs in order, possibly empty."""

    def extract_next(self, batch: MutableSequence) -> Optional[Any]:
        """Fetches one job from the batch. Returns None when the batch is exhausted."""
        return extract_first(batch)

    @abstractmethod
    def execute(self, job: Any) -> bool:
        """Runs one job and reports success."""

    def daemon_name(self) -> str:
        return self.name or self.__class__.__name__
