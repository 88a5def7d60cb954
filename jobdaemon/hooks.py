import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

log = logging.getLogger(__name__)

EVENT_BEFORE_ITERATION = "before_iteration"
EVENT_AFTER_ITERATION = "after_iteration"
EVENT_BEFORE_JOB = "before_job"
EVENT_AFTER_JOB = "after_job"

EVENTS = (EVENT_BEFORE_ITERATION, EVENT_AFTER_ITERATION, EVENT_BEFORE_JOB, EVENT_AFTER_JOB)


@dataclass
class DaemonEvent:
    """Payload handed to every hook handler."""

    name: str
    supervisor: Any = None
    job: Any = None
    success: Optional[bool] = None


class EventHooks:
    """
    Registry of lifecycle notifications. Handlers run synchronously, in
    registration order, on the process doing the work (a worker child for
    the job events in multi-instance mode).
    """

    def __init__(self, supervisor: Any = None) -> None:
        self.supervisor = supervisor
        self._handlers: Dict[str, List[Callable[[DaemonEvent], Any]]] = defaultdict(list)

    @staticmethod
    def _check(event: str) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown daemon event '{event}'. Expected one of: {', '.join(EVENTS)}")

    def on(self, event: str, handler: Callable[[DaemonEvent], Any]) -> None:
        self._check(event)
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Optional[Callable[[DaemonEvent], Any]] = None) -> None:
        """Detaches one handler, or every handler of the event when none is given."""
        self._check(event)
        if handler is None:
            self._handlers.pop(event, None)
        elif handler in self._handlers.get(event, []):
            self._handlers[event].remove(handler)

    def trigger(self, event: str, job: Any = None, success: Optional[bool] = None) -> None:
        self._check(event)
        handlers = list(self._handlers.get(event, []))
        if not handlers:
            return
        payload = DaemonEvent(name=event, supervisor=self.supervisor, job=job, success=success)
        for handler in handlers:
            handler(payload)
