import threading
from typing import Dict, List


class WorkerPool:
    """
    Tracks the live worker children of the supervisor.

    A pid is present if and only if the supervisor believes the child is
    still running. The pool is mutated both by the iteration loop and by
    signal handling, which in Python runs on the main thread between
    bytecodes, so the lock must be re-entrant.
    """

    def __init__(self) -> None:
        self._workers: Dict[int, bool] = {}
        self._lock = threading.RLock()

    def add(self, pid: int) -> None:
        with self._lock:
            self._workers[pid] = True

    def remove(self, pid: int) -> None:
        """Forgets a worker. Removing an unknown pid is a no-op."""
        with self._lock:
            self._workers.pop(pid, None)

    def count(self) -> int:
        with self._lock:
            return len(self._workers)

    def pids(self) -> List[int]:
        """Returns a snapshot of the tracked pids."""
        with self._lock:
            return list(self._workers)

    def __contains__(self, pid: int) -> bool:
        with self._lock:
            return pid in self._workers

    def __len__(self) -> int:
        return self.count()
