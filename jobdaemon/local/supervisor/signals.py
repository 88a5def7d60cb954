import os
import signal
import logging
from collections import deque
from typing import TYPE_CHECKING, Callable, Deque, Dict, Tuple

if TYPE_CHECKING:
    from .workers import WorkerPool

log = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGTERM, signal.SIGHUP, signal.SIGUSR1, signal.SIGCHLD)


class SignalRouter:
    """
    Translates OS signals into supervisor events.

    The OS-level callback only queues the signal number. The queue is drained
    by `dispatch()`, which the iteration loop calls at bounded intervals, so
    no handler ever does blocking work inside the interrupted code.
    """

    def __init__(
        self,
        workers: "WorkerPool",
        on_terminate: Callable[[], None],
        waitpid: Callable[[int, int], Tuple[int, int]] = os.waitpid,
    ) -> None:
        """
        :param workers: The pool of live worker children.
        :param on_terminate: Called when a termination request is handled.
        :param waitpid: Replacement for os.waitpid, used by tests.
        """
        self.workers = workers
        self.on_terminate = on_terminate
        self.waitpid = waitpid
        self._pending: Deque[int] = deque()
        self._previous: Dict[int, object] = {}

    def install(self) -> None:
        """Registers the queueing callback for every handled signal."""
        for signum in HANDLED_SIGNALS:
            self._previous[signum] = signal.signal(signum, self._on_signal)
        log.debug("Signal handlers installed.")

    def restore(self) -> None:
        """Puts back the handlers that were active before install()."""
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()

    def _on_signal(self, signum, frame) -> None:
        self.notify(signum)

    def notify(self, signum: int) -> None:
        """Queues a signal event. Safe to call from any context."""
        self._pending.append(signum)

    def dispatch(self) -> int:
        """
        Handles every queued signal event without blocking.

        :return: The number of events handled.
        """
        handled = 0
        while True:
            try:
                signum = self._pending.popleft()
            except IndexError:
                return handled
            self.handle(signum)
            handled += 1

    def handle(self, signum: int) -> None:
        if signum == signal.SIGTERM:
            log.info("Termination signal received. Stopping after the current iteration.")
            self.on_terminate()
        elif signum == signal.SIGHUP:
            log.debug("SIGHUP received. Reconfiguration is not supported, ignoring.")
        elif signum == signal.SIGUSR1:
            log.debug("SIGUSR1 received. No user action configured, ignoring.")
        elif signum == signal.SIGCHLD:
            self.reap_children()
        else:
            log.debug(f"Ignoring unexpected signal {signum}.")

    def reap_children(self) -> int:
        """
        Collects every worker that has exited since the last call.

        Several children can exit before a single SIGCHLD is handled, so all
        tracked workers are polled rather than one.

        :return: The number of workers removed from the pool.
        """
        reaped = 0
        for pid in self.workers.pids():
            try:
                exited_pid, status = self.waitpid(pid, os.WNOHANG)
            except ChildProcessError:
                # Already collected elsewhere; the record is stale.
                exited_pid, status = pid, 0
            if exited_pid == 0:
                continue
            self.workers.remove(pid)
            reaped += 1
            log.debug(f"Worker {pid} exited with code {os.waitstatus_to_exitcode(status)}.")
        return reaped
