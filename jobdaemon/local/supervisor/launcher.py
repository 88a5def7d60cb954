import os
import signal
import logging
import setproctitle
from typing import TYPE_CHECKING, Any, Callable
from jobdaemon.hooks import EVENT_AFTER_JOB, EVENT_BEFORE_JOB, EventHooks
from jobdaemon.log import flush_handlers
from jobdaemon.local.supervisor.shutdown import EXIT_CODE_ERROR, EXIT_CODE_NORMAL

if TYPE_CHECKING:
    from .workers import WorkerPool

log = logging.getLogger(__name__)

#* --- Signals a worker child must not inherit from the supervisor ---
CHILD_DEFAULT_SIGNALS = (signal.SIGTERM, signal.SIGHUP, signal.SIGUSR1, signal.SIGCHLD)


class ProcessLauncher:
    """
    Runs one job, either inline or in a forked worker child.

    A failing job never affects the supervisor: inline failures are only
    reported through the return value, child failures through the exit code.
    """

    def __init__(
        self,
        execute_job: Callable[[Any], bool],
        hooks: EventHooks,
        workers: "WorkerPool",
        title: str = "JobDaemon worker",
        fork: Callable[[], int] = os.fork,
        exit_child: Callable[[int], None] = os._exit,
    ) -> None:
        """
        :param execute_job: The job executor.
        :param hooks: Lifecycle hooks fired around every job.
        :param workers: Pool the parent records forked children in.
        :param title: Process title given to worker children.
        :param fork: Replacement for os.fork, used by tests.
        :param exit_child: Replacement for os._exit, used by tests.
        """
        self.execute_job = execute_job
        self.hooks = hooks
        self.workers = workers
        self.title = title
        self.fork = fork
        self.exit_child = exit_child

    def launch(self, job: Any, multi_instance: bool) -> bool:
        """
        Dispatches one job.

        :param job: The job to run.
        :param multi_instance: Fork a worker child instead of running inline.
        :return: Inline: the job's result. Forked: True once the child is
                 recorded, False if the fork failed and the job was dropped.
        """
        if multi_instance:
            return self.spawn(job)
        return self.run_inline(job)

    def run_inline(self, job: Any) -> bool:
        """Runs the job in the current process between the job hooks."""
        self.hooks.trigger(EVENT_BEFORE_JOB, job=job)
        try:
            success = bool(self.execute_job(job))
        except Exception as e:
            log.error(f"Job {job!r} raised an exception: {e}", exc_info=True)
            success = False
        if not success:
            log.warning(f"Job {job!r} returned failure.")
        self.hooks.trigger(EVENT_AFTER_JOB, job=job, success=success)
        return success

    def spawn(self, job: Any) -> bool:
        """Forks a worker child for the job and records it in the pool."""
        try:
            pid = self.fork()
        except OSError as e:
            log.error(f"Failed to fork a worker for job {job!r}, job dropped: {e}")
            return False

        if pid:
            self.workers.add(pid)
            log.debug(f"Worker {pid} started for job {job!r}.")
            return True

        self._run_child(job)
        return True

    def _run_child(self, job: Any) -> None:
        """Worker side of the fork. Never returns to the iteration loop."""
        code = EXIT_CODE_ERROR
        try:
            for signum in CHILD_DEFAULT_SIGNALS:
                signal.signal(signum, signal.SIG_DFL)
            setproctitle.setproctitle(self.title)
            if self.run_inline(job):
                code = EXIT_CODE_NORMAL
            else:
                log.error(f"Child process #{os.getpid()} returned error.")
        except Exception as e:
            log.critical(f"Child process #{os.getpid()} crashed: {e}", exc_info=True)
        finally:
            flush_handlers()
            self.exit_child(code)
