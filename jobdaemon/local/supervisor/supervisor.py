import os
import time
import psutil
import logging
import threading
from collections import abc
import setproctitle
from typing import Any, Callable, MutableSequence, Optional, Sequence
from jobdaemon.hooks import EVENT_AFTER_ITERATION, EVENT_BEFORE_ITERATION, EventHooks
from jobdaemon.jobs import JobSource, extract_first
from jobdaemon.log import setup_logging
from jobdaemon.local.config import DaemonSettings
from jobdaemon.local.supervisor import persistence, startup
from jobdaemon.local.supervisor.launcher import ProcessLauncher
from jobdaemon.local.supervisor.shutdown import EXIT_CODE_ERROR, EXIT_CODE_NORMAL, halt
from jobdaemon.local.supervisor.signals import SignalRouter
from jobdaemon.local.supervisor.workers import WorkerPool

log = logging.getLogger(__name__)


def current_memory_usage() -> int:
    """Resident set size of the current process in bytes."""
    return psutil.Process().memory_info().rss


class Supervisor:
    """
    Pulls batches of jobs from a source and dispatches them, inline or to a
    bounded pool of forked worker children, until it is asked to stop or
    outgrows its memory limit.

    One Supervisor instance owns the shutdown flag, the worker pool and the
    signal routing of its process.
    """

    def __init__(
        self,
        name: str,
        fetch_jobs: Callable[[], Sequence],
        execute_job: Callable[[Any], bool],
        extract_job: Optional[Callable[[MutableSequence], Any]] = None,
        settings: Optional[DaemonSettings] = None,
        fork: Callable[[], int] = os.fork,
        waitpid: Callable = os.waitpid,
        sleep: Callable[[float], None] = time.sleep,
        memory_usage: Callable[[], int] = current_memory_usage,
    ) -> None:
        """
        :param name: Daemon name, used for the PID file, log file and process title.
        :param fetch_jobs: Returns the next batch of pending jobs.
        :param execute_job: Runs one job and returns its success.
        :param extract_job: Takes the next job out of a batch, None when exhausted.
        :param settings: Daemon configuration, defaults to DaemonSettings().
        :param fork: Replacement for os.fork, used by tests.
        :param waitpid: Replacement for os.waitpid, used by tests.
        :param sleep: Replacement for time.sleep, used by tests.
        :param memory_usage: Returns the supervisor's memory usage in bytes.
        """
        if not name or os.sep in name:
            raise ValueError(f"Invalid daemon name '{name}'.")

        self.name = name
        self.settings = settings if settings is not None else DaemonSettings()
        self.fetch_jobs = fetch_jobs
        self.extract_job = extract_job or extract_first
        self.fork = fork
        self.sleep = sleep
        self.memory_usage = memory_usage

        self.hooks = EventHooks(self)
        self.workers = WorkerPool()
        self.shutdown_signal_received = threading.Event()
        self.signals = SignalRouter(self.workers, self.stop, waitpid=waitpid)
        self.launcher = ProcessLauncher(
            execute_job, self.hooks, self.workers,
            title=f"{self.settings.PROCESS_TITLE_PREFIX} - {name} worker",
            fork=fork,
        )
        self.parent_pid: Optional[int] = None
        self._last_memory_usage = 0

    @classmethod
    def from_source(cls, source: JobSource, name: Optional[str] = None, **kwargs: Any) -> "Supervisor":
        """Builds a supervisor around the methods of a JobSource."""
        return cls(
            name or source.daemon_name(),
            source.fetch_pending_jobs,
            source.execute,
            extract_job=source.extract_next,
            **kwargs,
        )

    @property
    def pid_path(self):
        return persistence.get_pid_path(self.settings.PID_DIR, self.name)

    @property
    def stopping(self) -> bool:
        return self.shutdown_signal_received.is_set()

    def stop(self) -> None:
        """Requests a soft stop. The loop exits at its next check."""
        self.shutdown_signal_received.set()

    def memory_limit_reached(self) -> bool:
        self._last_memory_usage = self.memory_usage()
        return self._last_memory_usage >= self.settings.MEMORY_LIMIT

    def start(self, verbose: bool = False) -> int:
        """
        Entry point: configures logging, detaches from the terminal when
        configured to, then runs the iteration loop. A daemon that is already
        running is refused before detaching.

        :param verbose: If True, sets console logging to DEBUG level.
        :return: The process exit code.
        """
        console_level = logging.DEBUG if verbose else logging.INFO
        setup_logging(self.name, self.settings.LOG_DIR, console_level)
        if self.settings.DAEMONIZE:
            # Refuse while still attached, so the refusal reaches the terminal.
            if startup.check_if_already_running(self.pid_path):
                halt(EXIT_CODE_ERROR, f"Daemon {self.name} is already running. Use 'stop' first.")
            startup.daemonize(self.fork)
            setup_logging(self.name, self.settings.LOG_DIR, daemonized=True)
        return self.run()

    def run(self) -> int:
        """
        Main iterator. Owns the PID file for exactly its own duration.

        :return: EXIT_CODE_NORMAL after a stop request or the memory limit,
                 EXIT_CODE_ERROR after an unexpected error.
        """
        pid_path = self.pid_path
        if startup.check_if_already_running(pid_path):
            halt(EXIT_CODE_ERROR, f"Daemon {self.name} is already running. Use 'stop' first.")
        if not persistence.write_pid_file(pid_path):
            halt(EXIT_CODE_ERROR, f"Can't create pid file {pid_path}")

        self.parent_pid = os.getpid()
        setproctitle.setproctitle(f"{self.settings.PROCESS_TITLE_PREFIX} - {self.name}")
        self.signals.install()
        log.debug(f"Daemon {self.name} pid {self.parent_pid} started.")

        exit_code = EXIT_CODE_NORMAL
        try:
            self._loop()
        except KeyboardInterrupt:
            log.info(f"Daemon {self.name} interrupted by user.")
        except Exception as e:
            log.critical(f"Critical error in daemon {self.name} loop: {e}", exc_info=True)
            exit_code = EXIT_CODE_ERROR
        finally:
            if os.getpid() == self.parent_pid:
                self.signals.restore()
                persistence.remove_pid_file(pid_path)

        log.debug(f"Daemon {self.name} pid {self.parent_pid} is stopped now.")
        return exit_code

    def _loop(self) -> None:
        while not self.stopping and not self.memory_limit_reached():
            self.hooks.trigger(EVENT_BEFORE_ITERATION)
            batch = self.fetch_jobs()
            if batch is not None and not isinstance(batch, abc.MutableSequence):
                # Extractors consume the batch in place.
                batch = list(batch)
            if batch:
                self._dispatch_batch(batch)
            else:
                self._idle()
            self.signals.dispatch()
            self.hooks.trigger(EVENT_AFTER_ITERATION)

        if self.stopping:
            log.info(f"Daemon {self.name} pid {self.parent_pid} received a stop request.")
        else:
            log.warning(
                f"Daemon {self.name} pid {self.parent_pid} reached memory limit "
                f"{self.settings.MEMORY_LIMIT}, memory usage: {self._last_memory_usage}"
            )

    def _dispatch_batch(self, batch: MutableSequence) -> None:
        """Extracts jobs front-to-back and launches each once a slot is free."""
        multi_instance = self.settings.MULTI_INSTANCE
        while True:
            job = self.extract_job(batch)
            if job is None:
                return
            if not self._wait_for_free_slot():
                log.info("Stop requested while waiting for a free worker. Abandoning the rest of the batch.")
                return
            self.signals.dispatch()
            self.launcher.launch(job, multi_instance)

    def _wait_for_free_slot(self) -> bool:
        """
        Blocks while the pool is full, servicing signals every poll.

        :return: True once a slot is free, False if a stop was requested meanwhile.
        """
        limit = self.settings.MAX_CHILD_PROCESSES
        if self.workers.count() < limit:
            return True

        log.debug("Max child processes reached. Waiting...")
        while self.workers.count() >= limit:
            self.sleep(self.settings.WAIT_INTERVAL)
            self.signals.dispatch()
            if self.stopping:
                return False
        log.debug(f"Free workers found: {limit - self.workers.count()} worker(s). Delegate tasks.")
        return True

    def _idle(self) -> None:
        """Sleeps SLEEP_INTERVAL seconds in slices, servicing signals after each."""
        remaining = self.settings.SLEEP_INTERVAL
        while remaining > 0 and not self.stopping:
            step = min(remaining, self.settings.WAIT_INTERVAL)
            self.sleep(step)
            remaining -= step
            self.signals.dispatch()
