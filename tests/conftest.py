"""Pytest configuration and fixtures."""

import logging

import pytest

from jobdaemon.local.config import DaemonSettings
from jobdaemon.local.supervisor import Supervisor


class FakeProcesses:
    """
    Stands in for os.fork and os.waitpid. Forked children are plain integers
    that stay alive until the test marks them as exited.
    """

    def __init__(self, first_pid=1000):
        self.next_pid = first_pid
        self.forked = []
        self.exited = set()
        self.fail_next = 0

    def fork(self):
        if self.fail_next:
            self.fail_next -= 1
            raise OSError(11, "Resource temporarily unavailable")
        pid = self.next_pid
        self.next_pid += 1
        self.forked.append(pid)
        return pid

    def finish(self, *pids):
        self.exited.update(pids)

    def waitpid(self, pid, options):
        if pid in self.exited:
            self.exited.discard(pid)
            return pid, 0
        return 0, 0


@pytest.fixture
def fake_procs():
    return FakeProcesses()


@pytest.fixture
def make_settings(tmp_path):
    """Builds DaemonSettings rooted in the test's temporary directory."""

    def make(**overrides):
        values = {
            "PID_DIR": tmp_path / "pids",
            "LOG_DIR": tmp_path / "logs",
            "SLEEP_INTERVAL": 1,
            "WAIT_INTERVAL": 1,
            "MEMORY_LIMIT": 1 << 40,
        }
        values.update(overrides)
        return DaemonSettings(values, overrides_path=tmp_path / "overrides.json")

    return make


@pytest.fixture
def make_supervisor(make_settings, fake_procs):
    """
    Builds a Supervisor fed from a scripted list of batches. Once the script
    runs out the job source requests a stop, so run() always terminates.
    """

    def make(batches, execute=None, sleep=None, memory_usage=None, name="TestDaemon", **overrides):
        script = [list(batch) for batch in batches]
        executed = []
        holder = {}

        def fetch_jobs():
            if script:
                return script.pop(0)
            holder["supervisor"].stop()
            return []

        def default_execute(job):
            executed.append(job)
            return True

        supervisor = Supervisor(
            name,
            fetch_jobs,
            execute or default_execute,
            settings=make_settings(**overrides),
            fork=fake_procs.fork,
            waitpid=fake_procs.waitpid,
            sleep=sleep or (lambda seconds: None),
            memory_usage=memory_usage or (lambda: 0),
        )
        supervisor.executed = executed
        holder["supervisor"] = supervisor
        return supervisor

    return make


@pytest.fixture
def restore_root_logging():
    """Puts the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
