import os
import sys
import psutil
import logging
from pathlib import Path
from typing import Callable
from jobdaemon.local.supervisor import persistence
from jobdaemon.local.supervisor.shutdown import EXIT_CODE_ERROR, EXIT_CODE_NORMAL, halt

log = logging.getLogger(__name__)


def check_if_already_running(pid_path: Path) -> bool:
    """
    Checks if a daemon with this PID file is already alive.
    A PID file left behind by a dead process is removed.

    :param pid_path: The PID file of the daemon.
    :return: True if another live process owns the PID file, False otherwise.
    """
    pid = persistence.read_pid_file(pid_path)
    if pid is None:
        if Path(pid_path).exists():
            persistence.remove_pid_file(pid_path)
        return False
    if pid != os.getpid() and psutil.pid_exists(pid):
        log.error(f"Daemon appears to be running with PID {pid} ({pid_path}).")
        return True
    log.warning(f"Removing stale PID file '{pid_path}' (PID {pid} is not running).")
    persistence.remove_pid_file(pid_path)
    return False


def _redirect_standard_streams() -> None:
    """Points stdin, stdout and stderr at the null device."""
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            continue
    devnull = os.open(os.devnull, os.O_RDWR)
    try:
        for fd in (0, 1, 2):
            os.dup2(devnull, fd)
    finally:
        if devnull > 2:
            os.close(devnull)


def daemonize(fork: Callable[[], int] = os.fork) -> None:
    """
    Detaches the current process from its controlling terminal.

    The calling process exits with EXIT_CODE_NORMAL so the calling shell
    returns; the forked child starts a new session and silences its
    standard streams.
    """
    try:
        pid = fork()
    except OSError as e:
        halt(EXIT_CODE_ERROR, f"fork() raised error: {e}")
        return
    if pid:
        halt(EXIT_CODE_NORMAL, f"Daemon forked into background with PID {pid}.")
        return

    os.setsid()
    _redirect_standard_streams()
