import signal
import psutil
import logging
import importlib
from typing import Any, Dict, List, Tuple
from jobdaemon.jobs import JobSource
from jobdaemon.local.config import DaemonSettings
from jobdaemon.local.supervisor import persistence
from jobdaemon.local.supervisor.shutdown import EXIT_CODE_ERROR, EXIT_CODE_NORMAL
from jobdaemon.local.supervisor.supervisor import Supervisor

log = logging.getLogger(__name__)

# Options that are handled by the console itself rather than DaemonSettings.
CONSOLE_OPTIONS = {"name", "verbose"}


def parse_options(args: List[str]) -> Tuple[List[str], Dict[str, Any]]:
    """
    Splits console arguments into positionals and `--option[=value]` pairs.
    A bare `--flag` means True. Dashes in option names become underscores.

    :param args: The raw arguments following the command.
    :return: A tuple of (positional arguments, options).
    """
    positionals: List[str] = []
    options: Dict[str, Any] = {}
    for arg in args:
        if not arg.startswith("--"):
            positionals.append(arg)
            continue
        key, sep, value = arg[2:].partition("=")
        options[key.replace("-", "_").lower()] = value if sep else True
    return positionals, options


def load_job_source(target: str) -> JobSource:
    """
    Resolves a `package.module:attribute` reference to a JobSource instance.
    The attribute may be a JobSource subclass, which is then instantiated.

    :raises ValueError: If the target is malformed or not a JobSource.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Invalid target '{target}'. Expected 'package.module:JobSourceClass'.")
    try:
        obj = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ValueError(f"Cannot load '{target}': {e}") from e
    if isinstance(obj, type) and issubclass(obj, JobSource):
        obj = obj()
    if not isinstance(obj, JobSource):
        raise ValueError(f"'{target}' is not a JobSource.")
    return obj


def handle_start_command(args: List[str]) -> int:
    """Starts a daemon in the foreground, or in the background with --daemonize."""
    positionals, options = parse_options(args)
    if not positionals:
        print("Usage: start <package.module:JobSourceClass> [--option=value ...]")
        return EXIT_CODE_ERROR

    try:
        source = load_job_source(positionals[0])
        settings = DaemonSettings({k: v for k, v in options.items() if k not in CONSOLE_OPTIONS})
    except ValueError as e:
        log.error(str(e))
        return EXIT_CODE_ERROR

    supervisor = Supervisor.from_source(source, name=options.get("name") or None, settings=settings)
    return supervisor.start(verbose=bool(options.get("verbose")))


def _resolve_pid(args: List[str]) -> Tuple[str, Any, Any]:
    positionals, options = parse_options(args)
    if not positionals:
        raise ValueError("A daemon name is required.")
    name = positionals[0]
    settings = DaemonSettings({k: v for k, v in options.items() if k not in CONSOLE_OPTIONS})
    pid_path = persistence.get_pid_path(settings.PID_DIR, name)
    return name, pid_path, settings


def handle_stop_command(args: List[str]) -> int:
    """
    Asks a running daemon to stop by sending it SIGTERM, then waits for it.
    Live worker children are left to finish on their own.
    """
    try:
        name, pid_path, settings = _resolve_pid(args)
    except ValueError as e:
        log.error(str(e))
        return EXIT_CODE_ERROR

    pid = persistence.read_pid_file(pid_path)
    if pid is None or not psutil.pid_exists(pid):
        log.info(f"Daemon '{name}' is not running.")
        persistence.remove_pid_file(pid_path)
        return EXIT_CODE_NORMAL

    try:
        proc = psutil.Process(pid)
        proc.send_signal(signal.SIGTERM)
        log.info(f"Sent SIGTERM to daemon '{name}' (PID {pid}). Waiting up to {settings.STOP_TIMEOUT}s...")
        _, alive = psutil.wait_procs([proc], timeout=settings.STOP_TIMEOUT)
    except psutil.NoSuchProcess:
        alive = []
    except psutil.AccessDenied as e:
        log.error(f"Not allowed to signal daemon '{name}' (PID {pid}): {e}")
        return EXIT_CODE_ERROR

    if alive:
        log.warning(f"Daemon '{name}' (PID {pid}) is still finishing its current iteration.")
        return EXIT_CODE_ERROR
    log.info(f"Daemon '{name}' stopped.")
    return EXIT_CODE_NORMAL


def display_status(args: List[str]) -> int:
    """Shows whether a daemon is running, with its memory and live worker count."""
    try:
        name, pid_path, _ = _resolve_pid(args)
    except ValueError as e:
        log.error(str(e))
        return EXIT_CODE_ERROR

    pid = persistence.read_pid_file(pid_path)
    if pid is None:
        print(f"\nDaemon '{name}' is STOPPED (No PID file found).\n")
        return EXIT_CODE_NORMAL

    try:
        p = psutil.Process(pid)
        mem = p.memory_info().rss
        workers = len(p.children())
        print(f"\nDaemon '{name}' is RUNNING")
        print(f"  PID {pid:<8} | Status: {p.status().upper()} | MEM: {mem/1024/1024:.1f} MB | Workers: {workers}\n")
    except psutil.NoSuchProcess:
        print(f"\nDaemon '{name}' is STOPPED (Stale PID {pid}).\n")
    except psutil.AccessDenied:
        print(f"\nDaemon '{name}' is RUNNING (PID {pid}, Access Denied).\n")
    return EXIT_CODE_NORMAL


def print_help() -> int:
    """Prints the main help text for the console."""
    print("\nAvailable commands:")
    print("  start <module:Class> [options]  - Run a daemon built from a JobSource.")
    print("      --daemonize                  detach from the terminal")
    print("      --multi-instance             run each job in a forked worker")
    print("      --max-child-processes=N      worker ceiling (default 10)")
    print("      --sleep-interval=N           seconds to wait when no jobs are pending (default 5)")
    print("      --memory-limit=N             supervisor memory ceiling in bytes (default 256 MiB)")
    print("      --name=NAME                  daemon name (default: class name)")
    print("      --verbose                    show DEBUG output")
    print("  stop <name>                     - Ask a running daemon to stop.")
    print("  status <name>                   - Show whether a daemon is running.")
    print("  help                            - Show this help message.")
    print()
    return EXIT_CODE_NORMAL
