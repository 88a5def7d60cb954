import os
import contextlib
import logging
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)


def get_pid_path(pid_dir: Path, name: str) -> Path:
    """Returns the PID file location for a daemon name."""
    return Path(pid_dir) / name


def read_pid_file(pid_path: Path) -> Optional[int]:
    """
    Reads the PID stored in a PID file.

    :param pid_path: The PID file location.
    :return: The PID if the file exists and is valid, else None.
    """
    try:
        return int(Path(pid_path).read_text().strip())
    except FileNotFoundError:
        return None
    except (ValueError, OSError) as e:
        log.warning(f"Could not read PID file '{pid_path}', assuming stale: {e}")
        return None


def write_pid_file(pid_path: Path, pid: Optional[int] = None) -> bool:
    """
    Atomically writes the supervisor PID to the PID file.

    :param pid_path: The PID file location.
    :param pid: The PID to record, defaults to the current process.
    :return: True on success, False if the file could not be written.
    """
    pid = os.getpid() if pid is None else pid
    pid_path = Path(pid_path)
    temp_pid_path = pid_path.with_name(pid_path.name + ".tmp")
    try:
        pid_path.parent.mkdir(mode=0o744, parents=True, exist_ok=True)
        temp_pid_path.write_text(str(pid))
        temp_pid_path.replace(pid_path)
        return True
    except OSError as e:
        log.error(f"Failed to write PID file '{pid_path}': {e}")
        with contextlib.suppress(OSError):
            temp_pid_path.unlink(missing_ok=True)
        return False


def remove_pid_file(pid_path: Path) -> None:
    try:
        Path(pid_path).unlink(missing_ok=True)
    except OSError as e:
        log.error(f"Failed to remove PID file '{pid_path}': {e}")
