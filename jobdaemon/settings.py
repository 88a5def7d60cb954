"""
This module contains the default configuration settings for the job daemon.
It defines runtime paths, scheduler limits and logging locations.
Every value can be overridden through the environment (or a .env file),
through overrides.json for the modifiable subset, or explicitly per daemon.
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)


def _env_flag(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 't', 'yes', 'y')


#* --- Core Paths ---
RUNTIME_DIR = pathlib.Path(os.getenv("JOBDAEMON_RUNTIME_DIR", pathlib.Path.cwd() / "runtime"))
PID_DIR = RUNTIME_DIR / "daemons" / "pids"
LOG_DIR = RUNTIME_DIR / "daemons" / "logs"
OVERRIDES_JSON_PATH = RUNTIME_DIR / "overrides.json"

#* --- Daemon Behaviour ---
DAEMONIZE = _env_flag("JOBDAEMON_DAEMONIZE")
MULTI_INSTANCE = _env_flag("JOBDAEMON_MULTI_INSTANCE")
PROCESS_TITLE_PREFIX = os.getenv("JOBDAEMON_PROCESS_TITLE", "JobDaemon")

#* --- Scheduler Settings ---
MAX_CHILD_PROCESSES = int(os.getenv("JOBDAEMON_MAX_CHILD_PROCESSES", "10"))
SLEEP_INTERVAL = int(os.getenv("JOBDAEMON_SLEEP_INTERVAL", "5"))    # seconds between polls of an empty source
WAIT_INTERVAL = 1                                                  # seconds between free-slot checks
MEMORY_LIMIT = int(os.getenv("JOBDAEMON_MEMORY_LIMIT", str(256 * 1024 * 1024)))  # bytes, supervisor RSS
STOP_TIMEOUT = 30  # seconds the 'stop' command waits for the supervisor to exit

#* --- MODIFIABLE SETTINGS (Changeable through overrides.json) ---
MODIFIABLE_SETTINGS = {
    "MULTI_INSTANCE",
    "MAX_CHILD_PROCESSES",
    "SLEEP_INTERVAL",
    "MEMORY_LIMIT",
    "STOP_TIMEOUT",
}
