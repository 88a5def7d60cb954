"""
jobdaemon: a single-process daemon supervisor.

A daemon pulls batches of jobs from a pluggable source, runs each job inline
or in a forked worker child, keeps the number of live workers under a
ceiling and stops on SIGTERM or when it outgrows its memory limit.
"""

from .jobs import JobSource, extract_first
from .hooks import (
    DaemonEvent,
    EventHooks,
    EVENT_AFTER_ITERATION,
    EVENT_AFTER_JOB,
    EVENT_BEFORE_ITERATION,
    EVENT_BEFORE_JOB,
)
from .local.config import DaemonSettings
from .local.supervisor import Supervisor, EXIT_CODE_ERROR, EXIT_CODE_LOG_ONLY, EXIT_CODE_NORMAL

__all__ = [
    "JobSource",
    "extract_first",
    "DaemonEvent",
    "EventHooks",
    "EVENT_BEFORE_ITERATION",
    "EVENT_AFTER_ITERATION",
    "EVENT_BEFORE_JOB",
    "EVENT_AFTER_JOB",
    "DaemonSettings",
    "Supervisor",
    "EXIT_CODE_NORMAL",
    "EXIT_CODE_ERROR",
    "EXIT_CODE_LOG_ONLY",
]
