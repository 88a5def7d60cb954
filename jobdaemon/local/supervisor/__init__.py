"""
The Supervisor package.
Runs the job scheduling loop of a daemon and manages its worker children.

This package contains the central Supervisor class and its helper modules,
which together handle job dispatch, worker tracking, signal routing, PID
file bookkeeping and daemonization.
"""
from .supervisor import Supervisor
from .shutdown import EXIT_CODE_ERROR, EXIT_CODE_LOG_ONLY, EXIT_CODE_NORMAL, halt
from .workers import WorkerPool

__all__ = ['Supervisor', 'WorkerPool', 'halt', 'EXIT_CODE_NORMAL', 'EXIT_CODE_ERROR', 'EXIT_CODE_LOG_ONLY']
