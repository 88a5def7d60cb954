"""
Local package of the job daemon.

This package holds the per-daemon configuration, the supervisor that runs
the scheduling loop and the console commands that control it.
"""

from .config import DaemonSettings

__all__ = ["DaemonSettings"]
