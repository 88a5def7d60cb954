"""
Logging module for the job daemon.
This module provides the logging setup shared by the console and the supervisor.
"""

from .setup import setup_logging, flush_handlers, ConsoleFormatter

__all__ = ["setup_logging", "flush_handlers", "ConsoleFormatter"]
