"""
This module initializes the console package, exposing command execution
and the individual command handlers.
"""

from .process import execute_command
from .handler import load_job_source, parse_options, print_help

__all__ = ["execute_command", "load_job_source", "parse_options", "print_help"]
