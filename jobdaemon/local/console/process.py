import logging
from typing import List
from jobdaemon.local.supervisor.shutdown import EXIT_CODE_ERROR
from jobdaemon.local.console.handler import display_status, handle_start_command, handle_stop_command, print_help

log = logging.getLogger(__name__)


def execute_command(command: str, args: List[str]) -> int:
    """
    Executes a single console command.

    :param command: The main command string (e.g., 'start', 'stop').
    :param args: A list of arguments for the command.
    :return int: The exit code of the command.
    """
    log.debug(f"Executing command: {command}, args: {args}")
    command_map = {
        "start": lambda: handle_start_command(args),
        "stop": lambda: handle_stop_command(args),
        "status": lambda: display_status(args),
        "help": print_help,
    }

    if command in command_map:
        return command_map[command]()

    log.info(f"Unknown command: '{command}'. Type 'help' for a list of commands.")
    return EXIT_CODE_ERROR
