import sys
import logging
from typing import Optional

log = logging.getLogger(__name__)

EXIT_CODE_NORMAL = 0
EXIT_CODE_ERROR = 1
EXIT_CODE_LOG_ONLY = -1  # log the message, keep the process running


def halt(code: int, message: Optional[str] = None) -> None:
    """
    The single exit path of the daemon.

    The message is logged as an error for EXIT_CODE_ERROR and at INFO
    otherwise, so it reaches the terminal at default verbosity. Terminal
    echo is done by the console log handler, which only exists while the
    daemon is attached to a terminal.

    :param code: EXIT_CODE_NORMAL, EXIT_CODE_ERROR or EXIT_CODE_LOG_ONLY.
    :param message: Optional message to log before exiting.
    """
    if message is not None:
        if code == EXIT_CODE_ERROR:
            log.error(message)
        else:
            log.info(message)
    if code != EXIT_CODE_LOG_ONLY:
        sys.exit(code)
