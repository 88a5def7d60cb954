import sys
import logging
from typing import List, Optional

# Basic console logger for messages BEFORE a daemon configures its own logging.
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)-8s - [console] - %(message)s',
    stream=sys.stdout
)
log = logging.getLogger("console")

from jobdaemon.local import console  # noqa: E402


def main(argv: Optional[List[str]] = None) -> int:
    """The main entry point for the console application."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        return console.print_help()

    command, args = argv[0].lower(), argv[1:]
    try:
        return console.execute_command(command, args)
    except KeyboardInterrupt:
        log.warning("Interrupted.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
