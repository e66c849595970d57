"""Runs qicert."""
import logging
import sys

from qicert._internal import main as qicert_main

logger = logging.getLogger(__name__)


def main() -> None:
    """Runs qicert, logs any returned message, and calls sys.exit.

    If qicert._internal.main.main returns a non-empty string, it is passed
    to sys.exit causing a non-zero status code and the string to be
    printed to stderr.

    """
    err_string = qicert_main.main()
    if err_string:
        logger.debug('Exiting with message %s', err_string)
    sys.exit(err_string)


if __name__ == '__main__':
    main()  # pragma: no cover
