"""Logging and fatal error reporting for qicert.

Records are buffered in memory until the command line is parsed, so the
debug log in ``logs_dir`` also holds what happened before it could be
opened. The terminal shows warnings and errors only, unless ``-v`` or
``-q`` say otherwise. A failed run is reported by `ErrorReporter`,
installed as `sys.excepthook`.

"""
import logging
import logging.handlers
import os
import sys
import tempfile
import traceback
from types import TracebackType
from typing import IO
from typing import Optional
from typing import Tuple
from typing import Type

from qicert import configuration
from qicert import errors
from qicert import util
from qicert._internal import constants

CLI_FMT = "%(message)s"
FILE_FMT = "%(asctime)s:%(levelname)s:%(name)s:%(message)s"

MAX_LOG_BYTES = 2 ** 20

logger = logging.getLogger(__name__)


def pre_arg_parse_setup() -> None:
    """Start logging before the command line is parsed.

    Only errors reach the terminal at this point. Every record is kept in
    memory for the debug log opened by `post_arg_parse_setup`.

    """
    stream_handler = ColoredStreamHandler()
    stream_handler.setFormatter(logging.Formatter(CLI_FMT))
    stream_handler.setLevel(constants.QUIET_LOGGING_LEVEL)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(BufferHandler())
    root_logger.addHandler(stream_handler)

    sys.excepthook = ErrorReporter(
        debug='--debug' in sys.argv,
        quiet='--quiet' in sys.argv or '-q' in sys.argv)


def post_arg_parse_setup(config: configuration.NamespaceConfig) -> None:
    """Open the debug log and apply the verbosity from the command line.

    :param qicert.configuration.NamespaceConfig config: Configuration object

    """
    file_handler, log_path = setup_log_file_handler(config)

    root_logger = logging.getLogger()
    root_logger.addHandler(file_handler)
    for handler in list(root_logger.handlers):
        if isinstance(handler, BufferHandler):
            root_logger.removeHandler(handler)
            handler.replay(file_handler)
        elif isinstance(handler, ColoredStreamHandler):
            handler.setLevel(terminal_level(config))

    if not config.quiet:
        print('Saving debug log to {0}'.format(log_path), file=sys.stderr)

    sys.excepthook = ErrorReporter(
        debug=config.debug, quiet=config.quiet, log_path=log_path)


def terminal_level(config: configuration.NamespaceConfig) -> int:
    """Level of the terminal handler: each ``-v`` shows one level more."""
    if config.quiet:
        return constants.QUIET_LOGGING_LEVEL
    return max(logging.DEBUG,
               constants.DEFAULT_LOGGING_LEVEL - 10 * config.verbose_count)


def setup_log_file_handler(
        config: configuration.NamespaceConfig) -> Tuple[logging.Handler, str]:
    """Open the rotating debug log.

    When ``logs_dir`` cannot be used, the log goes to a new temporary
    directory instead.

    :returns: file handler and absolute path to the log file
    :rtype: tuple

    :raises .errors.Error: if no log file can be opened at all

    """
    try:
        handler, log_path = _rotating_file_handler(config.logs_dir, config.max_log_backups)
    except OSError as error:
        fallback_dir = tempfile.mkdtemp(prefix='qicert_log')
        logger.warning('Cannot write to %s (%s), logging to %s instead',
                       config.logs_dir, error, fallback_dir)
        try:
            handler, log_path = _rotating_file_handler(fallback_dir, config.max_log_backups)
        except OSError as fallback_error:
            raise errors.Error(util.PERM_ERR_FMT.format(fallback_error))
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FMT))
    return handler, log_path


def _rotating_file_handler(logs_dir: str,
                           backup_count: int) -> Tuple[logging.Handler, str]:
    util.make_or_verify_dir(logs_dir, 0o700)
    log_path = os.path.join(logs_dir, constants.LOG_FILE)
    handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=MAX_LOG_BYTES, backupCount=backup_count)
    # one file per run
    if backup_count:
        handler.doRollover()
    return handler, log_path


class ColoredStreamHandler(logging.StreamHandler):
    """Writes warnings and errors in red when the stream is a terminal."""

    def __init__(self, stream: Optional[IO] = None) -> None:
        super().__init__(stream)
        self.colored = (sys.stderr if stream is None else stream).isatty()

    def format(self, record: logging.LogRecord) -> str:
        out = super().format(record)
        if self.colored and record.levelno >= logging.WARNING:
            return ''.join((util.ANSI_SGR_RED, out, util.ANSI_SGR_RESET))
        return out


class BufferHandler(logging.handlers.MemoryHandler):
    """Keeps every record until the debug log is open.

    The buffer is never flushed on its own, not even by
    `logging.shutdown`; `replay` hands it over once.

    """
    def __init__(self) -> None:
        super().__init__(capacity=0)

    def shouldFlush(self, record: logging.LogRecord) -> bool:
        return False

    def flush(self) -> None:
        pass

    def replay(self, target: logging.Handler) -> None:
        """Send the buffered records to target and close the buffer."""
        self.acquire()
        try:
            for record in self.buffer:
                if record.levelno >= target.level:
                    target.handle(record)
            self.buffer = []
        finally:
            self.release()
        self.close()


class ErrorReporter:
    """`sys.excepthook` turning a failed run into a message and an exit.

    qicert errors are shown as their message, followed by what the user
    can do about them. Anything else is reported as unexpected. The
    traceback always goes to the debug log, and also to the terminal
    with ``--debug``. The exit status is nonzero.

    :ivar bool debug: show tracebacks on the terminal
    :ivar bool quiet: exit without pointing at the debug log
    :ivar log_path: debug log, not known before the command line is parsed
    :vartype log_path: str or None

    """

    def __init__(self, debug: bool = False, quiet: bool = False,
                 log_path: Optional[str] = None) -> None:
        self.debug = debug
        self.quiet = quiet
        self.log_path = log_path

    def __call__(self, exc_type: Type[BaseException], exc_value: BaseException,
                 trace: Optional[TracebackType]) -> None:
        exc_info = (exc_type, exc_value, trace)
        if exc_type is KeyboardInterrupt:
            logger.debug('Interrupted:', exc_info=exc_info)
            logger.error('Exiting due to user request.')
            sys.exit(1)

        if self.debug or not issubclass(exc_type, Exception):
            logger.error('Exiting abnormally:', exc_info=exc_info)
        else:
            logger.debug('Exiting abnormally:', exc_info=exc_info)
            if issubclass(exc_type, errors.Error):
                logger.error(str(exc_value))
            else:
                logger.error('An unexpected error occurred:')
                logger.error(''.join(
                    traceback.format_exception_only(exc_type, exc_value)).rstrip())

        for hint in self.hints(exc_value):
            logger.error(hint)
        self.exit()

    @staticmethod
    def hints(exc_value: BaseException) -> Tuple[str, ...]:
        """Advice following the message of a qicert error."""
        if not isinstance(exc_value, errors.Error):
            return ()
        hints = []
        if isinstance(exc_value, errors.LockError):
            hints.append('Another qicert run is configuring this domain. '
                         'Run qicert again once it has finished.')
        elif isinstance(exc_value, (errors.DomainError, errors.ConfigurationError)):
            hints.append('Nothing was changed. See qicert --help for the '
                         'expected options.')
        if exc_value.backup_path is not None:
            hints.append('The configuration file as it was before this run '
                         'is saved in {0}'.format(exc_value.backup_path))
        return tuple(hints)

    def exit(self) -> None:
        """Exit with a nonzero status, pointing at the debug log."""
        if self.quiet:
            sys.exit(1)
        if self.log_path is None:
            sys.exit('Re-run qicert with --debug for more details.')
        sys.exit('See the logfile {0} or re-run qicert with -v for more '
                 'details.'.format(self.log_path))
