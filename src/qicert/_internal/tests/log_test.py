"""Tests for qicert._internal.log."""
import io
import logging
import os
import shutil
import sys
import unittest
from unittest import mock

import pytest

from qicert import errors
from qicert import util
from qicert._internal import constants
from qicert._internal import log
from qicert.tests import util as test_util


def _exc_info(exc):
    try:
        raise exc
    except BaseException:  # pylint: disable=broad-except
        return sys.exc_info()


class _RootLoggerMixin:
    """Restores the root logger and sys.excepthook after each test."""

    def _save_logging(self):
        root_logger = logging.getLogger()
        handlers = list(root_logger.handlers)
        level = root_logger.level
        excepthook = sys.excepthook

        def restore():
            for handler in root_logger.handlers:
                if handler not in handlers:
                    handler.close()
            root_logger.handlers = handlers
            root_logger.setLevel(level)
            sys.excepthook = excepthook
        self.addCleanup(restore)


class PreArgParseSetupTest(_RootLoggerMixin, unittest.TestCase):
    """Tests for qicert._internal.log.pre_arg_parse_setup."""

    def setUp(self):
        self._save_logging()
        logging.getLogger().handlers = []

    def _call(self, argv):
        with mock.patch.object(sys, 'argv', argv):
            log.pre_arg_parse_setup()
        return logging.getLogger().handlers

    def test_handlers(self):
        handlers = self._call(['qicert', 'nginx'])
        assert logging.getLogger().level == logging.DEBUG
        assert [type(handler) for handler in handlers] == [
            log.BufferHandler, log.ColoredStreamHandler]
        assert handlers[1].level == constants.QUIET_LOGGING_LEVEL

    def test_records_are_buffered(self):
        buffer_handler = self._call(['qicert'])[0]
        logging.getLogger('qicert.test').debug('parsing %s', 'arguments')
        assert [record.getMessage() for record in buffer_handler.buffer] == [
            'parsing arguments']

    def test_reporter_flags(self):
        self._call(['qicert', '--debug', '-q'])
        assert isinstance(sys.excepthook, log.ErrorReporter)
        assert sys.excepthook.debug
        assert sys.excepthook.quiet
        assert sys.excepthook.log_path is None

    def test_reporter_defaults(self):
        self._call(['qicert', 'apache'])
        assert not sys.excepthook.debug
        assert not sys.excepthook.quiet


class PostArgParseSetupTest(_RootLoggerMixin, test_util.ConfigTestCase):
    """Tests for qicert._internal.log.post_arg_parse_setup."""

    def setUp(self):
        super().setUp()
        self._save_logging()
        logging.getLogger().handlers = []
        with mock.patch.object(sys, 'argv', ['qicert']):
            log.pre_arg_parse_setup()
        self.log_path = os.path.join(self.config.logs_dir, constants.LOG_FILE)

    def _call(self):
        with mock.patch('sys.stderr', new_callable=io.StringIO) as stderr:
            log.post_arg_parse_setup(self.config)
        return stderr.getvalue()

    def _stream_handler(self):
        handlers = [handler for handler in logging.getLogger().handlers
                    if isinstance(handler, log.ColoredStreamHandler)]
        assert len(handlers) == 1
        return handlers[0]

    def test_buffer_replayed_into_log_file(self):
        logging.getLogger('qicert.test').debug('before the log file')
        self._call()
        logging.getLogger('qicert.test').info('after the log file')
        logging.shutdown()

        with open(self.log_path) as handle:
            content = handle.read()
        assert 'before the log file' in content
        assert 'after the log file' in content
        assert not any(isinstance(handler, log.BufferHandler)
                       for handler in logging.getLogger().handlers)

    def test_announces_log_file(self):
        assert self.log_path in self._call()

    def test_quiet(self):
        self.config.quiet = True
        assert self._call() == ''
        assert self._stream_handler().level == constants.QUIET_LOGGING_LEVEL
        assert sys.excepthook.quiet

    def test_verbose(self):
        self.config.verbose_count = 1
        self._call()
        assert self._stream_handler().level == logging.INFO

    def test_reporter_points_at_log_file(self):
        self.config.debug = True
        self._call()
        assert isinstance(sys.excepthook, log.ErrorReporter)
        assert sys.excepthook.log_path == self.log_path
        assert sys.excepthook.debug


class TerminalLevelTest(test_util.ConfigTestCase):
    """Tests for qicert._internal.log.terminal_level."""

    def test_default(self):
        assert log.terminal_level(self.config) == logging.WARNING

    def test_each_flag_shows_one_level_more(self):
        self.config.verbose_count = 1
        assert log.terminal_level(self.config) == logging.INFO
        self.config.verbose_count = 2
        assert log.terminal_level(self.config) == logging.DEBUG

    def test_never_below_debug(self):
        self.config.verbose_count = 5
        assert log.terminal_level(self.config) == logging.DEBUG

    def test_quiet_wins(self):
        self.config.verbose_count = 2
        self.config.quiet = True
        assert log.terminal_level(self.config) == logging.ERROR


class SetupLogFileHandlerTest(test_util.ConfigTestCase):
    """Tests for qicert._internal.log.setup_log_file_handler."""

    def _call(self):
        handler, path = log.setup_log_file_handler(self.config)
        self.addCleanup(handler.close)
        return handler, path

    def test_logs_dir(self):
        handler, path = self._call()
        assert path == os.path.join(self.config.logs_dir, 'qicert.log')
        assert handler.level == logging.DEBUG
        assert os.path.isdir(self.config.logs_dir)

    def test_one_file_per_run(self):
        self.config.max_log_backups = 2
        for _ in range(3):
            handler, _ = self._call()
            handler.close()
        assert sorted(os.listdir(self.config.logs_dir)) == [
            'qicert.log', 'qicert.log.1', 'qicert.log.2']

    def test_no_rotation(self):
        self.config.max_log_backups = 0
        first, _ = self._call()
        first.close()
        self._call()
        assert os.listdir(self.config.logs_dir) == ['qicert.log']

    def test_unusable_logs_dir(self):
        with open(self.config.logs_dir, 'w'):
            pass
        with mock.patch('qicert._internal.log.logger') as mock_logger:
            _, path = self._call()
        self.addCleanup(shutil.rmtree, os.path.dirname(path))
        assert not path.startswith(self.config.logs_dir)
        assert os.path.basename(os.path.dirname(path)).startswith('qicert_log')
        assert self.config.logs_dir in mock_logger.warning.call_args[0]

    @mock.patch('qicert._internal.log.tempfile.mkdtemp')
    @mock.patch('qicert._internal.log.util.make_or_verify_dir')
    def test_no_log_file_at_all(self, mock_make_dir, mock_mkdtemp):
        mock_mkdtemp.return_value = os.path.join(self.tempdir, 'fallback')
        mock_make_dir.side_effect = OSError('read-only file system')
        with pytest.raises(errors.Error) as excinfo:
            log.setup_log_file_handler(self.config)
        assert 'read-only file system' in str(excinfo.value)
        assert '--logs-dir' in str(excinfo.value)


class ColoredStreamHandlerTest(unittest.TestCase):
    """Tests for qicert._internal.log.ColoredStreamHandler."""

    def _handler(self, tty):
        stream = io.StringIO()
        stream.isatty = lambda: tty
        handler = log.ColoredStreamHandler(stream)
        handler.setFormatter(logging.Formatter(log.CLI_FMT))
        return handler, stream

    def _emit(self, handler, level, msg):
        handler.handle(logging.LogRecord(
            'qicert.test', level, __file__, 1, msg, None, None))

    def test_tty(self):
        handler, stream = self._handler(tty=True)
        self._emit(handler, logging.INFO, 'reloaded')
        self._emit(handler, logging.ERROR, 'reload failed')
        assert stream.getvalue() == 'reloaded\n{0}reload failed{1}\n'.format(
            util.ANSI_SGR_RED, util.ANSI_SGR_RESET)

    def test_not_a_tty(self):
        handler, stream = self._handler(tty=False)
        self._emit(handler, logging.WARNING, 'continuing without a new web root')
        assert stream.getvalue() == 'continuing without a new web root\n'


class BufferHandlerTest(unittest.TestCase):
    """Tests for qicert._internal.log.BufferHandler."""

    def setUp(self):
        self.handler = log.BufferHandler()
        self.logger = logging.getLogger('qicert.buffer_test')
        self.logger.propagate = False
        self.logger.setLevel(logging.DEBUG)
        self.logger.addHandler(self.handler)
        self.addCleanup(self.logger.removeHandler, self.handler)
        self.addCleanup(setattr, self.logger, 'propagate', True)

    def test_never_flushes_on_its_own(self):
        for i in range(50):
            self.logger.error('error %d', i)
        self.handler.flush()
        assert len(self.handler.buffer) == 50

    def test_replay(self):
        self.logger.debug('chown www-data:www-data example.com.conf')
        self.logger.warning('web root exists')
        target = mock.MagicMock(level=logging.INFO)

        self.handler.replay(target)

        assert [call[0][0].getMessage() for call in target.handle.call_args_list] == [
            'web root exists']
        assert self.handler.buffer == []


class ErrorReporterTest(unittest.TestCase):
    """Tests for qicert._internal.log.ErrorReporter."""

    def setUp(self):
        self.log_path = '/var/log/qicert/qicert.log'
        self.reporter = log.ErrorReporter(log_path=self.log_path)
        patcher = mock.patch('qicert._internal.log.logger')
        self.mock_logger = patcher.start()
        self.addCleanup(patcher.stop)

    def _report(self, exc, reporter=None):
        with pytest.raises(SystemExit) as excinfo:
            (reporter or self.reporter)(*_exc_info(exc))
        return excinfo.value.code

    def _errors(self):
        return [call[0][0] for call in self.mock_logger.error.call_args_list]

    def test_qicert_error(self):
        code = self._report(errors.IssuanceError('certbot failed'))
        assert self._errors() == ['certbot failed']
        assert self.log_path in code
        assert self.mock_logger.debug.call_args[1]['exc_info'][0] is errors.IssuanceError

    def test_lock_error(self):
        self._report(errors.LockError('locked'))
        assert self._errors()[0] == 'locked'
        assert 'Another qicert run' in self._errors()[1]

    def test_invalid_input(self):
        self._report(errors.TldTooShort('c'))
        assert 'qicert --help' in self._errors()[1]
        self.mock_logger.reset_mock()
        self._report(errors.ConfigurationError('bad backend'))
        assert 'qicert --help' in self._errors()[1]

    def test_backup_hint(self):
        err = errors.ReloadError('reload failed')
        err.backup_path = '/etc/nginx/sites-available/example.com.conf.bak'
        self._report(err)
        assert self._errors()[0] == 'reload failed'
        assert err.backup_path in self._errors()[1]

    def test_no_hint(self):
        self._report(errors.NoInstallationError('no nginx'))
        assert self._errors() == ['no nginx']

    def test_unexpected_error(self):
        code = self._report(ValueError('boom'))
        assert self._errors() == ['An unexpected error occurred:', 'ValueError: boom']
        assert self.log_path in code

    def test_keyboard_interrupt(self):
        assert self._report(KeyboardInterrupt()) == 1
        assert self._errors() == ['Exiting due to user request.']

    def test_debug(self):
        reporter = log.ErrorReporter(debug=True, log_path=self.log_path)
        self._report(errors.IssuanceError('certbot failed'), reporter)
        assert self.mock_logger.error.call_args_list[0][0] == ('Exiting abnormally:',)
        assert 'exc_info' in self.mock_logger.error.call_args_list[0][1]

    def test_quiet(self):
        reporter = log.ErrorReporter(quiet=True, log_path=self.log_path)
        assert self._report(errors.IssuanceError('failed'), reporter) == 1

    def test_before_arguments_are_parsed(self):
        code = self._report(errors.Error('failed'), log.ErrorReporter())
        assert '--debug' in code


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
