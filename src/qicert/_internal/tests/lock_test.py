"""Tests for qicert._internal.lock."""
import functools
import multiprocessing
import os
import sys
from unittest import mock

import pytest

from qicert import errors
from qicert._internal import lock
from qicert.tests import util as test_util


class LockFilePathTest(test_util.TempDirTestCase):
    """Tests for qicert._internal.lock.lock_file_path."""

    def test_hidden_sibling(self):
        path = os.path.join(self.tempdir, 'example.com.conf')
        assert lock.lock_file_path(path) == os.path.join(
            self.tempdir, '.example.com.conf.lock')

    def test_lock_for(self):
        path = os.path.join(self.tempdir, 'example.com.conf')
        lock_file = lock.lock_for(path)
        try:
            assert lock_file.is_locked()
            assert os.path.exists(lock.lock_file_path(path))
            assert not os.path.exists(path)
        finally:
            lock_file.release()

    def test_contention(self):
        path = os.path.join(self.tempdir, 'example.com.conf')
        assert_raises = functools.partial(
            self.assertRaises, errors.LockError, lock.lock_for, path)
        test_util.lock_and_call(assert_raises, lock.lock_file_path(path))


class LockFileTest(test_util.TempDirTestCase):
    """Tests for qicert._internal.lock.LockFile."""
    @classmethod
    def _call(cls, *args, **kwargs):
        from qicert._internal.lock import LockFile
        return LockFile(*args, **kwargs)

    def setUp(self):
        super().setUp()
        self.lock_path = os.path.join(self.tempdir, 'test.lock')

    def test_acquire_without_deletion(self):
        # acquire the lock in another process but don't delete the file
        child = multiprocessing.Process(target=lock.LockFile,
                                        args=(self.lock_path,))
        child.start()
        child.join()
        assert child.exitcode == 0
        assert os.path.exists(self.lock_path)

        # Test we're still able to properly acquire and release the lock
        self.test_removed()

    def test_contention(self):
        assert_raises = functools.partial(
            self.assertRaises, errors.LockError, self._call, self.lock_path)
        test_util.lock_and_call(assert_raises, self.lock_path)

    def test_locked_repr(self):
        lock_file = self._call(self.lock_path)
        try:
            locked_repr = repr(lock_file)
            self._test_repr_common(lock_file, locked_repr)
            assert 'acquired' in locked_repr
        finally:
            lock_file.release()

    def test_released_repr(self):
        lock_file = self._call(self.lock_path)
        lock_file.release()
        released_repr = repr(lock_file)
        self._test_repr_common(lock_file, released_repr)
        assert 'released' in released_repr

    def _test_repr_common(self, lock_file, lock_repr):
        assert lock_file.__class__.__name__ in lock_repr
        assert self.lock_path in lock_repr

    def test_context_manager(self):
        with self._call(self.lock_path) as lock_file:
            assert lock_file.is_locked()
        assert not lock_file.is_locked()
        assert not os.path.exists(self.lock_path)

    def test_context_manager_after_release(self):
        with self._call(self.lock_path) as lock_file:
            lock_file.release()
        assert not lock_file.is_locked()

    def test_race(self):
        should_delete = [True, False]
        stat = os.stat

        def delete_and_stat(path, *args, **kwargs):
            """Wrap os.stat and maybe delete the file first."""
            if path == self.lock_path and should_delete.pop(0):
                os.remove(path)
            return stat(path, *args, **kwargs)

        with mock.patch('qicert._internal.lock.os.stat') as mock_stat:
            mock_stat.side_effect = delete_and_stat
            lock_file = self._call(self.lock_path)
        assert len(should_delete) == 0
        lock_file.release()

    def test_removed(self):
        lock_file = self._call(self.lock_path)
        lock_file.release()
        assert not os.path.exists(self.lock_path)

    def test_unexpected_lockf_err(self):
        msg = 'hi there'
        with mock.patch('qicert._internal.lock.fcntl.lockf') as mock_lock:
            mock_lock.side_effect = OSError(msg)
            try:
                self._call(self.lock_path)
            except OSError as err:
                assert msg in str(err)
            else:  # pragma: no cover
                self.fail('IOError not raised')

    def test_unexpected_os_err(self):
        # The only expected errno are ENOENT and EACCES in lock module.
        msg = 'hi there'
        with mock.patch('qicert._internal.lock.os.stat') as mock_os:
            mock_os.side_effect = OSError(msg)
            try:
                self._call(self.lock_path)
            except OSError as err:
                assert msg in str(err)
            else:  # pragma: no cover
                self.fail('OSError not raised')


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
