"""Implements advisory file locks, used to serialize runs on one configuration file."""
import errno
import fcntl
import logging
import os
from typing import Optional

from qicert import errors
from qicert._internal import constants

logger = logging.getLogger(__name__)


def lock_file_path(path: str) -> str:
    """Path of the lock file guarding path.

    The lock file is a hidden sibling of path, e.g. ``.example.com.conf.lock``
    for ``example.com.conf``.

    :param str path: path to the guarded file

    :rtype: str

    """
    directory, name = os.path.split(path)
    return os.path.join(directory, constants.LOCK_FILE_FMT.format(name))


def lock_for(path: str) -> 'LockFile':
    """Place a lock file next to the file at path.

    :param str path: path to the guarded file

    :returns: the locked LockFile object
    :rtype: LockFile

    :raises errors.LockError: if unable to acquire the lock

    """
    return LockFile(lock_file_path(path))


class LockFile:
    """A UNIX lock file.

    The lock is acquired when the object is created and released by
    :meth:`release` or by leaving the ``with`` block using it. The lock
    file is removed on release. It is also released when the process
    exits, but the file is then left behind. It cannot be used to
    synchronize threads of the same process.

    """
    def __init__(self, path: str) -> None:
        """Create a LockFile instance on the given file path, and acquire lock.

        :param str path: the path to the file that will hold a lock

        """
        self._path = path
        self._fd: Optional[int] = None

        self.acquire()

    def __repr__(self) -> str:
        repr_str = '{0}({1}) <'.format(self.__class__.__name__, self._path)
        if self.is_locked():
            repr_str += 'acquired>'
        else:
            repr_str += 'released>'
        return repr_str

    def __enter__(self) -> 'LockFile':
        return self

    def __exit__(self, *args: object) -> None:
        if self.is_locked():
            self.release()

    def acquire(self) -> None:
        """Acquire the lock.

        :raises errors.LockError: if the lock is held by another process

        """
        while self._fd is None:
            # Open the file
            fd = os.open(self._path, os.O_CREAT | os.O_WRONLY, 0o600)
            try:
                self._try_lock(fd)
                if self._lock_success(fd):
                    self._fd = fd
            finally:
                # Close the file if it is not the required one
                if self._fd is None:
                    os.close(fd)

    def _try_lock(self, fd: int) -> None:
        """Try to acquire the lock file without blocking.

        :param int fd: file descriptor of the opened file to lock

        """
        try:
            fcntl.lockf(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as err:
            if err.errno in (errno.EACCES, errno.EAGAIN):
                logger.debug('A lock on %s is held by another process.', self._path)
                raise errors.LockError(
                    'Another instance of qicert is already working on {0}.'.format(
                        self._path))
            raise

    def _lock_success(self, fd: int) -> bool:
        """Did we successfully grab the lock?

        Because this class deletes the locked file when the lock is
        released, it is possible another process removed and recreated
        the file between us opening the file and acquiring the lock.

        :param int fd: file descriptor of the opened file to lock

        :returns: True if the lock was successfully acquired
        :rtype: bool

        """
        try:
            stat1 = os.stat(self._path)
        except OSError as err:
            if err.errno == errno.ENOENT:
                return False
            raise

        stat2 = os.fstat(fd)
        # If our locked file descriptor and the file on disk refer to
        # the same device and inode, they're the same file.
        return stat1.st_dev == stat2.st_dev and stat1.st_ino == stat2.st_ino

    def release(self) -> None:
        """Remove, close, and release the lock file."""
        # The lock file must be removed before it is released, otherwise
        # another process could lock a file that is about to be deleted.
        try:
            os.remove(self._path)
        finally:
            if self._fd is None:  # pragma: no cover
                raise TypeError('Error, self._fd is None.')
            try:
                os.close(self._fd)
            finally:
                self._fd = None

    def is_locked(self) -> bool:
        """Check if the file is currently locked.

        :returns: True if the file is locked, False otherwise
        :rtype: bool

        """
        return self._fd is not None
