"""Utilities for all qicert."""
import errno
import logging
import os
import stat
import subprocess
import tempfile
from typing import Any
from typing import Callable
from typing import IO
from typing import List
from typing import Optional
from typing import Tuple

from qicert import errors

logger = logging.getLogger(__name__)


# ANSI SGR escape codes
# Colors text red
ANSI_SGR_RED = "\033[31m"
# Resets output format
ANSI_SGR_RESET = "\033[0m"


PERM_ERR_FMT = os.linesep.join((
    "The following error was encountered:", "{0}",
    "Either run as root, or set --logs-dir to a writeable path."))


def run_script(params: List[str], log: Callable[[str], None] = logger.error) -> Tuple[str, str]:
    """Run the script with the given params.

    :param list params: List of parameters to pass to subprocess.run
    :param callable log: Logger method to use for errors

    :returns: stdout and stderr of the command
    :rtype: tuple

    :raises .errors.SubprocessError: if the command cannot be run or
        exits with a non-zero status

    """
    logger.debug("Running %s", " ".join(params))
    try:
        proc = subprocess.run(params,
                              check=False,
                              stdout=subprocess.PIPE,
                              stderr=subprocess.PIPE,
                              universal_newlines=True)

    except (OSError, ValueError):
        msg = "Unable to run the command: %s" % " ".join(params)
        log(msg)
        raise errors.SubprocessError(msg)

    if proc.returncode != 0:
        msg = "Error while running %s.\n%s\n%s" % (
            " ".join(params), proc.stdout, proc.stderr)
        log(msg)
        raise errors.SubprocessError(msg)

    if proc.stdout or proc.stderr:
        logger.debug("Output of %s:\n%s%s", params[0], proc.stdout, proc.stderr)
    return proc.stdout, proc.stderr


def is_executable(path: str) -> bool:
    """Is path an executable file?

    :param str path: path to test

    :returns: True if path is an executable file
    :rtype: bool

    """
    return os.path.isfile(path) and os.access(path, os.X_OK)


def exe_exists(exe: str) -> bool:
    """Determine whether path/name refers to an executable.

    :param str exe: Executable path or name

    :returns: If exe is a valid executable
    :rtype: bool

    """
    path, _ = os.path.split(exe)
    if path:
        return is_executable(exe)
    for path in os.environ.get("PATH", os.defpath).split(os.pathsep):
        if is_executable(os.path.join(path, exe)):
            return True

    return False


def change_owner(path: str, owner: str, recursive: bool = False) -> None:
    """Hand path over to owner with the external chown utility.

    :param str path: file or directory
    :param str owner: ``user`` or ``user:group``
    :param bool recursive: also change everything below path

    :raises .errors.SubprocessError: if chown fails

    """
    params = ["chown"]
    if recursive:
        params.append("-R")
    params.extend([owner, path])
    run_script(params)


def make_or_verify_dir(directory: str, mode: int = 0o755) -> None:
    """Make sure directory exists.

    :param str directory: Path to a directory.
    :param int mode: Directory mode.

    :raises OSError: if invalid or inaccessible file names and
        paths, or other arguments that have the correct type,
        but are not accepted by the operating system.

    """
    try:
        os.makedirs(directory, mode)
    except OSError as exception:
        if exception.errno != errno.EEXIST or not os.path.isdir(directory):
            raise


def safe_open(path: str, mode: str = "w", chmod: Optional[int] = None) -> IO:
    """Safely open a file, failing if it already exists.

    :param str path: Path to a file.
    :param str mode: Same os `mode` for `open`.
    :param int chmod: Same as `mode` for `os.open`, uses Python defaults
        if ``None``.

    :raises OSError: with errno ``EEXIST`` if the file exists

    """
    open_args: Tuple[Any, ...] = ()
    if chmod is not None:
        open_args = (chmod,)
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_RDWR, *open_args)
    return os.fdopen(fd, mode)


def atomic_write(path: str, content: str, encoding: str = "utf-8") -> None:
    """Atomically replace the content of path.

    The content is written to a temporary file in the same directory,
    flushed to disk and renamed over path, so readers see either the old
    or the new content. If path exists, its permission bits and, when
    allowed, its owner are kept.

    :param str path: file to write
    :param str content: new text content
    :param str encoding: text encoding

    :raises OSError: if the file cannot be written

    """
    directory, name = os.path.split(os.path.abspath(path))
    fd, temp_path = tempfile.mkstemp(prefix=".{0}.".format(name), suffix=".tmp",
                                     dir=directory)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as temp_file:
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        _copy_ownership(path, temp_path)
        os.replace(temp_path, path)
    except BaseException:
        safely_remove(temp_path)
        raise


def _copy_ownership(src: str, dst: str) -> None:
    try:
        src_stat = os.stat(src)
    except FileNotFoundError:
        return
    os.chmod(dst, stat.S_IMODE(src_stat.st_mode))
    try:
        os.chown(dst, src_stat.st_uid, src_stat.st_gid)
    except OSError as exception:
        logger.info("Unable to keep the owner of %s", src)
        logger.debug("Error was: %s", exception)


def safely_remove(path: str) -> None:
    """Remove a file that may not exist."""
    try:
        os.remove(path)
    except OSError as err:
        if err.errno != errno.ENOENT:
            raise
