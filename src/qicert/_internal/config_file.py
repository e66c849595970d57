"""Web server configuration file holding the server blocks of a domain."""
import errno
import logging
import os
import shutil
from typing import IO

from qicert import errors
from qicert import interfaces
from qicert import util
from qicert._internal import constants
from qicert._internal import lock
from qicert.domain import Domain

logger = logging.getLogger(__name__)


def filename_for(domain: Domain) -> str:
    """Name of the configuration file shared by the subdomains of domain."""
    return constants.CONF_FILE_FMT.format(domain.registrable)


class ConfigFileStore:
    """Reads and writes ``<sites_available>/<name>.<tld>.conf``.

    Every subdomain of a registrable domain shares the same file. The
    store holds no state besides the configuration and the web server;
    open handles are owned by the caller.

    :ivar config: Configuration.
    :type config: :class:`~qicert.interfaces.IConfig`

    :ivar server: Web server rendering the server name directive.
    :type server: :class:`~qicert.interfaces.IWebServer`

    """

    def __init__(self, config: interfaces.IConfig, server: interfaces.IWebServer) -> None:
        self.config = config
        self.server = server

    def path_for(self, domain: Domain) -> str:
        """Path to the configuration file of the domain."""
        return os.path.join(self.config.sites_available, filename_for(domain))

    def backup_path_for(self, domain: Domain) -> str:
        """Path to the backup of the configuration file of the domain."""
        return self.path_for(domain) + constants.BACKUP_SUFFIX

    def exists(self, domain: Domain) -> bool:
        return os.path.isfile(self.path_for(domain))

    def create(self, domain: Domain) -> IO:
        """Create the configuration file, failing if it is already there.

        :param .Domain domain: domain

        :returns: handle opened for reading and writing
        :rtype: file

        :raises .errors.ConfigFileExists: if the file exists
        :raises .errors.ConfigFileError: if the file cannot be created

        """
        path = self.path_for(domain)
        try:
            handle = util.safe_open(path, mode='w+', chmod=0o644)
        except OSError as err:
            if err.errno == errno.EEXIST:
                raise errors.ConfigFileExists(
                    'Configuration file {0} already exists'.format(path))
            raise errors.ConfigFileError(
                'Unable to create {0}: {1}'.format(path, err))
        logger.debug('Created %s', path)
        return handle

    def open_for_append(self, domain: Domain) -> IO:
        """Open the existing configuration file for reading and appending.

        The handle is positioned at the start of the file, writes always
        go to its end.

        :raises .errors.ConfigFileNotFound: if the file does not exist
        :raises .errors.ConfigFileError: if the file cannot be opened

        """
        path = self.path_for(domain)
        if not self.exists(domain):
            raise errors.ConfigFileNotFound(
                'Configuration file {0} does not exist'.format(path))
        try:
            handle = open(path, 'a+')
        except OSError as err:
            raise errors.ConfigFileError('Unable to open {0}: {1}'.format(path, err))
        handle.seek(0)
        return handle

    def read(self, handle: IO) -> str:
        """Read the whole content behind handle."""
        handle.seek(0)
        try:
            return handle.read()
        except (OSError, UnicodeDecodeError) as err:
            raise errors.ConfigFileError(
                'Unable to read {0}: {1}'.format(handle.name, err))

    def backup(self, domain: Domain) -> None:
        """Copy the configuration file next to itself with a ``.bak`` suffix.

        :raises .errors.ConfigFileError: if the copy fails

        """
        path = self.path_for(domain)
        backup_path = self.backup_path_for(domain)
        try:
            shutil.copy2(path, backup_path)
        except OSError as err:
            raise errors.ConfigFileError(
                'Unable to back up {0}: {1}'.format(path, err))
        logger.info('Saved a backup of %s to %s', path, backup_path)

    def truncate(self, handle: IO) -> None:
        """Empty the file behind handle."""
        try:
            handle.truncate(0)
            handle.seek(0, os.SEEK_END)
        except OSError as err:
            raise errors.ConfigFileError(
                'Unable to truncate {0}: {1}'.format(handle.name, err))

    def write_block(self, handle: IO, text: str) -> None:
        """Write a server block followed by a newline and flush it."""
        try:
            handle.write(text)
            handle.write('\n')
            handle.flush()
        except OSError as err:
            raise errors.ConfigFileError(
                'Unable to write to {0}: {1}'.format(handle.name, err))

    def replace(self, domain: Domain, content: str) -> None:
        """Atomically replace the content of the configuration file.

        :raises .errors.ConfigFileError: if the file cannot be written

        """
        path = self.path_for(domain)
        try:
            util.atomic_write(path, content)
        except OSError as err:
            raise errors.ConfigFileError(
                'Unable to rewrite {0}: {1}'.format(path, err))
        logger.debug('Rewrote %s', path)

    def contains_server_declaration(self, text: str, domain: Domain) -> bool:
        """Does text already declare a server for domain?

        Lines holding a ``#`` anywhere are ignored. A line matches when it
        ends with the server name directive of the exact domain, so a
        subdomain never matches its registrable domain and vice versa.

        :param str text: configuration file content
        :param .Domain domain: domain

        :rtype: bool

        """
        needle = self.server.server_name(domain)
        for line in text.splitlines():
            line = line.strip()
            if '#' in line:
                continue
            if line.endswith(needle):
                return True
        return False

    def change_owner_to_service_user(self, domain: Domain) -> None:
        """Hand the configuration file over to the web server user.

        :raises .errors.ConfigFileNotFound: if the file does not exist
        :raises .errors.ConfigFileError: if chown fails

        """
        path = self.path_for(domain)
        if not self.exists(domain):
            raise errors.ConfigFileNotFound(
                'Configuration file {0} does not exist'.format(path))
        try:
            util.change_owner(path, self.config.owner)
        except errors.SubprocessError as err:
            raise errors.ConfigFileError(
                'Unable to change the owner of {0}: {1}'.format(path, err))

    def lock(self, domain: Domain) -> lock.LockFile:
        """Lock the configuration file of domain against other qicert runs.

        :returns: the acquired lock, usable as a context manager
        :rtype: .LockFile

        :raises .errors.LockError: if another process holds the lock
        :raises .errors.ConfigFileError: if the lock file cannot be created

        """
        path = self.path_for(domain)
        try:
            return lock.lock_for(path)
        except OSError as err:
            logger.debug("Encountered error:", exc_info=True)
            raise errors.ConfigFileError("Unable to lock {0}: {1}".format(path, err))
