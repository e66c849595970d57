"""Document root served over HTTPS once the domain is provisioned."""
import errno
import logging
import os

from qicert import errors
from qicert import interfaces
from qicert import util
from qicert._internal import constants
from qicert.domain import Domain

logger = logging.getLogger(__name__)


class WebRoot:
    """Per domain web root, ``<webroot_base>/<domain>/public``.

    :ivar config: Configuration.
    :type config: :class:`~qicert.interfaces.IConfig`

    """

    def __init__(self, config: interfaces.IConfig) -> None:
        self.config = config

    def path_for(self, domain: Domain) -> str:
        return os.path.join(self.config.webroot_base, str(domain),
                            constants.WEBROOT_PUBLIC_DIR)

    def exists(self, domain: Domain) -> bool:
        return os.path.isdir(self.path_for(domain))

    def has_content(self, domain: Domain) -> bool:
        """Does the web root exist and hold at least one entry?

        :raises .errors.WebRootCreationError: if the web root cannot be
            inspected

        """
        path = self.path_for(domain)
        try:
            with os.scandir(path) as entries:
                return any(True for _ in entries)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as exception:
            raise errors.WebRootCreationError(
                "Couldn't inspect web root {0}: {1}".format(path, exception))

    def create_and_own(self, domain: Domain) -> str:
        """Create the web root with a placeholder page.

        An existing empty web root is reused. The whole tree is then
        handed over to the web server user. Nothing is rolled back on
        failure.

        :param .Domain domain: domain

        :returns: path to the web root
        :rtype: str

        :raises .errors.WebRootExists: if the web root already has content
        :raises .errors.WebRootCreationError: if the web root cannot be
            inspected, created or handed over

        """
        path = self.path_for(domain)
        if self.has_content(domain):
            raise errors.WebRootExists('Web root {0} already exists'.format(path))

        old_umask = os.umask(0o022)
        try:
            # This is coupled with the umask call above because os.makedirs
            # does not always honour its mode parameter.
            os.makedirs(path, 0o755)
        except OSError as exception:
            if exception.errno != errno.EEXIST or not os.path.isdir(path):
                raise errors.WebRootCreationError(
                    'Couldn\'t create web root {0}: {1}'.format(path, exception))
        finally:
            os.umask(old_umask)

        placeholder = os.path.join(path, constants.PLACEHOLDER_FILE)
        try:
            with util.safe_open(placeholder, mode='w', chmod=0o644) as page:
                page.write(constants.PLACEHOLDER_CONTENT)
        except OSError as exception:
            raise errors.WebRootCreationError(
                'Couldn\'t write {0}: {1}'.format(placeholder, exception))

        try:
            util.change_owner(path, self.config.owner, recursive=True)
        except errors.SubprocessError as exception:
            raise errors.WebRootCreationError(
                "Couldn't change the owner of {0}: {1}".format(path, exception))

        logger.info('Created web root %s', path)
        return path
