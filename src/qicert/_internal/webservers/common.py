"""Functionality shared by the web server backends."""
import abc
import logging

from qicert import errors
from qicert import interfaces
from qicert import util
from qicert._internal import webroot
from qicert.domain import Domain

logger = logging.getLogger(__name__)


class WebServer(metaclass=abc.ABCMeta):
    """Base class for the web server backends.

    Subclasses provide :attr:`name`, :attr:`handle_sites`, the server
    name directive and the three server blocks. Reloading goes through
    systemd for every backend.

    :ivar config: Configuration.
    :type config: :class:`~qicert.interfaces.IConfig`

    """
    name = ''
    handle_sites = False

    def __init__(self, config: interfaces.IConfig) -> None:
        self.config = config

    def is_installed(self) -> bool:
        """Is the web server binary present?"""
        return util.exe_exists(self.config.server_binary)

    def reload(self) -> None:
        """Reload the web server.

        :raises .errors.ReloadError: if the reload fails

        """
        self._reload()

    def _reload(self) -> None:
        """Ask systemd to reload the web server service.

        :raises .errors.ReloadError: if systemctl fails

        """
        cmd = [self.config.systemctl, 'reload', self.config.service_name]
        try:
            util.run_script(cmd)
        except errors.SubprocessError as err:
            logger.warning('Unable to reload %s using %s', self.name, ' '.join(cmd))
            raise errors.ReloadError(str(err))
        logger.info('Reloaded %s', self.name)

    def config_test(self) -> None:
        """Check the configuration of the web server for errors.

        :raises .errors.NotSupportedError: always, unless overridden

        """
        raise errors.NotSupportedError(
            '{0} has no configuration check'.format(self.name))

    def enable_site(self, domain: Domain) -> None:
        """Enable the configuration file of domain.

        :raises .errors.NotSupportedError: always, unless overridden

        """
        raise errors.NotSupportedError(
            'Sites are not enabled explicitly with {0}'.format(self.name))

    @abc.abstractmethod
    def server_name(self, domain: Domain) -> str:
        """Server name directive of domain."""

    @abc.abstractmethod
    def well_known_block(self, domain: Domain) -> str:
        """Port 80 block serving the challenge directory."""

    @abc.abstractmethod
    def redirect_block(self, domain: Domain) -> str:
        """Port 80 block redirecting to HTTPS."""

    @abc.abstractmethod
    def https_block(self, domain: Domain, cert_path: str, key_path: str) -> str:
        """Port 443 block serving the web root."""

    def _webroot_path(self, domain: Domain) -> str:
        return webroot.WebRoot(self.config).path_for(domain)
