"""qicert user-supplied configuration."""
import argparse
import logging
import os
from typing import Any

import zope.interface

from qicert import errors
from qicert import interfaces
from qicert._internal import constants

logger = logging.getLogger(__name__)

_PATH_OPTIONS = (
    'sites_available', 'sites_enabled', 'webroot_base', 'challenge_dir',
    'cert_store', 'logs_dir',
)


@zope.interface.implementer(interfaces.IConfig)
class NamespaceConfig:
    """Configuration wrapper around :class:`argparse.Namespace`.

    Options depending on the selected backend (``sites_available``,
    ``sites_enabled``, ``server_binary`` and ``service_name``) are
    resolved from :const:`qicert._internal.constants.BACKEND_DEFAULTS`
    when they were not set by the user. All directories are made
    absolute. This happens once, when the object is created.

    :ivar namespace: Namespace typically produced by
        :meth:`argparse.ArgumentParser.parse_args`.
    :type namespace: :class:`argparse.Namespace`

    """

    def __init__(self, namespace: argparse.Namespace) -> None:
        self.namespace: argparse.Namespace
        # Avoid recursion loop because of the delegation defined in __setattr__
        object.__setattr__(self, 'namespace', namespace)

        _check_config_sanity(self)

        for option, default in constants.BACKEND_DEFAULTS[self.namespace.backend].items():
            if getattr(self.namespace, option, None) is None:
                setattr(self.namespace, option, default)
        if not getattr(self.namespace, 'service_group', None):
            self.namespace.service_group = self.namespace.service_user

        for option in _PATH_OPTIONS:
            value = getattr(self.namespace, option, None)
            if value is not None:
                setattr(self.namespace, option,
                        os.path.abspath(os.path.expanduser(value)))

    def __getattr__(self, name: str) -> Any:
        return getattr(self.namespace, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self.namespace, name, value)

    @property
    def owner(self) -> str:
        """Owner specification given to chown, ``user:group``."""
        return '{0}:{1}'.format(self.namespace.service_user, self.namespace.service_group)


def _check_config_sanity(config: NamespaceConfig) -> None:
    """Validate command line options and raise an error in case of problem.

    :param config: NamespaceConfig instance holding user configuration
    :type config: :class:`qicert.configuration.NamespaceConfig`

    :raises .errors.ConfigurationError: if an option is invalid

    """
    if config.namespace.backend not in constants.BACKENDS:
        raise errors.ConfigurationError(
            'Unknown web server {0!r}, expected one of: {1}'.format(
                config.namespace.backend, ', '.join(constants.BACKENDS)))

    if not config.namespace.service_user:
        raise errors.ConfigurationError('The service user cannot be empty')
