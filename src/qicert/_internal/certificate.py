"""Certificate issuance through certbot in webroot mode."""
import logging
import os

import zope.interface

from qicert import errors
from qicert import interfaces
from qicert import util
from qicert.domain import Domain

logger = logging.getLogger(__name__)


@zope.interface.implementer(interfaces.ICertificateIssuer)
class CertbotIssuer:
    """Runs ``certbot certonly --webroot`` for one domain.

    Validation files are written by certbot into the shared challenge
    directory, which the well-known server block exposes under
    ``/.well-known/acme-challenge/``.

    """

    def __init__(self, config: interfaces.IConfig) -> None:
        self.config = config

    def is_available(self) -> bool:
        return util.exe_exists(self.config.cert_tool_binary)

    def issue(self, domain: Domain) -> None:
        """Obtain a certificate for domain, blocking until certbot exits.

        :raises .errors.NoInstallationError: if certbot is not installed
        :raises .errors.IssuanceError: if certbot fails

        """
        if not self.is_available():
            raise errors.NoInstallationError(
                'Cannot find certbot at {0}'.format(self.config.cert_tool_binary))

        try:
            util.make_or_verify_dir(self.config.challenge_dir, 0o755)
        except OSError as err:
            raise errors.IssuanceError(
                'Unable to create the challenge directory {0}: {1}'.format(
                    self.config.challenge_dir, err))

        logger.info('Requesting a certificate for %s', domain)
        try:
            util.run_script([
                self.config.cert_tool_binary, 'certonly', '--webroot',
                '-w', self.config.challenge_dir,
                '-d', str(domain),
                '--non-interactive',
            ])
        except errors.SubprocessError as err:
            raise errors.IssuanceError(
                'Certbot failed to obtain a certificate for {0}: {1}'.format(domain, err))

    def cert_path(self, domain: Domain) -> str:
        return os.path.join(self.config.cert_store, str(domain), 'fullchain.pem')

    def key_path(self, domain: Domain) -> str:
        return os.path.join(self.config.cert_store, str(domain), 'privkey.pem')
