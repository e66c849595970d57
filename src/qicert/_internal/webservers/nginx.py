"""Nginx backend."""
import logging
import os

import zope.interface

from qicert import errors
from qicert import interfaces
from qicert import util
from qicert._internal import config_file
from qicert._internal import constants
from qicert._internal.webservers import common
from qicert.domain import Domain

logger = logging.getLogger(__name__)

WELL_KNOWN_TEMPLATE = """\
server {{
    listen 80;

    {server_name}

    location ^~ {challenge_uri} {{
        root {challenge_dir};
        allow all;
        default_type "text/plain";
    }}
}}"""

REDIRECT_TEMPLATE = """\
server {{
    listen 80;

    {server_name}

    return 301 https://{domain}$request_uri;
}}"""

HTTPS_TEMPLATE = """\
server {{
    {server_name}
    listen 443 ssl;

    ssl_certificate {fullchain};
    ssl_certificate_key {privkey};
    ssl_trusted_certificate {fullchain};

    root {webroot};
    index index.html;
    location / {{
        try_files $uri $uri/ =404;
    }}
}}"""


@zope.interface.implementer(interfaces.IWebServer)
class NginxServer(common.WebServer):
    """Nginx, laid out the Debian way.

    Configuration files live in ``sites-available`` and are activated by
    a symlink in ``sites-enabled``. The configuration is checked with
    ``nginx -t`` before every reload.

    """
    name = constants.NGINX
    handle_sites = True

    def reload(self) -> None:
        """Check the configuration, then reload nginx.

        :raises .errors.MisconfigurationError: if the check fails
        :raises .errors.ReloadError: if the reload fails

        """
        self.config_test()
        self._reload()

    def config_test(self) -> None:
        """Check the configuration of Nginx for errors.

        :raises .errors.MisconfigurationError: If config_test fails

        """
        try:
            util.run_script([self.config.server_binary, '-t'])
        except errors.SubprocessError as err:
            raise errors.MisconfigurationError(str(err))

    def enable_site(self, domain: Domain) -> None:
        """Link the configuration file of domain from ``sites-enabled``.

        A link already pointing at the file is left alone.

        :raises .errors.MisconfigurationError: if the link cannot be made

        """
        filename = config_file.filename_for(domain)
        available_path = os.path.join(self.config.sites_available, filename)
        enabled_path = os.path.join(self.config.sites_enabled, filename)
        try:
            os.symlink(available_path, enabled_path)
        except OSError as err:
            if (os.path.islink(enabled_path) and
                    os.path.realpath(enabled_path) == os.path.realpath(available_path)):
                logger.info('Link %s exists. Skipping', enabled_path)
                return
            logger.error('Could not symlink %s to %s, got error: %s',
                         enabled_path, available_path, err.strerror)
            raise errors.MisconfigurationError(
                'Encountered error while trying to enable {0} by linking to '
                'it from {1}'.format(available_path, enabled_path))
        logger.info('Enabling available site: %s', available_path)

    def server_name(self, domain: Domain) -> str:
        return 'server_name {0};'.format(domain)

    def well_known_block(self, domain: Domain) -> str:
        return WELL_KNOWN_TEMPLATE.format(
            server_name=self.server_name(domain),
            challenge_uri=constants.CHALLENGE_URI_ROOT,
            challenge_dir=self.config.challenge_dir)

    def redirect_block(self, domain: Domain) -> str:
        return REDIRECT_TEMPLATE.format(
            server_name=self.server_name(domain), domain=domain)

    def https_block(self, domain: Domain, cert_path: str, key_path: str) -> str:
        return HTTPS_TEMPLATE.format(
            server_name=self.server_name(domain),
            fullchain=cert_path,
            privkey=key_path,
            webroot=self._webroot_path(domain))
