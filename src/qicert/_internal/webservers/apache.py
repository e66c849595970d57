"""Apache backend."""
import zope.interface

from qicert import interfaces
from qicert._internal import constants
from qicert._internal.webservers import common
from qicert.domain import Domain

WELL_KNOWN_TEMPLATE = """\
<VirtualHost *:80>
    ServerAdmin webmaster@localhost
    {server_name}
    DocumentRoot {challenge_dir}
    ErrorLog ${{APACHE_LOG_DIR}}/error.log
    CustomLog ${{APACHE_LOG_DIR}}/access.log combined
</VirtualHost>"""

REDIRECT_TEMPLATE = """\
<VirtualHost *:80>
    {server_name}
    Redirect permanent / https://{domain}/
</VirtualHost>"""

HTTPS_TEMPLATE = """\
<VirtualHost *:443>
    {server_name}
    Protocols h2 http/1.1
    SSLEngine on
    SSLCertificateFile {fullchain}
    SSLCertificateKeyFile {privkey}
    DocumentRoot {webroot}
</VirtualHost>"""


@zope.interface.implementer(interfaces.IWebServer)
class ApacheServer(common.WebServer):
    """Apache, serving every file found in ``sites-available``.

    There is no activation step and no configuration check; a reload is
    a plain ``systemctl reload``.

    """
    name = constants.APACHE
    handle_sites = False

    def server_name(self, domain: Domain) -> str:
        return 'ServerName {0}'.format(domain)

    def well_known_block(self, domain: Domain) -> str:
        return WELL_KNOWN_TEMPLATE.format(
            server_name=self.server_name(domain),
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
