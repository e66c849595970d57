"""qicert interfaces."""
import zope.interface

# pylint: disable=no-self-argument,no-method-argument,inherit-non-class


class IConfig(zope.interface.Interface):
    """qicert user-supplied configuration.

    .. warning:: The values stored in the configuration have not been
        filtered, stripped or sanitized.

    """
    backend = zope.interface.Attribute(
        "Web server to configure, one of 'nginx' or 'apache'.")
    name = zope.interface.Attribute(
        "Registrable domain name, without subdomain or TLD (e.g. example).")
    tld = zope.interface.Attribute("Top level domain (e.g. com or com.mx).")
    subdomain = zope.interface.Attribute(
        "Optional subdomain (e.g. www or staging.api).")

    sites_available = zope.interface.Attribute(
        "Directory holding the web server site configuration files.")
    sites_enabled = zope.interface.Attribute(
        "Directory holding the links to the enabled site configuration "
        "files (nginx only).")
    server_binary = zope.interface.Attribute(
        "Path to the web server binary.")
    service_name = zope.interface.Attribute(
        "Name of the web server service, as known by systemctl.")
    systemctl = zope.interface.Attribute(
        "Path to the systemctl binary used to reload the web server.")
    cert_tool_binary = zope.interface.Attribute(
        "Path to the certbot binary.")
    webroot_base = zope.interface.Attribute(
        "Base directory of the per domain web roots.")
    challenge_dir = zope.interface.Attribute(
        "Webroot shared by all domains for HTTP-01 validation files.")
    cert_store = zope.interface.Attribute(
        "Directory holding the issued certificates, one directory per "
        "domain.")
    service_user = zope.interface.Attribute(
        "User the web server runs as; owns the generated files.")
    service_group = zope.interface.Attribute(
        "Group owning the generated files (default: same as the user).")

    logs_dir = zope.interface.Attribute("Logs directory.")
    max_log_backups = zope.interface.Attribute(
        "Maximum number of rotated debug logs to keep.")


class IWebServer(zope.interface.Interface):
    """Web server able to serve the generated site configuration.

    Implementations differ in their directory layout, in the way they
    render the server blocks and in whether a site must be explicitly
    enabled after its configuration file has been created.

    """
    name = zope.interface.Attribute("Short name of the backend.")
    handle_sites = zope.interface.Attribute(
        "True if a new configuration file must be enabled with "
        "enable_site before the web server picks it up.")

    def is_installed():
        """Is the web server binary present?

        :rtype: bool

        """

    def reload():
        """Reload (not restart) the running web server.

        :raises .errors.ReloadError: if the reload fails
        :raises .errors.MisconfigurationError: if the web server validates
            its configuration before reloading and the validation fails

        """

    def config_test():
        """Check the web server configuration syntax.

        :raises .errors.MisconfigurationError: if the check fails
        :raises .errors.NotSupportedError: if the web server has no
            syntax check

        """

    def enable_site(domain):
        """Activate the configuration file of the domain.

        :param .Domain domain: domain whose file is enabled

        :raises .errors.MisconfigurationError: if the site cannot be enabled
        :raises .errors.NotSupportedError: if the web server has no
            activation step

        """

    def server_name(domain):
        """Server name directive for the domain, as written in the blocks.

        :param .Domain domain: domain
        :rtype: str

        """

    def well_known_block(domain):
        """Port 80 block serving only the HTTP-01 challenge directory.

        :param .Domain domain: domain
        :rtype: str

        """

    def redirect_block(domain):
        """Port 80 block permanently redirecting to HTTPS.

        :param .Domain domain: domain
        :rtype: str

        """

    def https_block(domain, cert_path, key_path):
        """TLS block using the issued certificate and serving the web root.

        :param .Domain domain: domain
        :param str cert_path: full chain, as given by
            :meth:`ICertificateIssuer.cert_path`
        :param str key_path: private key, as given by
            :meth:`ICertificateIssuer.key_path`
        :rtype: str

        """


class ICertificateIssuer(zope.interface.Interface):
    """Tool obtaining a certificate through HTTP-01 webroot validation."""

    def is_available():
        """Is the certificate tool installed?

        :rtype: bool

        """

    def issue(domain):
        """Obtain a certificate for the domain. Blocks until done.

        :param .Domain domain: domain

        :raises .errors.NoInstallationError: if the tool is not installed
        :raises .errors.IssuanceError: if the tool fails

        """

    def cert_path(domain):
        """Path to the full chain of the domain certificate.

        :rtype: str

        """

    def key_path(domain):
        """Path to the private key of the domain certificate.

        :rtype: str

        """
