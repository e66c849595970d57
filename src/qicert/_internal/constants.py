"""qicert constants."""
import logging
import os
from typing import Any
from typing import Dict

NGINX = 'nginx'
APACHE = 'apache'
BACKENDS = (NGINX, APACHE)
"""Supported web server backends."""

CLI_DEFAULTS: Dict[str, Any] = dict(
    config_files=[
        '/etc/qicert/cli.ini',
        # https://freedesktop.org/wiki/Software/xdg-user-dirs/
        os.path.join(os.environ.get('XDG_CONFIG_HOME', '~/.config'),
                     'qicert', 'cli.ini'),
    ],

    # Main parser
    verbose_count=0,
    quiet=False,
    debug=False,
    max_log_backups=100,
    logs_dir='/var/log/qicert',

    backend=None,
    name=None,
    tld=None,
    subdomain=None,

    # Shared paths
    cert_tool_binary='/usr/bin/certbot',
    webroot_base='/var/www',
    challenge_dir='/var/www/.well-known/challenge',
    cert_store='/etc/letsencrypt/live',
    service_user='www-data',
    service_group=None,
    systemctl='systemctl',

    # Backend dependent, resolved from BACKEND_DEFAULTS when not set
    sites_available=None,
    sites_enabled=None,
    server_binary=None,
    service_name=None,
)
"""Defaults for CLI flags and `.NamespaceConfig` attributes."""

BACKEND_DEFAULTS: Dict[str, Dict[str, Any]] = {
    NGINX: dict(
        sites_available='/etc/nginx/sites-available',
        sites_enabled='/etc/nginx/sites-enabled',
        server_binary='/usr/sbin/nginx',
        service_name='nginx',
    ),
    APACHE: dict(
        sites_available='/etc/apache/sites-available',
        sites_enabled=None,
        server_binary='/usr/sbin/apache2',
        service_name='apache2',
    ),
}
"""Per backend defaults for the backend dependent options."""

QUIET_LOGGING_LEVEL = logging.ERROR
"""Logging level to use in quiet mode."""

DEFAULT_LOGGING_LEVEL = logging.WARNING
"""Default logging level to use when not in quiet mode."""

LOG_FILE = 'qicert.log'
"""Basename of the debug log file in ``logs_dir``."""

CONF_FILE_FMT = '{0}.conf'
"""Configuration file name, formatted with the registrable domain."""

BACKUP_SUFFIX = '.bak'
"""Suffix of the configuration file backup."""

LOCK_FILE_FMT = '.{0}.lock'
"""Lock file name, formatted with the configuration file name."""

PLACEHOLDER_FILE = 'index.html'
"""Name of the placeholder page written to a new web root."""

PLACEHOLDER_CONTENT = '<p>hello</p>\n'
"""Content of the placeholder page."""

WEBROOT_PUBLIC_DIR = 'public'
"""Directory under ``<webroot_base>/<domain>`` served by the web server."""

CHALLENGE_URI_ROOT = '/.well-known/acme-challenge/'
"""URI path under which HTTP-01 validation files are served."""
