"""Web server backends."""
from qicert import errors
from qicert import interfaces
from qicert._internal import constants
from qicert._internal.webservers import apache
from qicert._internal.webservers import common
from qicert._internal.webservers import nginx

BACKENDS = {
    constants.NGINX: nginx.NginxServer,
    constants.APACHE: apache.ApacheServer,
}


def get_web_server(config: interfaces.IConfig) -> common.WebServer:
    """Instantiate the backend selected in config.

    :raises .errors.ConfigurationError: if the backend is unknown

    """
    try:
        server_cls = BACKENDS[config.backend]
    except KeyError:
        raise errors.ConfigurationError(
            'Unknown web server {0!r}'.format(config.backend))
    return server_cls(config)
