"""qicert main entry point."""
import logging
import sys
from typing import List
from typing import Optional
from typing import Union

import qicert
from qicert import configuration
from qicert import domain
from qicert import interfaces
from qicert._internal import certificate
from qicert._internal import cli
from qicert._internal import configurator
from qicert._internal import log
from qicert._internal import webservers

logger = logging.getLogger(__name__)


def provision(config: interfaces.IConfig) -> configurator.State:
    """Provision the domain named in config on the selected web server.

    :param config: Configuration object
    :type config: :class:`~qicert.interfaces.IConfig`

    :returns: final state of the run
    :rtype: :class:`~qicert._internal.configurator.State`

    :raises .errors.Error: if the domain is invalid or provisioning fails

    """
    target = domain.parse(config.name, config.tld, config.subdomain)
    server = webservers.get_web_server(config)
    issuer = certificate.CertbotIssuer(config)
    logger.info('Provisioning %s on %s', target, server.name)
    return configurator.Configurator(config, server, issuer).run(target)


def main(cli_args: Optional[List[str]] = None) -> Optional[Union[str, int]]:
    """Run qicert.

    :param cli_args: command line to qicert, defaults to ``sys.argv[1:]``
    :type cli_args: `list` of `str`

    :returns: value for `sys.exit` about the exit status of qicert
    :rtype: `str` or `int` or `None`

    """
    if not cli_args:
        cli_args = sys.argv[1:]

    log.pre_arg_parse_setup()

    logger.debug("qicert version: %s", qicert.__version__)
    logger.debug("Location of qicert entry point: %s", sys.argv[0])
    logger.debug("Arguments: %r", cli_args)

    # note: arg parser internally handles --help (and exits afterwards)
    args = cli.prepare_and_parse_args(cli_args)
    config = configuration.NamespaceConfig(args)

    log.post_arg_parse_setup(config)

    state = provision(config)
    if state is configurator.State.ALREADY_DECLARED and not config.quiet:
        print('Nothing to do, the domain is already configured.', file=sys.stderr)
    return None
