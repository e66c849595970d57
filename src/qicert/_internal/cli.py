"""qicert command line argument parser."""
import argparse
import copy
from typing import Any
from typing import List

import configargparse
import zope.interface.interface  # pylint: disable=unused-import

import qicert
from qicert import interfaces
from qicert._internal import constants

SHORT_USAGE = """
  qicert {nginx,apache} -d NAME -t TLD [-s SUBDOMAIN] [options]

Obtains a certificate for the domain with certbot and writes an HTTPS
server block for it, redirecting plain HTTP to HTTPS.
"""


def flag_default(name: str) -> Any:
    """Default value for CLI flag."""
    return copy.deepcopy(constants.CLI_DEFAULTS[name])


def config_help(name: str, hidden: bool = False) -> str:
    """Extract the help message for an `.IConfig` attribute."""
    if hidden:
        return argparse.SUPPRESS
    field: zope.interface.interface.Attribute = interfaces.IConfig.__getitem__(name)
    return field.__doc__


def _backend_help(option: str) -> str:
    defaults = ', '.join('{0}: {1}'.format(backend, values[option])
                         for backend, values in constants.BACKEND_DEFAULTS.items()
                         if values[option] is not None)
    return '{0} (default: {1})'.format(config_help(option), defaults)


def _shared_help(option: str) -> str:
    return '{0} (default: {1})'.format(config_help(option), flag_default(option))


def build_parser() -> configargparse.ArgParser:
    """Create the qicert argument parser.

    Every long option may also be set in a configuration file or through
    a ``QICERT_`` prefixed environment variable, e.g. ``QICERT_CERT_STORE``.

    :rtype: configargparse.ArgParser

    """
    parser = configargparse.ArgParser(
        prog='qicert',
        usage=SHORT_USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        args_for_setting_config_path=['-c', '--config'],
        default_config_files=flag_default('config_files'),
        config_arg_help_message='path to config file (default: {0})'.format(
            ' and '.join(flag_default('config_files'))),
        auto_env_var_prefix='QICERT_')
    parser.add_argument('--version', action='version',
                        version='%(prog)s {0}'.format(qicert.__version__))

    parser.add_argument('backend', choices=constants.BACKENDS,
                        help=config_help('backend'))

    domain = parser.add_argument_group('domain')
    domain.add_argument('-d', '--name', required=True, help=config_help('name'))
    domain.add_argument('-t', '--tld', required=True, help=config_help('tld'))
    domain.add_argument('-s', '--subdomain', default=flag_default('subdomain'),
                        help=config_help('subdomain'))

    paths = parser.add_argument_group('paths')
    paths.add_argument('--sites-available', default=flag_default('sites_available'),
                       help=_backend_help('sites_available'))
    paths.add_argument('--sites-enabled', default=flag_default('sites_enabled'),
                       help=_backend_help('sites_enabled'))
    paths.add_argument('--server-binary', default=flag_default('server_binary'),
                       help=_backend_help('server_binary'))
    paths.add_argument('--service-name', default=flag_default('service_name'),
                       help=_backend_help('service_name'))
    paths.add_argument('--systemctl', default=flag_default('systemctl'),
                       help=_shared_help('systemctl'))
    paths.add_argument('--cert-tool', dest='cert_tool_binary',
                       default=flag_default('cert_tool_binary'),
                       help=_shared_help('cert_tool_binary'))
    paths.add_argument('--webroot-base', default=flag_default('webroot_base'),
                       help=_shared_help('webroot_base'))
    paths.add_argument('--challenge-dir', default=flag_default('challenge_dir'),
                       help=_shared_help('challenge_dir'))
    paths.add_argument('--cert-store', default=flag_default('cert_store'),
                       help=_shared_help('cert_store'))
    paths.add_argument('--service-user', default=flag_default('service_user'),
                       help=_shared_help('service_user'))
    paths.add_argument('--service-group', default=flag_default('service_group'),
                       help=config_help('service_group'))

    logging_group = parser.add_argument_group('logging')
    logging_group.add_argument(
        '-v', '--verbose', dest='verbose_count', action='count',
        default=flag_default('verbose_count'),
        help='This flag can be used multiple times to incrementally increase '
             'the verbosity of output, e.g. -vvv.')
    logging_group.add_argument(
        '-q', '--quiet', dest='quiet', action='store_true',
        default=flag_default('quiet'),
        help='Silence all output except errors.')
    logging_group.add_argument(
        '--debug', action='store_true', default=flag_default('debug'),
        help='Show tracebacks in case of errors.')
    logging_group.add_argument(
        '--logs-dir', default=flag_default('logs_dir'),
        help=_shared_help('logs_dir'))
    logging_group.add_argument(
        '--max-log-backups', type=nonnegative_int,
        default=flag_default('max_log_backups'),
        help='{0} Setting this to 0 disables log rotation. (default: '
             '{1})'.format(config_help('max_log_backups'),
                           flag_default('max_log_backups')))

    return parser


def nonnegative_int(value: str) -> int:
    """Converts value to an int and checks that it is not negative.

    :param str value: value to convert

    :returns: value as a nonnegative int
    :rtype: int

    :raises argparse.ArgumentTypeError: if value isn't a nonnegative integer

    """
    try:
        int_value = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError('value must be an integer')

    if int_value < 0:
        raise argparse.ArgumentTypeError('value must be non-negative')
    return int_value


def prepare_and_parse_args(args: List[str]) -> argparse.Namespace:
    """Parse the command line, configuration files and environment.

    :param list args: command line arguments, without the program name

    :returns: parsed arguments
    :rtype: argparse.Namespace

    """
    return build_parser().parse_args(args)
