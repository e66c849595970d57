"""Provisions the HTTPS server blocks of one domain."""
import enum
import logging
from typing import Optional

from qicert import errors
from qicert import interfaces
from qicert._internal.config_file import ConfigFileStore
from qicert._internal.webroot import WebRoot
from qicert.domain import Domain

logger = logging.getLogger(__name__)


class State(enum.Enum):
    """Steps of a provisioning run, in the order they are reached."""
    START = 'start'
    FILE_CHECK = 'file check'
    CREATING_NEW = 'creating new file'
    APPENDING_EXISTING = 'appending to existing file'
    WELL_KNOWN_WRITTEN = 'well-known block written'
    WEB_ROOT_READY = 'web root ready'
    SITE_ACTIVE = 'site active'
    FIRST_RELOAD_DONE = 'first reload done'
    CERT_ISSUED = 'certificate issued'
    FINAL_CONTENT_WRITTEN = 'final content written'
    FINAL_RELOAD_DONE = 'final reload done'
    DONE = 'done'
    ALREADY_DECLARED = 'already declared'


class Configurator:
    """Creates or extends the configuration file of a domain.

    A run first serves the shared challenge directory over plain HTTP so
    certbot can prove ownership of the domain, then replaces that block
    with an HTTPS server and a redirect to it. A domain that is already
    declared in its configuration file is left untouched.

    The configuration file is locked for the whole run. When a step
    fails, the error is propagated and the file keeps its last written
    content; on the append path the ``.bak`` copy holds the content from
    before the run.

    :ivar state: Last state reached by the current or last run.
    :type state: :class:`State`

    """

    def __init__(self, config: interfaces.IConfig, server: interfaces.IWebServer,
                 issuer: interfaces.ICertificateIssuer,
                 store: Optional[ConfigFileStore] = None,
                 webroot: Optional[WebRoot] = None) -> None:
        self.config = config
        self.server = server
        self.issuer = issuer
        self.store = store if store is not None else ConfigFileStore(config, server)
        self.webroot = webroot if webroot is not None else WebRoot(config)
        self.state = State.START

    def _transition(self, state: State) -> None:
        logger.debug('%s -> %s', self.state.value, state.value)
        self.state = state

    def prepare(self) -> None:
        """Make sure the web server and certbot are installed.

        :raises .errors.NoInstallationError: if either is missing

        """
        if not self.server.is_installed():
            raise errors.NoInstallationError(
                "Could not find a usable '{0}' binary at {1}. Ensure {0} is "
                "installed or set --server-binary.".format(
                    self.server.name, self.config.server_binary))
        if not self.issuer.is_available():
            raise errors.NoInstallationError(
                "Could not find a usable 'certbot' binary at {0}. Ensure "
                "certbot is installed or set --cert-tool.".format(
                    self.config.cert_tool_binary))

    def run(self, domain: Domain) -> State:
        """Provision domain, creating its configuration file if needed.

        :param .Domain domain: domain to provision

        :returns: final state, :attr:`State.DONE` or
            :attr:`State.ALREADY_DECLARED`
        :rtype: State

        :raises .errors.Error: if any step fails

        """
        self.state = State.START
        self.prepare()

        with self.store.lock(domain):
            self._transition(State.FILE_CHECK)
            if self.store.exists(domain):
                self._append(domain)
            else:
                self._create(domain)

        if self.state is State.FINAL_RELOAD_DONE:
            self._transition(State.DONE)
            logger.info('%s is now served over HTTPS', domain)
        return self.state

    def _create(self, domain: Domain) -> None:
        self._transition(State.CREATING_NEW)
        with self.store.create(domain) as handle:
            self.store.change_owner_to_service_user(domain)
            self.store.write_block(handle, self.server.well_known_block(domain))
            self._transition(State.WELL_KNOWN_WRITTEN)

            try:
                self.webroot.create_and_own(domain)
            except errors.WebRootExists as err:
                logger.info('%s, keeping its content', err)
            self._transition(State.WEB_ROOT_READY)

            if self.server.handle_sites:
                self.server.enable_site(domain)
                self._transition(State.SITE_ACTIVE)

            self._reload_and_issue(domain)

            self.store.truncate(handle)
            self.store.write_block(handle, self.server.redirect_block(domain))
            self.store.write_block(handle, self._https_block(domain))
            self._transition(State.FINAL_CONTENT_WRITTEN)

        self.server.reload()
        self._transition(State.FINAL_RELOAD_DONE)

    def _append(self, domain: Domain) -> None:
        self._transition(State.APPENDING_EXISTING)
        self.store.backup(domain)
        try:
            self._extend(domain)
        except errors.Error as err:
            err.backup_path = self.store.backup_path_for(domain)
            raise

    def _extend(self, domain: Domain) -> None:
        with self.store.open_for_append(domain) as handle:
            original = self.store.read(handle)
            if self.store.contains_server_declaration(original, domain):
                logger.info('%s is already declared in %s, nothing to do',
                            domain, self.store.path_for(domain))
                self._transition(State.ALREADY_DECLARED)
                return

            self.store.write_block(handle, self.server.well_known_block(domain))
            self._transition(State.WELL_KNOWN_WRITTEN)

            try:
                self.webroot.create_and_own(domain)
            except errors.WebRootError as err:
                logger.warning('%s, continuing without a new web root', err)
            self._transition(State.WEB_ROOT_READY)

            self._reload_and_issue(domain)

        if original and not original.endswith('\n'):
            original += '\n'
        self.store.replace(domain, ''.join((
            original,
            self.server.redirect_block(domain), '\n',
            self._https_block(domain), '\n',
        )))
        self._transition(State.FINAL_CONTENT_WRITTEN)

        self.server.reload()
        self._transition(State.FINAL_RELOAD_DONE)

    def _reload_and_issue(self, domain: Domain) -> None:
        self.server.reload()
        self._transition(State.FIRST_RELOAD_DONE)
        self.issuer.issue(domain)
        self._transition(State.CERT_ISSUED)

    def _https_block(self, domain: Domain) -> str:
        return self.server.https_block(
            domain, self.issuer.cert_path(domain), self.issuer.key_path(domain))
