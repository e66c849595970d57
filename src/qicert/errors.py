"""qicert errors."""
from typing import Optional


class Error(Exception):
    """Generic qicert error.

    :ivar backup_path: copy of the configuration file, set when the run
        failed after the file was backed up
    :vartype backup_path: str or None

    """
    backup_path: Optional[str] = None


class SubprocessError(Error):
    """Subprocess handling error."""


class LockError(Error):
    """File locking error."""


class ConfigurationError(Error):
    """Configuration sanity error."""


# Domain validation errors
class DomainError(Error):
    """Invalid domain given by the user."""

    message = "The domain given is invalid"

    def __init__(self, value: str = '') -> None:
        self.value = value
        if value:
            super().__init__('{0}: {1!r}'.format(self.message, value))
        else:
            super().__init__(self.message)


class InvalidName(DomainError):
    """The registrable name part is invalid."""

    message = "Invalid domain name"


class InvalidTld(DomainError):
    """The TLD is invalid."""

    message = "The TLD is invalid"


class MissingTld(DomainError):
    """No TLD was given."""

    message = "The domain has no TLD"


class TldTooShort(DomainError):
    """The TLD is shorter than two characters."""

    message = "The TLD given is too short"


class InvalidSubdomain(DomainError):
    """The subdomain is invalid."""

    message = "The subdomain given is invalid"


# Configuration file errors
class ConfigFileError(Error):
    """Configuration file could not be read or written."""


class ConfigFileExists(ConfigFileError):
    """Configuration file already exists."""


class ConfigFileNotFound(ConfigFileError):
    """Configuration file does not exist."""


# Web root errors
class WebRootError(Error):
    """Generic web root error."""


class WebRootExists(WebRootError):
    """Web root already has content."""


class WebRootCreationError(WebRootError):
    """Web root could not be created."""


# Certificate errors
class IssuanceError(Error):
    """The certificate tool failed to issue a certificate."""


# Web server errors
class PluginError(Error):
    """Web server or certificate tool error."""


class NoInstallationError(PluginError):
    """A required program is not installed."""


class MisconfigurationError(PluginError):
    """Web server misconfiguration error."""


class ReloadError(PluginError):
    """Web server could not be reloaded."""


class NotSupportedError(PluginError):
    """Function not supported by this web server."""
