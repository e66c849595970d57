"""Domain value used by every qicert component.

A :class:`Domain` is built once from the raw command line strings and is
never modified afterwards. Its canonical string form, ``str(domain)``, is
used both in generated server blocks and in filesystem paths, so callers
should never assemble ``subdomain.name.tld`` themselves.

"""
import re
from typing import Any
from typing import Optional

from qicert import errors

_NAME_RE = re.compile(r'[a-z0-9-]+')
_TLD_RE = re.compile(r'[a-z0-9.]+')
_SUBDOMAIN_RE = re.compile(r'[a-z0-9.-]+')

MIN_TLD_LENGTH = 2


def validate_name(name: str) -> str:
    """Validate the registrable name part (``example`` in ``example.com``).

    :param str name: raw name

    :returns: lowercase name
    :rtype: str

    :raises .errors.InvalidName: if the name is invalid

    """
    value = name.lower()
    if (not _NAME_RE.fullmatch(value) or
            value.startswith('-') or value.endswith('-')):
        raise errors.InvalidName(name)
    return value


def validate_tld(tld: str) -> str:
    """Validate a TLD, which may hold several labels (``com.mx``).

    :param str tld: raw TLD

    :returns: lowercase TLD
    :rtype: str

    :raises .errors.MissingTld: if the TLD is empty
    :raises .errors.TldTooShort: if the TLD has less than two characters
    :raises .errors.InvalidTld: if the TLD has invalid characters or
        starts or ends with a dot

    """
    value = tld.lower()
    if not value:
        raise errors.MissingTld()
    if len(value) < MIN_TLD_LENGTH:
        raise errors.TldTooShort(tld)
    if (not _TLD_RE.fullmatch(value) or
            value.startswith('.') or value.endswith('.')):
        raise errors.InvalidTld(tld)
    return value


def validate_subdomain(subdomain: str) -> str:
    """Validate a subdomain, which may hold several labels (``a.b``).

    :param str subdomain: raw subdomain

    :returns: lowercase subdomain
    :rtype: str

    :raises .errors.InvalidSubdomain: if the subdomain is invalid

    """
    value = subdomain.lower()
    if (not _SUBDOMAIN_RE.fullmatch(value) or
            value[0] in '.-' or value[-1] in '.-'):
        raise errors.InvalidSubdomain(subdomain)
    return value


class Domain:
    """A validated (subdomain, name, TLD) triple.

    :ivar str name: registrable name, e.g. ``example``
    :ivar str tld: TLD, e.g. ``com`` or ``com.mx``
    :ivar subdomain: subdomain, e.g. ``www`` or ``staging.api``
    :type subdomain: str or None

    """
    __slots__ = ('_name', '_tld', '_subdomain')

    def __init__(self, name: str, tld: str, subdomain: Optional[str] = None) -> None:
        object.__setattr__(self, '_name', validate_name(name))
        object.__setattr__(self, '_tld', validate_tld(tld))
        object.__setattr__(self, '_subdomain',
                           None if subdomain is None else validate_subdomain(subdomain))

    @property
    def name(self) -> str:
        return self._name

    @property
    def tld(self) -> str:
        return self._tld

    @property
    def subdomain(self) -> Optional[str]:
        return self._subdomain

    @property
    def registrable(self) -> str:
        """The domain without its subdomain, e.g. ``example.com``."""
        return '{0}.{1}'.format(self._name, self._tld)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError('{0} is immutable'.format(self.__class__.__name__))

    def __delattr__(self, name: str) -> None:
        raise AttributeError('{0} is immutable'.format(self.__class__.__name__))

    def __str__(self) -> str:
        if self._subdomain is None:
            return self.registrable
        return '{0}.{1}'.format(self._subdomain, self.registrable)

    def __repr__(self) -> str:
        return '{0}({1!r}, {2!r}, {3!r})'.format(
            self.__class__.__name__, self._name, self._tld, self._subdomain)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Domain):
            return NotImplemented
        return (self._name, self._tld, self._subdomain) == (
            other._name, other._tld, other._subdomain)

    def __hash__(self) -> int:
        return hash((self._name, self._tld, self._subdomain))


def parse(name: str, tld: str, subdomain: Optional[str] = None) -> Domain:
    """Build a :class:`Domain` from raw strings.

    :param str name: registrable name
    :param str tld: TLD
    :param subdomain: optional subdomain
    :type subdomain: str or None

    :returns: validated domain
    :rtype: Domain

    :raises .errors.DomainError: if any of the parts is invalid

    """
    return Domain(name, tld, subdomain)
