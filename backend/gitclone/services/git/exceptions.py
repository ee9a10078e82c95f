"""Errors raised by the git transport layer."""
from __future__ import annotations


class TransportError(Exception):
    """Base class for every failure raised by gitclone.services.git.transport."""


class RepositoryNotFoundError(TransportError):
    """The remote repository, or the requested branch, does not exist."""


class AuthenticationRequiredError(TransportError):
    """The remote refused the supplied credentials, or none were supplied."""


class CloneFailedError(TransportError):
    """Any other clone failure (network, protocol, local filesystem)."""


class KeyParseError(TransportError):
    """SSH private key material could not be read."""
