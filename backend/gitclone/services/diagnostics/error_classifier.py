from __future__ import annotations

"""backend/gitclone/services/diagnostics/error_classifier.py

Centralized error classification for clone attempts.

This module looks at an exception raised by the git transport layer and
assigns one of four stable error kinds:

- BadCredentials: wrong key, password or username
- RepositoryNotFound: repository or branch absent
- SshKeyReadingError: malformed or mis-passphrased key material
- OtherError: anything unclassified (network, protocol, disk)

The classification is:
- deterministic (no randomness)
- type-based first (transport sentinel exceptions)
- text-based second (case-insensitive substring matching against known
  error signatures)

The git transports do not expose a typed error for every failure. Most
notably the "wrong SSH key" case only surfaces as the text of an SSH
handshake error, so matching on text is the only discriminator. All such
patterns live in _TEXT_RULES below.
"""

import enum
from dataclasses import dataclass, field
from typing import Optional

from gitclone.services.git.exceptions import (
    AuthenticationRequiredError,
    RepositoryNotFoundError,
)


class ErrorKind(str, enum.Enum):
    BAD_CREDENTIALS = "BadCredentials"
    REPOSITORY_NOT_FOUND = "RepositoryNotFound"
    SSH_KEY_READING_ERROR = "SshKeyReadingError"
    OTHER_ERROR = "OtherError"


@dataclass(frozen=True)
class GitError:
    """Outcome of a failed clone.

    Two GitError values are equal when their kinds are equal; the message
    is kept only for diagnostics.
    """

    kind: ErrorKind
    message: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class _TextRule:
    needle: str
    kind: ErrorKind

    def matches(self, text: str) -> bool:
        return self.needle in text.lower()


# Ordered; first match wins.
_TEXT_RULES: tuple[_TextRule, ...] = (
    # Raised by the SSH client when the server rejects every offered key.
    _TextRule("no supported methods remain", ErrorKind.BAD_CREDENTIALS),
    # Some SSH servers report a missing repository as a plain remote error.
    _TextRule("repository does not exist", ErrorKind.REPOSITORY_NOT_FOUND),
    # An unknown branch looks exactly like an unknown repository here.
    _TextRule("couldn't find remote ref", ErrorKind.REPOSITORY_NOT_FOUND),
)

_SENTINELS: tuple[tuple[type[BaseException], ErrorKind], ...] = (
    (RepositoryNotFoundError, ErrorKind.REPOSITORY_NOT_FOUND),
    (AuthenticationRequiredError, ErrorKind.BAD_CREDENTIALS),
)


def classify(err: Optional[BaseException]) -> Optional[GitError]:
    """Classify a transport error into a GitError.

    Returns None when ``err`` is None. Otherwise it never returns None and
    never raises; at minimum it returns an OtherError.
    """
    if err is None:
        return None

    message = str(err)

    for sentinel, kind in _SENTINELS:
        if isinstance(err, sentinel):
            return GitError(kind, message)

    for rule in _TEXT_RULES:
        if rule.matches(message):
            return GitError(rule.kind, message)

    return GitError(ErrorKind.OTHER_ERROR, message)
