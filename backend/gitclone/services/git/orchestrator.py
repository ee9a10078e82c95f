from __future__ import annotations

"""backend/gitclone/services/git/orchestrator.py

Clone orchestration.

Responsibilities:
- Turn a credential into a transport auth object
- Build the clone options from a CloneContext
- Run exactly one clone attempt, synchronously
- Classify the outcome into a GitError (or None on success)

Each call owns its context and credential. There are no retries, and a
partially populated target directory is left on disk for the operator
to deal with.
"""

import logging
from dataclasses import dataclass, field
from typing import IO, Optional, Union

from gitclone.config import Settings
from gitclone.services.diagnostics.error_classifier import ErrorKind, GitError, classify
from gitclone.services.git import transport
from gitclone.services.git.exceptions import KeyParseError, TransportError

logger = logging.getLogger(__name__)


@dataclass
class CloneContext:
    """Where and how a single request clones."""

    target_directory: str
    branch: str = ""
    no_checkout: bool = False
    progress: Optional[IO[str]] = None


@dataclass(frozen=True)
class SshCredential:
    remote_url: str
    private_key: str = field(default="", repr=False)
    key_passphrase: str = field(default="", repr=False)


@dataclass(frozen=True)
class HttpCredential:
    remote_url: str
    username: str = ""
    password: str = field(default="", repr=False)


Credential = Union[SshCredential, HttpCredential]


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return text


def _do_clone(url: str, context: CloneContext, auth: transport.AuthMethod) -> Optional[GitError]:
    logger.info("Git >> start cloning repository %s on branch %s", url, context.branch)

    options = transport.CloneOptions(
        url=url,
        target_directory=context.target_directory,
        branch=context.branch,
        no_checkout=context.no_checkout,
        progress=context.progress,
    )
    try:
        transport.clone(options, auth)
    except TransportError as exc:
        error = classify(exc)
    else:
        error = None

    if error is None:
        logger.info("Git >> Clone finished without error")
    else:
        logger.info("Git >> Clone finished with error : %s", _first_line(error.message))
    return error


def clone_with_ssh(
    context: CloneContext,
    credential: SshCredential,
    *,
    settings: Optional[Settings] = None,
) -> Optional[GitError]:
    """Clone over SSH with a private key.

    Unreadable key material is reported as SshKeyReadingError before any
    connection is attempted.
    """
    try:
        auth = transport.parse_private_key(
            credential.private_key, credential.key_passphrase, settings=settings
        )
    except KeyParseError as exc:
        logger.warning("Git >> unable to read ssh private key: %s", _first_line(str(exc)))
        return GitError(ErrorKind.SSH_KEY_READING_ERROR, str(exc))

    with auth:
        return _do_clone(credential.remote_url, context, auth)


def clone_with_http(context: CloneContext, credential: HttpCredential) -> Optional[GitError]:
    """Clone over HTTP(S); empty username and password mean anonymous."""
    auth = transport.basic_auth(credential.username, credential.password)
    return _do_clone(credential.remote_url, context, auth)


def clone(
    context: CloneContext,
    credential: Credential,
    *,
    settings: Optional[Settings] = None,
) -> Optional[GitError]:
    """Dispatch to clone_with_ssh or clone_with_http by credential type."""
    if isinstance(credential, SshCredential):
        return clone_with_ssh(context, credential, settings=settings)
    if isinstance(credential, HttpCredential):
        return clone_with_http(context, credential)
    raise TypeError(f"Unsupported credential type: {type(credential).__name__}")
