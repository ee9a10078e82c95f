from __future__ import annotations

"""backend/gitclone/services/git/transport.py

Thin layer over the `git` and OpenSSH command line tools.

This module provides:

- BasicAuth / basic_auth: HTTP basic credentials for a clone
- SshKeyAuth / parse_private_key: a validated private key, ready to be
  handed to `ssh` through GIT_SSH_COMMAND
- CloneOptions: what to clone and how
- ensure_remote_branch: check that the remote has refs/heads/<branch>
- StreamProgress: forwards git's progress output to a text stream
- clone: run `git clone` through GitPython and raise a TransportError
  subclass on failure

git reports failures on stderr only. The few messages that identify a
missing repository or rejected credentials are translated into sentinel
exceptions here (see _STDERR_SENTINELS); everything else is raised as
CloneFailedError with git's text intact, for the error classifier to
look at.
"""

import base64
import os
import re
import shlex
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Dict, List, Optional, Protocol

from git import Git, RemoteProgress, Repo
from git.exc import GitCommandError, GitError

from gitclone.config import Settings, get_settings
from gitclone.services.git.exceptions import (
    AuthenticationRequiredError,
    CloneFailedError,
    KeyParseError,
    RepositoryNotFoundError,
    TransportError,
)


class AuthMethod(Protocol):
    """Credentials for one clone, expressed as environment for `git`."""

    def environment(self) -> Dict[str, str]:
        ...


# ---- HTTP ----


@dataclass
class BasicAuth:
    username: str = ""
    password: str = ""

    def __repr__(self) -> str:
        return f"BasicAuth(username={self.username!r}, password=***)"

    def environment(self) -> Dict[str, str]:
        """Pass the Authorization header through git's environment config.

        Credentials stay off the command line and out of the remote URL.
        """
        if not self.username and not self.password:
            return {}
        token = base64.b64encode(
            f"{self.username}:{self.password}".encode("utf-8")
        ).decode("ascii")
        return {
            "GIT_CONFIG_COUNT": "1",
            "GIT_CONFIG_KEY_0": "http.extraHeader",
            "GIT_CONFIG_VALUE_0": f"Authorization: Basic {token}",
        }


def basic_auth(username: Optional[str], password: Optional[str]) -> BasicAuth:
    return BasicAuth(username=username or "", password=password or "")


# ---- SSH ----


class SshKeyAuth:
    """A private key stored in a private temporary directory.

    Use as a context manager; the key file is removed on exit.
    """

    def __init__(
        self,
        key_path: Path,
        workdir: tempfile.TemporaryDirectory,
        *,
        ssh_binary: str = "ssh",
        strict_host_key_checking: bool = False,
    ) -> None:
        self.key_path = key_path
        self.ssh_binary = ssh_binary
        self.strict_host_key_checking = strict_host_key_checking
        self._workdir = workdir

    def ssh_command(self) -> List[str]:
        cmd = [
            self.ssh_binary,
            "-i",
            str(self.key_path),
            "-o",
            "IdentitiesOnly=yes",
            "-o",
            "BatchMode=yes",
        ]
        if self.strict_host_key_checking:
            cmd += ["-o", "StrictHostKeyChecking=yes"]
        else:
            cmd += [
                "-o",
                "StrictHostKeyChecking=no",
                "-o",
                "UserKnownHostsFile=/dev/null",
                "-o",
                "LogLevel=ERROR",
            ]
        return cmd

    def environment(self) -> Dict[str, str]:
        return {"GIT_SSH_COMMAND": shlex.join(self.ssh_command())}

    def close(self) -> None:
        self._workdir.cleanup()

    def __enter__(self) -> "SshKeyAuth":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _run_ssh_keygen(settings: Settings, args: List[str]) -> None:
    """Run ssh-keygen non-interactively; raise KeyParseError on failure."""
    cmd = [settings.ssh_keygen_binary, *args]
    try:
        proc = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=settings.ssh_keygen_timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise KeyParseError("timed out while reading the ssh private key") from exc
    except OSError as exc:
        raise KeyParseError(
            f"unable to run {settings.ssh_keygen_binary}: {exc}"
        ) from exc

    if proc.returncode != 0:
        detail = (proc.stderr or proc.stdout or "").strip()
        raise KeyParseError(
            detail or f"{settings.ssh_keygen_binary} exited with code {proc.returncode}"
        )


def parse_private_key(
    key: Optional[str],
    passphrase: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
) -> SshKeyAuth:
    """Validate private key material and prepare it for `ssh`.

    The key is written to a 0600 file in a fresh temporary directory and
    checked with `ssh-keygen -y`. A passphrase-protected key is decrypted
    in that private copy, since `ssh` runs in batch mode and cannot prompt.

    Raises:
        KeyParseError: if the key is empty, corrupt, or the passphrase is
            wrong. No network access happens here.
    """
    settings = settings or get_settings()
    if not key or not key.strip():
        raise KeyParseError("ssh: no key found")

    workdir = tempfile.TemporaryDirectory(prefix="gitclone-key-")
    key_path = Path(workdir.name) / "id_key"
    try:
        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            # ssh-keygen rejects OpenSSH keys without a trailing newline
            fh.write(key if key.endswith("\n") else key + "\n")

        _run_ssh_keygen(settings, ["-y", "-P", passphrase or "", "-f", str(key_path)])
        if passphrase:
            _run_ssh_keygen(
                settings, ["-p", "-P", passphrase, "-N", "", "-f", str(key_path)]
            )
    except Exception:
        workdir.cleanup()
        raise

    return SshKeyAuth(
        key_path,
        workdir,
        ssh_binary=settings.ssh_binary,
        strict_host_key_checking=settings.strict_host_key_checking,
    )


# ---- Clone ----


@dataclass
class CloneOptions:
    url: str
    target_directory: str
    branch: str = ""
    no_checkout: bool = False
    progress: Optional[IO[str]] = None


class StreamProgress(RemoteProgress):
    """Write git's progress lines to a text stream.

    Lines git prints that are not progress (warnings, remote messages,
    fatal errors) are kept in ``messages`` so a failed clone can report
    them.
    """

    def __init__(self, stream: Optional[IO[str]] = None) -> None:
        super().__init__()
        self._stream = stream
        self.messages: List[str] = []

    def _write(self, line: str) -> None:
        if self._stream is None:
            return
        self._stream.write(line.rstrip() + "\n")
        self._stream.flush()

    def update(self, op_code, cur_count, max_count=None, message="") -> None:
        self._write(self._cur_line or "")

    def line_dropped(self, line: str) -> None:
        if not line.startswith("Cloning into"):
            self.messages.append(line)
        self._write(line)

    def error_text(self) -> str:
        # error_lines holds "error:" / "fatal:" lines, collected by RemoteProgress
        return "\n".join([*self.error_lines, *self.messages]).strip()


# Ordered; first match wins. Applied to git's stderr.
_STDERR_SENTINELS: tuple[tuple[re.Pattern[str], type[TransportError]], ...] = (
    (re.compile(r"repository not found", re.I), RepositoryNotFoundError),
    (re.compile(r"repository '[^']*' (not found|does not exist)", re.I), RepositoryNotFoundError),
    (re.compile(r"does not appear to be a git repository", re.I), RepositoryNotFoundError),
    (re.compile(r"remote branch .* not found in upstream", re.I), RepositoryNotFoundError),
    (re.compile(r"authentication failed", re.I), AuthenticationRequiredError),
    (re.compile(r"could not read (username|password)", re.I), AuthenticationRequiredError),
    (re.compile(r"permission denied \(publickey", re.I), AuthenticationRequiredError),
)

_STDERR_FRAME_RE = re.compile(r"^\s*stderr: '(.*)'\s*$", re.S)


def _stderr_text(exc: GitCommandError) -> str:
    """Strip GitPython's "stderr: '...'" framing from a command error."""
    raw = exc.stderr or ""
    match = _STDERR_FRAME_RE.match(raw)
    return (match.group(1) if match else raw).strip()


def translate_command_error(
    exc: GitCommandError, progress: Optional[StreamProgress] = None
) -> TransportError:
    """Map a failed `git clone` to a TransportError subclass."""
    # With a progress handler attached git's stderr is consumed line by line,
    # so the interesting text ends up on the handler instead of the exception.
    parts = [progress.error_text() if progress is not None else "", _stderr_text(exc)]
    text = "\n".join(p for p in parts if p) or str(exc)

    for pattern, error_cls in _STDERR_SENTINELS:
        if pattern.search(text):
            return error_cls(text)
    return CloneFailedError(text)


def ensure_remote_branch(url: str, branch: str, env: Dict[str, str]) -> None:
    """Fail unless the remote has ``refs/heads/<branch>``.

    `git clone --branch` also accepts tag names; only branches may be
    cloned here. Runs `git ls-remote` under the same auth environment as
    the clone.

    Raises:
        RepositoryNotFoundError, AuthenticationRequiredError, CloneFailedError
    """
    ref = f"refs/heads/{branch}"
    if not branch:
        raise RepositoryNotFoundError(f"couldn't find remote ref {ref}")

    git = Git()
    git.update_environment(**env)
    try:
        Git.check_unsafe_protocols(url)
        git.ls_remote("--exit-code", "--heads", "--", url, ref)
    except GitCommandError as exc:
        # --exit-code: status 2 means the remote answered without that ref
        if exc.status == 2:
            raise RepositoryNotFoundError(f"couldn't find remote ref {ref}") from exc
        raise translate_command_error(exc) from exc
    except GitError as exc:
        raise CloneFailedError(str(exc)) from exc
    except OSError as exc:
        raise CloneFailedError(str(exc)) from exc


def clone(options: CloneOptions, auth: AuthMethod) -> None:
    """Clone ``refs/heads/<branch>`` of ``options.url`` into ``options.target_directory``.

    Blocks until the transfer and the optional checkout are done. Tags are
    not fetched; submodules are cloned recursively. An empty or unknown
    branch, or a tag name, is reported as a missing remote ref before any
    object is transferred.

    Raises:
        RepositoryNotFoundError, AuthenticationRequiredError, CloneFailedError
    """
    env = {"GIT_TERMINAL_PROMPT": "0"}
    env.update(auth.environment())

    ensure_remote_branch(options.url, options.branch, env)

    clone_kwargs = {
        # Passed verbatim; "feature/x" resolves to refs/heads/feature/x.
        "branch": options.branch,
        "single_branch": True,
        "no_tags": True,
        "recurse_submodules": True,
    }
    if options.no_checkout:
        clone_kwargs["no_checkout"] = True

    progress = StreamProgress(options.progress)
    try:
        repo = Repo.clone_from(
            options.url,
            options.target_directory,
            progress=progress,
            env=env,
            **clone_kwargs,
        )
    except GitCommandError as exc:
        raise translate_command_error(exc, progress) from exc
    except GitError as exc:
        # GitCommandNotFound when git is not on PATH, unsafe URL schemes, ...
        raise CloneFailedError(str(exc)) from exc
    except OSError as exc:
        raise CloneFailedError(str(exc)) from exc
    repo.close()
