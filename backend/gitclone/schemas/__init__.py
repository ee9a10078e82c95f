# backend/gitclone/schemas/__init__.py
from __future__ import annotations

"""
Pydantic schemas for request/response models.

This module is the API contract layer. The JSON field names follow the
camelCase wire format callers already send (`sshAuth`, `useSsh`, ...);
the Python attributes are snake_case.

It is used by:
- gitclone.api.clone
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from gitclone.services.diagnostics.error_classifier import ErrorKind
from gitclone.services.git.orchestrator import Credential, HttpCredential, SshCredential


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------- Credentials ----------


class SshAuth(_WireModel):
    url: str = ""
    key: str = Field(default="", repr=False)
    key_password: str = Field(default="", alias="keyPassword", repr=False)


class HttpAuth(_WireModel):
    url: str = ""
    user: str = ""
    password: str = Field(default="", repr=False)


# ---------- Clone ----------


class CloneRequest(_WireModel):
    """
    Clone payload.

    Exactly one auth scheme is used per request: `useSsh` selects
    `sshAuth`, otherwise `useHttp` selects `httpAuth`. With neither flag
    set the request carries no usable credential.
    """

    ssh_auth: SshAuth = Field(default_factory=SshAuth, alias="sshAuth")
    http_auth: HttpAuth = Field(default_factory=HttpAuth, alias="httpAuth")
    branch: str = ""
    no_checkout: bool = Field(default=False, alias="noCheckout")
    use_ssh: bool = Field(default=False, alias="useSsh")
    use_http: bool = Field(default=False, alias="useHttp")

    def credential(self) -> Optional[Credential]:
        """Resolve the boolean flags into a single credential, or None."""
        if self.use_ssh:
            return SshCredential(
                remote_url=self.ssh_auth.url,
                private_key=self.ssh_auth.key,
                key_passphrase=self.ssh_auth.key_password,
            )
        if self.use_http:
            return HttpCredential(
                remote_url=self.http_auth.url,
                username=self.http_auth.user,
                password=self.http_auth.password,
            )
        return None


class CloneResponse(BaseModel):
    status: str
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
