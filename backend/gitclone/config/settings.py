from __future__ import annotations

"""backend/gitclone/config/settings.py

Service configuration using environment-driven settings.

This module centralizes:
- HTTP bind address and port
- the clone target directory
- SSH transport options (binaries, host key checking)
- logging level
"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  app_name: str = "gitclone"
  environment: str = "development"

  # HTTP server
  host: str = "0.0.0.0"
  port: int = 80

  # Every request clones into this directory
  clone_directory: str = "/data"

  # SSH transport.
  # Host keys are not verified unless this is enabled; turning it on is
  # recommended wherever known_hosts can be provisioned.
  strict_host_key_checking: bool = False
  ssh_binary: str = "ssh"
  ssh_keygen_binary: str = "ssh-keygen"
  ssh_keygen_timeout_seconds: int = 10

  log_level: str = "INFO"

  model_config = SettingsConfigDict(
      env_prefix="GITCLONE_",
      env_file=".env",
      env_file_encoding="utf-8",
  )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Return a cached Settings instance."""
  return Settings()
