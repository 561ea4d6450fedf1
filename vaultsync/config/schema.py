# vaultsync Configuration Schema
# Pydantic model for the flat YAML settings file

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from vaultsync.git.engine import CredentialProvider, Credentials

TOKEN_ENV_VAR = "VAULTSYNC_TOKEN"


class BackendChoice(str, Enum):
    """Which sync backend to use."""

    AUTO = "auto"
    NATIVE = "native"
    EMBEDDED = "embedded"
    CONTENT_API = "content_api"


def parse_interval(value: Any) -> int:
    """
    Coerce a sync interval setting to whole minutes.

    Non-numeric, negative, or otherwise malformed values disable the
    recurring trigger (0) instead of raising.

    Args:
        value: Raw setting value.

    Returns:
        Interval in minutes, 0 when disabled.
    """
    if isinstance(value, bool) or value is None:
        return 0
    try:
        minutes = float(str(value).strip())
    except ValueError:
        return 0
    if minutes != minutes or minutes < 1 or minutes == float("inf"):
        return 0
    return int(minutes)


class SyncConfiguration(BaseModel):
    """Root configuration model for vaultsync."""

    vault_path: str = Field(default=".", description="Vault root directory")
    remote_url: str = Field(default="", description="Remote repository URL (HTTPS or SSH)")
    remote_name: str = Field(default="origin", description="Remote binding name")
    branch: str = Field(default="main", description="Branch synchronized with the remote")
    git_path: Optional[str] = Field(
        default=None, description="Git binary, or directory containing it, when not on PATH"
    )
    backend: BackendChoice = Field(default=BackendChoice.AUTO, description="Sync backend selection")
    sync_interval: int = Field(default=0, description="Minutes between automatic syncs, 0 disables")
    sync_on_load: bool = Field(default=False, description="Sync at startup when behind the remote")
    username: str = Field(default="", description="Username for HTTPS remotes")
    token: str = Field(default="", description="Personal access token for HTTPS remotes")
    network_timeout: float = Field(default=60.0, gt=0, description="Seconds before network steps give up")
    api_base_url: str = Field(default="https://api.github.com", description="Content API root")
    content_commit_message: str = Field(default="Vault sync", description="Message for content API upserts")
    exclude: list[str] = Field(
        default_factory=lambda: [".git", ".trash"],
        description="Vault paths never uploaded by the content API backend",
    )
    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    sync_history: Optional[str] = Field(default=None, description="Path to sync history log")

    @field_validator("sync_interval", mode="before")
    @classmethod
    def coerce_interval(cls, v: Any) -> int:
        """Malformed intervals disable the recurring trigger."""
        return parse_interval(v)

    @field_validator("vault_path")
    @classmethod
    def expand_vault_path(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser())

    @field_validator("sync_history")
    @classmethod
    def expand_optional_path(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return str(Path(v).expanduser())

    @field_validator("username", "token", "remote_url", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def credentials(self) -> Optional[Credentials]:
        """
        Current credential pair.

        ``VAULTSYNC_TOKEN`` takes precedence over the stored token.

        Returns:
            Credentials, or None if no token is configured.
        """
        token = os.environ.get(TOKEN_ENV_VAR) or self.token
        if not token:
            return None
        return Credentials(username=self.username, token=token)


def credential_provider(config: SyncConfiguration) -> CredentialProvider:
    """Build a provider that reads the credentials at call time."""
    return config.credentials
