# vaultsync Backend Selection
# Chooses and constructs the sync backend for one attempt

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import httpx

from vaultsync.config.schema import BackendChoice, SyncConfiguration
from vaultsync.content import DirectContentSyncEngine
from vaultsync.errors import RepoAccessError
from vaultsync.git.embedded import EmbeddedGitEngine, EmbeddedToolkit
from vaultsync.git.engine import BackendKind, CommitAuthor, SyncBackend
from vaultsync.git.native import CommandRunner, NativeGitEngine, resolve_git_binary
from vaultsync.utils.platform import can_spawn_processes, get_host_identifier
from vaultsync.vault import Vault
from vaultsync.vfs import VirtualFilesystem

if TYPE_CHECKING:
    from vaultsync.notify import Notifier


@dataclass(frozen=True)
class HostCapabilities:
    """What the host runtime can offer to the sync backends."""

    can_spawn_processes: bool = True
    embedded_toolkit: Optional[EmbeddedToolkit] = None

    @classmethod
    def detect(cls, embedded_toolkit: Optional[EmbeddedToolkit] = None) -> "HostCapabilities":
        return cls(can_spawn_processes=can_spawn_processes(), embedded_toolkit=embedded_toolkit)


def choose_backend_kind(choice: BackendChoice, capabilities: HostCapabilities) -> BackendKind:
    """
    Resolve the configured backend choice against host capabilities.

    ``auto`` prefers native git, then the embedded toolkit, then the
    content API.

    Raises:
        RepoAccessError: If an explicitly chosen backend is unavailable.
    """
    if choice == BackendChoice.AUTO:
        if capabilities.can_spawn_processes:
            return BackendKind.NATIVE
        if capabilities.embedded_toolkit is not None:
            return BackendKind.EMBEDDED
        return BackendKind.CONTENT_API

    kind = BackendKind(choice.value)
    if kind == BackendKind.NATIVE and not capabilities.can_spawn_processes:
        raise RepoAccessError("Native git backend unavailable", "this host cannot spawn processes")
    if kind == BackendKind.EMBEDDED and capabilities.embedded_toolkit is None:
        raise RepoAccessError("Embedded git backend unavailable", "no embedded git toolkit installed")
    return kind


def build_backend(
    config: SyncConfiguration,
    vault: Vault,
    capabilities: HostCapabilities,
    *,
    notifier: Optional["Notifier"] = None,
    runner: Optional[CommandRunner] = None,
    http_client: Optional[httpx.Client] = None,
    host: Optional[str] = None,
) -> SyncBackend:
    """
    Construct a fresh backend for one sync attempt.

    Args:
        config: Current configuration.
        vault: Host vault.
        capabilities: Host capabilities.
        notifier: Notifier for backend warnings.
        runner: Command runner for the native backend.
        http_client: httpx client for the content API backend.
        host: Device identifier for commit authorship.

    Returns:
        Backend implementing the sync contract.
    """
    kind = choose_backend_kind(config.backend, capabilities)

    if kind == BackendKind.NATIVE:
        return NativeGitEngine(
            vault.get_base_path(),
            git_binary=resolve_git_binary(config.git_path),
            runner=runner,
            remote=config.remote_name,
            branch=config.branch,
            timeout=config.network_timeout,
        )

    if kind == BackendKind.EMBEDDED:
        assert capabilities.embedded_toolkit is not None
        return EmbeddedGitEngine(
            VirtualFilesystem(vault, notifier=notifier),
            capabilities.embedded_toolkit,
            remote=config.remote_name,
            branch=config.branch,
            author=CommitAuthor(name=host or get_host_identifier()),
            timeout=config.network_timeout,
            notifier=notifier,
        )

    return DirectContentSyncEngine(
        vault,
        api_base_url=config.api_base_url,
        commit_message=config.content_commit_message,
        exclude=config.exclude,
        timeout=config.network_timeout,
        client=http_client,
    )
