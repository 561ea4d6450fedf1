# vaultsync Git Module
# Sync contract and the native / embedded git backends

from vaultsync.git.embedded import EmbeddedGitEngine, EmbeddedToolkit, make_auth_callback
from vaultsync.git.engine import (
    BackendKind,
    CommitAuthor,
    CredentialProvider,
    Credentials,
    FileChangeRow,
    PullOptions,
    PullSummary,
    PushOptions,
    PushSummary,
    RemoteBinding,
    SyncBackend,
    WorkingTreeStatus,
    build_commit_message,
    changes_exist,
)
from vaultsync.git.native import (
    CommandResult,
    CommandRunner,
    GitCommandError,
    NativeGitEngine,
    SubprocessRunner,
    resolve_git_binary,
)

__all__ = [
    # Contract
    "BackendKind",
    "SyncBackend",
    "WorkingTreeStatus",
    "FileChangeRow",
    "RemoteBinding",
    "CommitAuthor",
    "Credentials",
    "CredentialProvider",
    "PullOptions",
    "PushOptions",
    "PullSummary",
    "PushSummary",
    "build_commit_message",
    "changes_exist",
    # Native
    "NativeGitEngine",
    "CommandRunner",
    "CommandResult",
    "SubprocessRunner",
    "GitCommandError",
    "resolve_git_binary",
    # Embedded
    "EmbeddedGitEngine",
    "EmbeddedToolkit",
    "make_auth_callback",
]
