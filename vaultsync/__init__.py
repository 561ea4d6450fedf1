"""vaultsync - keep a document vault in sync with a remote git repository.

Syncs through the native git binary, an embedded in-process git toolkit
over a virtual filesystem, or a hosting provider's content API, with the
same step order and failure semantics for all three.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "SyncConfiguration",
    "SyncOrchestrator",
    "AutoSyncScheduler",
    "SyncResult",
    "WorkingTreeStatus",
    "LocalVault",
    "VirtualFilesystem",
    "NativeGitEngine",
    "EmbeddedGitEngine",
    "DirectContentSyncEngine",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name == "SyncConfiguration":
        from vaultsync.config.schema import SyncConfiguration

        return SyncConfiguration
    if name in ("SyncOrchestrator", "AutoSyncScheduler", "SyncResult"):
        from vaultsync import sync

        return getattr(sync, name)
    if name in ("WorkingTreeStatus", "NativeGitEngine", "EmbeddedGitEngine"):
        from vaultsync import git

        return getattr(git, name)
    if name == "LocalVault":
        from vaultsync.vault import LocalVault

        return LocalVault
    if name == "VirtualFilesystem":
        from vaultsync.vfs import VirtualFilesystem

        return VirtualFilesystem
    if name == "DirectContentSyncEngine":
        from vaultsync.content import DirectContentSyncEngine

        return DirectContentSyncEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
