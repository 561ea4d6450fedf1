# vaultsync Errors
# Exception taxonomy shared by every sync backend


class SyncError(Exception):
    """Base exception for all sync failures."""

    def __init__(self, message: str, detail: str = ""):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class ConfigError(SyncError):
    """Configuration is missing or invalid."""


class RepoAccessError(SyncError):
    """No repository, git binary missing, or permission denied."""


class RemoteConfigError(SyncError):
    """Remote binding could not be created or replaced."""


class NetworkError(SyncError):
    """Remote unreachable, invalid URL, or request timed out."""


class AuthError(NetworkError):
    """Credentials rejected by the remote (401/403)."""


class CommitError(SyncError):
    """Local write failure while staging or committing."""


class PullError(SyncError):
    """Remote history could not be integrated into the working copy."""


class PushError(SyncError):
    """Push rejected by the remote (non-fast-forward, auth, ...)."""


class PartialWriteError(SyncError):
    """Some content-API uploads failed while others succeeded."""

    def __init__(self, failures: dict[str, str], uploaded: int = 0):
        self.failures = dict(failures)
        self.uploaded = uploaded
        paths = ", ".join(sorted(self.failures))
        super().__init__(
            f"{len(self.failures)} of {len(self.failures) + uploaded} files failed to upload",
            paths,
        )


class NotFoundError(SyncError):
    """Path does not exist in the virtual filesystem."""
