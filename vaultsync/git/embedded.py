# vaultsync Embedded Git Engine
# In-process git over the virtual filesystem, no external process

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

from vaultsync.errors import (
    AuthError,
    CommitError,
    NetworkError,
    PullError,
    PushError,
    RemoteConfigError,
    RepoAccessError,
)
from vaultsync.git.engine import (
    BackendKind,
    CommitAuthor,
    CredentialProvider,
    FileChangeRow,
    PullOptions,
    PullSummary,
    PushOptions,
    PushSummary,
    RemoteBinding,
    WorkingTreeStatus,
)
from vaultsync.vfs import VirtualFilesystem

if TYPE_CHECKING:
    from vaultsync.notify import Notifier

AuthCallback = Callable[..., dict[str, str]]


class EmbeddedToolkit(Protocol):
    """
    Narrow interface to an in-process git implementation.

    Every call receives the virtual filesystem as ``fs`` and the vault root as
    ``dir``; the toolkit must not touch storage any other way. Network calls
    receive ``on_auth``, invoked per request and returning
    ``{"username": ..., "password": ...}``.
    """

    def init(self, *, fs: VirtualFilesystem, dir: str, default_branch: str) -> None: ...

    def status_matrix(self, *, fs: VirtualFilesystem, dir: str) -> list[Sequence]: ...

    def add(self, *, fs: VirtualFilesystem, dir: str, filepath: str) -> None: ...

    def remove(self, *, fs: VirtualFilesystem, dir: str, filepath: str) -> None: ...

    def commit(self, *, fs: VirtualFilesystem, dir: str, message: str, author: dict[str, str]) -> str: ...

    def log(self, *, fs: VirtualFilesystem, dir: str, ref: str) -> list[str]: ...

    def list_remotes(self, *, fs: VirtualFilesystem, dir: str) -> list[dict[str, str]]: ...

    def add_remote(self, *, fs: VirtualFilesystem, dir: str, remote: str, url: str) -> None: ...

    def fetch(
        self,
        *,
        fs: VirtualFilesystem,
        dir: str,
        remote: str,
        ref: str,
        single_branch: bool,
        tags: bool,
        on_auth: Optional[AuthCallback],
        timeout: float,
    ) -> None: ...

    def pull(
        self,
        *,
        fs: VirtualFilesystem,
        dir: str,
        remote: str,
        ref: str,
        single_branch: bool,
        author: dict[str, str],
        on_auth: Optional[AuthCallback],
        timeout: float,
    ) -> None: ...

    def push(
        self,
        *,
        fs: VirtualFilesystem,
        dir: str,
        remote: str,
        ref: str,
        on_auth: Optional[AuthCallback],
        timeout: float,
    ) -> None: ...


def make_auth_callback(credentials: Optional[CredentialProvider]) -> Optional[AuthCallback]:
    """
    Adapt a credential provider to the toolkit's per-request auth callback.

    The provider is consulted on every request so token changes take effect
    without rebuilding the engine.
    """
    if credentials is None:
        return None

    def on_auth(*_args: Any, **_kwargs: Any) -> dict[str, str]:
        current = credentials()
        if current is None:
            return {}
        return {"username": current.username, "password": current.token}

    return on_auth


# "HTTP Error: 401 Unauthorized", "HTTP 403"
_AUTH_STATUS_TEXT = re.compile(r"\bHTTP(?:\s+Error)?[\s:]+40[13]\b", re.IGNORECASE)


def _is_auth_rejection(exc: Exception) -> bool:
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if status is not None:
        return status in (401, 403)
    return _AUTH_STATUS_TEXT.search(str(exc)) is not None


class EmbeddedGitEngine:
    """
    Sync backend built on an in-process git toolkit.

    Unlike the native engine, an existing remote binding is never replaced:
    ``configure_remote`` adds the remote only when it is absent.
    """

    kind = BackendKind.EMBEDDED

    def __init__(
        self,
        fs: VirtualFilesystem,
        toolkit: EmbeddedToolkit,
        *,
        remote: str = "origin",
        branch: str = "main",
        author: Optional[CommitAuthor] = None,
        timeout: float = 60.0,
        notifier: Optional["Notifier"] = None,
    ):
        self.fs = fs
        self.toolkit = toolkit
        self.dir = fs.base_path
        self.remote = remote
        self.branch = branch
        self.author = author
        self.timeout = timeout
        self.notifier = notifier
        self._rows: list[FileChangeRow] = []
        self.unstaged: dict[str, str] = {}

    def ensure_repository(self) -> bool:
        """
        Initialize ``.git`` in the vault if it does not exist yet.

        Returns:
            True if a new repository was created.

        Raises:
            RepoAccessError: If initialization fails.
        """
        if self.fs.exists(".git"):
            return False
        try:
            self.toolkit.init(fs=self.fs, dir=self.dir, default_branch=self.branch)
        except Exception as e:
            raise RepoAccessError("Git init failed", str(e)) from e
        return True

    def status_matrix(self) -> list[FileChangeRow]:
        try:
            raw = self.toolkit.status_matrix(fs=self.fs, dir=self.dir)
        except Exception as e:
            raise RepoAccessError("Status failed", str(e)) from e
        return [FileChangeRow(str(r[0]), int(r[1]), int(r[2]), int(r[3])) for r in raw]

    def status(self) -> WorkingTreeStatus:
        self.ensure_repository()
        self._rows = self.status_matrix()
        changed = tuple(row.path for row in self._rows if row.changed)

        local = self._history(self.branch)
        remote = self._history(f"{self.remote}/{self.branch}")
        return WorkingTreeStatus(
            clean=not changed,
            ahead=len(local - remote),
            behind=len(remote - local),
            changed_paths=changed,
        )

    def _history(self, ref: str) -> set[str]:
        try:
            return set(self.toolkit.log(fs=self.fs, dir=self.dir, ref=ref))
        except Exception:
            # Unborn branch or remote-tracking ref not fetched yet
            return set()

    def stage_all(self, status: WorkingTreeStatus) -> list[str]:
        """
        Stage each changed path individually.

        A path that cannot be staged is recorded in ``unstaged`` and skipped.

        Raises:
            CommitError: If changes exist but none of them could be staged.
        """
        rows = self._rows or [FileChangeRow(path, 1, 2, 1) for path in status.changed_paths]
        staged: list[str] = []
        self.unstaged = {}

        for row in rows:
            if not row.changed:
                continue
            try:
                if row.deleted:
                    self.toolkit.remove(fs=self.fs, dir=self.dir, filepath=row.path)
                else:
                    self.toolkit.add(fs=self.fs, dir=self.dir, filepath=row.path)
            except Exception as e:
                self.unstaged[row.path] = str(e)
                continue
            staged.append(row.path)

        if self.unstaged and self.notifier is not None:
            self.notifier.warning(f"Skipped {len(self.unstaged)} file(s) that could not be staged")
        if self.unstaged and not staged:
            raise CommitError("Nothing could be staged", ", ".join(sorted(self.unstaged)))
        return staged

    def commit(self, message: str, author: CommitAuthor) -> Optional[str]:
        author = self.author or author
        try:
            return self.toolkit.commit(
                fs=self.fs,
                dir=self.dir,
                message=message,
                author={"name": author.name, "email": author.email},
            )
        except Exception as e:
            raise CommitError("Commit error", str(e)) from e

    def configure_remote(self, name: str, url: str) -> RemoteBinding:
        """Add the remote if absent; an existing binding keeps its URL."""
        existing = self._find_remote(name)
        if existing is not None:
            return existing
        try:
            self.toolkit.add_remote(fs=self.fs, dir=self.dir, remote=name, url=url)
        except Exception as e:
            if "already exists" in str(e).lower():
                return self._find_remote(name) or RemoteBinding(name=name, url=url)
            raise RemoteConfigError(f"Could not add remote '{name}'", str(e)) from e
        return RemoteBinding(name=name, url=url)

    def _find_remote(self, name: str) -> Optional[RemoteBinding]:
        try:
            remotes = self.toolkit.list_remotes(fs=self.fs, dir=self.dir)
        except Exception as e:
            raise RemoteConfigError("Could not read remotes", str(e)) from e
        for entry in remotes:
            if entry.get("remote") == name:
                return RemoteBinding(name=name, url=entry.get("url", ""))
        return None

    def remote_url(self, name: str) -> Optional[str]:
        binding = self._find_remote(name)
        return binding.url if binding else None

    def track_upstream(self, remote: str, ref: str) -> bool:
        return False

    def fetch(self, remote: str, ref: str, credentials: Optional[CredentialProvider] = None) -> bool:
        try:
            self.toolkit.fetch(
                fs=self.fs,
                dir=self.dir,
                remote=remote,
                ref=ref,
                single_branch=True,
                tags=False,
                on_auth=make_auth_callback(credentials),
                timeout=self.timeout,
            )
        except Exception as e:
            if _is_auth_rejection(e):
                raise AuthError("Remote rejected credentials", str(e)) from e
            raise NetworkError("Fetch error", str(e)) from e
        return True

    def pull(
        self,
        remote: str,
        ref: str,
        options: PullOptions,
        credentials: Optional[CredentialProvider] = None,
    ) -> Optional[PullSummary]:
        author = self.author or CommitAuthor(name="vaultsync")
        try:
            self.toolkit.pull(
                fs=self.fs,
                dir=self.dir,
                remote=remote,
                ref=ref,
                single_branch=True,
                author={"name": author.name, "email": author.email},
                on_auth=make_auth_callback(credentials),
                timeout=self.timeout,
            )
        except Exception as e:
            raise PullError("Pull failed", str(e)) from e
        return PullSummary()

    def push(
        self,
        remote: str,
        ref: str,
        options: PushOptions,
        credentials: Optional[CredentialProvider] = None,
    ) -> PushSummary:
        try:
            self.toolkit.push(
                fs=self.fs,
                dir=self.dir,
                remote=remote,
                ref=ref,
                on_auth=make_auth_callback(credentials),
                timeout=self.timeout,
            )
        except Exception as e:
            raise PushError("Push failed", str(e)) from e
        return PushSummary()
