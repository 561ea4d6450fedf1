# vaultsync Git Engine
# Backend-independent sync contract and the values passed across it

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional, Protocol

PLACEHOLDER_EMAIL = "noreply@example.com"


class BackendKind(str, Enum):
    """Closed set of sync backends."""

    NATIVE = "native"
    EMBEDDED = "embedded"
    CONTENT_API = "content_api"


@dataclass(frozen=True)
class WorkingTreeStatus:
    """Local working tree state relative to the remote tracking branch."""

    clean: bool
    ahead: int = 0
    behind: int = 0
    changed_paths: tuple[str, ...] = ()

    @property
    def dirty(self) -> bool:
        return not self.clean

    @property
    def diverged(self) -> bool:
        return self.ahead > 0 and self.behind > 0

    @property
    def up_to_date(self) -> bool:
        return self.ahead == 0 and self.behind == 0


class FileChangeRow(NamedTuple):
    """
    One row of an embedded status matrix.

    ``head``, ``workdir`` and ``stage`` are small integers describing the
    committed, working and staged version of ``path``. A row with
    ``head != workdir`` has pending local changes.
    """

    path: str
    head: int
    workdir: int
    stage: int

    @property
    def changed(self) -> bool:
        return self.head != self.workdir

    @property
    def deleted(self) -> bool:
        return self.head == 1 and self.workdir == 0


def changes_exist(rows: Iterable[Sequence]) -> bool:
    """
    Check whether any status-matrix row has pending local changes.

    Args:
        rows: ``FileChangeRow`` values or raw ``[path, head, workdir, stage]``
            sequences.

    Returns:
        True iff some row has head-state != workdir-state.
    """
    return any(row[1] != row[2] for row in rows)


@dataclass(frozen=True)
class RemoteBinding:
    """A named pointer to a remote repository URL."""

    name: str
    url: str


@dataclass(frozen=True)
class CommitAuthor:
    """Commit identity used where the backend has no configured user."""

    name: str
    email: str = PLACEHOLDER_EMAIL

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class Credentials:
    """Username and token pair for HTTPS remotes."""

    username: str
    token: str


CredentialProvider = Callable[[], Optional[Credentials]]


@dataclass(frozen=True)
class PullOptions:
    """Pull behaviour. Rebasing is never used for vault sync."""

    rebase: bool = False


@dataclass(frozen=True)
class PushOptions:
    set_upstream: bool = True


@dataclass
class PullSummary:
    """Outcome of a successful pull."""

    changes: Optional[int] = None


@dataclass
class PushSummary:
    """Outcome of a successful push."""

    uploaded: list[str] = field(default_factory=list)


def build_commit_message(host: str, when: Optional[datetime] = None) -> str:
    """
    Build the human-readable commit message for a sync.

    Args:
        host: Device identifier.
        when: Timestamp (defaults to now).

    Returns:
        Message of the form ``"<host> 2024-3-7 9:5:2"``.
    """
    when = when or datetime.now()
    return (
        f"{host} {when.year}-{when.month}-{when.day} "
        f"{when.hour}:{when.minute}:{when.second}"
    )


class SyncBackend(Protocol):
    """
    Capability set shared by every backend.

    The orchestrator is written once against this protocol; backends signal
    "not applicable here" by returning ``None``/``False`` rather than by
    being special-cased.
    """

    kind: BackendKind

    def status(self) -> WorkingTreeStatus:
        """Raises RepoAccessError if the store is not a usable repository."""
        ...

    def stage_all(self, status: WorkingTreeStatus) -> list[str]:
        """Stage every changed path. Raises CommitError."""
        ...

    def commit(self, message: str, author: CommitAuthor) -> Optional[str]:
        """Commit staged changes, returning the commit id or None when nothing was committed."""
        ...

    def configure_remote(self, name: str, url: str) -> RemoteBinding:
        """Raises RemoteConfigError."""
        ...

    def remote_url(self, name: str) -> Optional[str]:
        """URL currently bound to ``name``, or None."""
        ...

    def track_upstream(self, remote: str, ref: str) -> bool:
        """Set the branch upstream; False when not applicable or refused."""
        ...

    def fetch(self, remote: str, ref: str, credentials: Optional[CredentialProvider] = None) -> bool:
        """Return False if fetching does not apply. Raises NetworkError."""
        ...

    def pull(
        self,
        remote: str,
        ref: str,
        options: PullOptions,
        credentials: Optional[CredentialProvider] = None,
    ) -> Optional[PullSummary]:
        """Return None if pulling does not apply. Raises PullError or NetworkError."""
        ...

    def push(
        self,
        remote: str,
        ref: str,
        options: PushOptions,
        credentials: Optional[CredentialProvider] = None,
    ) -> PushSummary:
        """Raises PushError (PartialWriteError for the content API)."""
        ...
