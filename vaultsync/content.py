# vaultsync Direct Content Sync
# One-way overwrite of vault files through a hosting provider's content API

import base64
import re
from contextlib import nullcontext
from typing import Optional
from urllib.parse import quote

import httpx

from vaultsync.errors import PartialWriteError, RemoteConfigError
from vaultsync.git.engine import (
    BackendKind,
    CommitAuthor,
    CredentialProvider,
    PullOptions,
    PullSummary,
    PushOptions,
    PushSummary,
    RemoteBinding,
    WorkingTreeStatus,
)
from vaultsync.utils.paths import matches_any_pattern
from vaultsync.vault import Vault

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_COMMIT_MESSAGE = "Vault sync"
DEFAULT_EXCLUDE = [".git"]

_REPO_URL_RE = re.compile(
    r"^(?:(?:https?|ssh)://(?:[^@/]+@)?[^/]+/|[^@/\s]+@[^:/\s]+:)"
    r"(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$"
)


def parse_repository(url: str) -> tuple[str, str]:
    """
    Extract owner and repository name from a remote URL.

    Supports HTTPS (``https://github.com/owner/repo.git``) and SSH
    (``git@github.com:owner/repo.git``) forms.

    Raises:
        RemoteConfigError: If the URL does not name an owner/repo pair.
    """
    match = _REPO_URL_RE.match(url.strip())
    if match is None:
        raise RemoteConfigError("Cannot determine owner/repo from remote URL", url)
    return match.group("owner"), match.group("repo")


class DirectContentSyncEngine:
    """
    Sync backend that overwrites remote files via the REST content API.

    Keeps no local history. Every run uploads every vault file (last write
    wins), never deletes remote files and never merges remote changes, so
    concurrent edits from other devices are overwritten.
    """

    kind = BackendKind.CONTENT_API

    def __init__(
        self,
        vault: Vault,
        *,
        api_base_url: str = DEFAULT_API_BASE_URL,
        commit_message: str = DEFAULT_COMMIT_MESSAGE,
        exclude: Optional[list[str]] = None,
        timeout: float = 60.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize engine.

        Args:
            vault: Host vault to read files from.
            api_base_url: Hosting provider API root.
            commit_message: Fixed message for every upsert.
            exclude: Glob patterns of vault paths never uploaded.
            timeout: Per-request timeout in seconds.
            client: Optional preconfigured httpx client (not closed by the engine).
        """
        self.vault = vault
        self.api_base_url = api_base_url.rstrip("/")
        self.commit_message = commit_message
        self.exclude = DEFAULT_EXCLUDE if exclude is None else exclude
        self.timeout = timeout
        self.client = client
        self.pending: list[str] = []
        self.binding: Optional[RemoteBinding] = None
        self.owner: Optional[str] = None
        self.repo: Optional[str] = None

    def files(self) -> list[str]:
        """Vault paths that will be uploaded."""
        return [f.path for f in self.vault.list_all_files() if not matches_any_pattern(f.path, self.exclude)]

    def status(self) -> WorkingTreeStatus:
        # No history to compare against: every file is always pending
        paths = tuple(self.files())
        return WorkingTreeStatus(clean=not paths, changed_paths=paths)

    def stage_all(self, status: WorkingTreeStatus) -> list[str]:
        self.pending = list(status.changed_paths)
        return self.pending

    def commit(self, message: str, author: CommitAuthor) -> Optional[str]:
        """Record the upload set; there is no local history to write to."""
        if not self.pending:
            return None
        return f"snapshot of {len(self.pending)} files"

    def configure_remote(self, name: str, url: str) -> RemoteBinding:
        self.owner, self.repo = parse_repository(url)
        self.binding = RemoteBinding(name=name, url=url)
        return self.binding

    def remote_url(self, name: str) -> Optional[str]:
        return self.binding.url if self.binding else None

    def track_upstream(self, remote: str, ref: str) -> bool:
        return False

    def fetch(self, remote: str, ref: str, credentials: Optional[CredentialProvider] = None) -> bool:
        return False

    def pull(
        self,
        remote: str,
        ref: str,
        options: PullOptions,
        credentials: Optional[CredentialProvider] = None,
    ) -> Optional[PullSummary]:
        return None

    def push(
        self,
        remote: str,
        ref: str,
        options: PushOptions,
        credentials: Optional[CredentialProvider] = None,
    ) -> PushSummary:
        """
        Upload every vault file to branch ``ref``.

        Each upsert is independent; a failed file does not stop the others.

        Raises:
            RemoteConfigError: If no remote has been configured.
            PartialWriteError: If at least one file failed to upload.
        """
        if self.owner is None or self.repo is None:
            raise RemoteConfigError("No remote configured for content sync")

        creds = credentials() if credentials is not None else None
        headers = {"Accept": "application/vnd.github+json"}
        if creds is not None and creds.token:
            headers["Authorization"] = f"token {creds.token}"

        uploaded: list[str] = []
        failures: dict[str, str] = {}

        client_cm = nullcontext(self.client) if self.client is not None else httpx.Client(timeout=self.timeout)
        with client_cm as client:
            for path in self.files():
                try:
                    self.upsert(client, path, ref, headers)
                except httpx.HTTPStatusError as e:
                    failures[path] = f"HTTP {e.response.status_code}"
                except httpx.TimeoutException:
                    failures[path] = "request timed out"
                except (httpx.HTTPError, OSError, UnicodeError) as e:
                    failures[path] = str(e) or e.__class__.__name__
                else:
                    uploaded.append(path)

        if failures:
            raise PartialWriteError(failures, uploaded=len(uploaded))
        return PushSummary(uploaded=uploaded)

    def content_url(self, path: str) -> str:
        return f"{self.api_base_url}/repos/{self.owner}/{self.repo}/contents/{quote(path)}"

    def read_encoded(self, path: str) -> str:
        """Read a vault file and base64-encode it."""
        if hasattr(self.vault, "read_binary"):
            data = self.vault.read_binary(path)
        else:
            data = self.vault.read(path).encode("utf-8")
        return base64.b64encode(data).decode("ascii")

    def upsert(self, client: httpx.Client, path: str, branch: str, headers: dict[str, str]) -> httpx.Response:
        """
        Create or overwrite one remote file.

        GitHub rejects updates of an existing file without its blob ``sha``
        (422); in that case the current sha is looked up and sent along.

        Raises:
            httpx.HTTPStatusError: If the provider rejects the request.
        """
        url = self.content_url(path)
        body = {"message": self.commit_message, "content": self.read_encoded(path), "branch": branch}

        response = client.put(url, json=body, headers=headers)
        if response.status_code == 422:
            sha = self._current_sha(client, url, branch, headers)
            if sha is not None:
                response = client.put(url, json={**body, "sha": sha}, headers=headers)

        response.raise_for_status()
        return response

    def _current_sha(self, client: httpx.Client, url: str, branch: str, headers: dict[str, str]) -> Optional[str]:
        response = client.get(url, params={"ref": branch}, headers=headers)
        if response.status_code != 200:
            return None
        payload = response.json()
        return payload.get("sha") if isinstance(payload, dict) else None
