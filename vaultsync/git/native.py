# vaultsync Native Git Engine
# Drives the git binary through an explicit command-execution port

import re
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from vaultsync.errors import (
    AuthError,
    CommitError,
    NetworkError,
    PullError,
    PushError,
    RemoteConfigError,
    RepoAccessError,
    SyncError,
)
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

DEFAULT_TIMEOUT = 60.0

_AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "permission denied",
    "invalid username or password",
    "the requested url returned error: 401",
    "the requested url returned error: 403",
)

_CHANGES_RE = re.compile(r"(\d+) files? changed")


@dataclass(frozen=True)
class CommandResult:
    """Exit code and captured output of a finished command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """
    Command-execution port.

    Implementations raise ``FileNotFoundError`` when the executable is
    missing and ``subprocess.TimeoutExpired`` when ``timeout`` elapses.
    """

    def run(self, args: Sequence[str], *, cwd: Path, timeout: Optional[float] = None) -> CommandResult: ...


class SubprocessRunner:
    """CommandRunner backed by ``subprocess.run``."""

    def run(self, args: Sequence[str], *, cwd: Path, timeout: Optional[float] = None) -> CommandResult:
        result = subprocess.run(
            list(args),
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=(result.stderr or "").strip(),
        )


class GitCommandError(SyncError):
    """A git command exited with a non-zero status."""

    def __init__(self, message: str, returncode: int = 1, stderr: str = "", stdout: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(message, stderr)


def resolve_git_binary(git_path: Optional[str] = None) -> str:
    """
    Resolve the git executable from an optional location override.

    Args:
        git_path: Path to the git binary, or to the directory containing it.

    Returns:
        Executable to invoke; plain ``git`` (found via PATH) when unset.
    """
    if not git_path:
        return "git"
    candidate = Path(git_path).expanduser()
    if git_path.endswith(("/", "\\")) or candidate.is_dir():
        return str(candidate / "git")
    return str(candidate)


def is_auth_failure(stderr: str) -> bool:
    """Check git error output for credential rejection."""
    lowered = stderr.lower()
    return any(marker in lowered for marker in _AUTH_MARKERS)


def parse_porcelain(output: str) -> list[str]:
    """
    Parse ``git status --porcelain`` output into changed paths.

    Args:
        output: Porcelain v1 status output.

    Returns:
        Sorted list of changed paths (rename targets for renames).
    """
    paths: set[str] = set()
    for line in output.splitlines():
        if len(line) < 4:
            continue
        # Format: XY filename
        filename = line[3:]
        if " -> " in filename:
            filename = filename.split(" -> ")[1]
        paths.add(filename.strip('"'))
    return sorted(paths)


class NativeGitEngine:
    """Sync backend that runs the native git binary inside the vault."""

    kind = BackendKind.NATIVE

    def __init__(
        self,
        repo_path: Path | str,
        *,
        git_binary: str = "git",
        runner: Optional[CommandRunner] = None,
        remote: str = "origin",
        branch: str = "main",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize engine.

        Args:
            repo_path: Vault root (git working tree).
            git_binary: Executable to run.
            runner: Command-execution port (subprocess by default).
            remote: Remote used for ahead/behind counts.
            branch: Branch used for ahead/behind counts.
            timeout: Seconds before a git command is abandoned.
        """
        self.repo_path = Path(repo_path)
        self.git_binary = git_binary
        self.runner = runner or SubprocessRunner()
        self.remote = remote
        self.branch = branch
        self.timeout = timeout

    def _run_git(self, *args: str, check: bool = True, network: bool = False) -> CommandResult:
        """
        Run a git command in the vault.

        Raises:
            RepoAccessError: If the vault directory or the binary is missing.
                Also raised when a local command times out.
            NetworkError: If a network command times out.
            GitCommandError: If the command fails and check is True.
        """
        if not self.repo_path.is_dir():
            raise RepoAccessError("Vault directory not found", str(self.repo_path))

        cmd = [self.git_binary, *args]
        try:
            result = self.runner.run(cmd, cwd=self.repo_path, timeout=self.timeout)
        except FileNotFoundError:
            raise RepoAccessError("git binary cannot be found", self.git_binary) from None
        except PermissionError as e:
            raise RepoAccessError("Permission denied running git", str(e)) from e
        except subprocess.TimeoutExpired:
            error_cls = NetworkError if network else RepoAccessError
            raise error_cls(f"git {args[0]} timed out", f"after {self.timeout:g}s") from None

        if check and not result.ok:
            raise GitCommandError(
                f"Git command failed: {' '.join(cmd)}",
                returncode=result.returncode,
                stderr=result.stderr,
                stdout=result.stdout,
            )
        return result

    def status(self) -> WorkingTreeStatus:
        try:
            self._run_git("rev-parse", "--is-inside-work-tree")
            output = self._run_git("status", "--porcelain").stdout
        except GitCommandError as e:
            raise RepoAccessError("Vault is not a Git repo", e.stderr) from e

        changed = parse_porcelain(output)
        ahead, behind = self._divergence()
        return WorkingTreeStatus(clean=not changed, ahead=ahead, behind=behind, changed_paths=tuple(changed))

    def _divergence(self) -> tuple[int, int]:
        # Missing remote-tracking ref (never fetched, unborn branch) counts as no divergence
        result = self._run_git(
            "rev-list", "--left-right", "--count", f"HEAD...{self.remote}/{self.branch}", check=False
        )
        parts = result.stdout.split()
        if not result.ok or len(parts) != 2:
            return 0, 0
        return int(parts[0]), int(parts[1])

    def stage_all(self, status: WorkingTreeStatus) -> list[str]:
        try:
            self._run_git("add", "-A")
        except GitCommandError as e:
            raise CommitError("Staging failed", e.stderr) from e
        return list(status.changed_paths)

    def commit(self, message: str, author: CommitAuthor) -> Optional[str]:
        """Commit with git's configured identity; ``author`` is not used here."""
        result = self._run_git("commit", "-m", message, check=False)
        if not result.ok:
            if "nothing to commit" in result.stdout or "nothing added to commit" in result.stdout:
                return None
            raise CommitError("Commit failed", result.stderr or result.stdout.strip())
        return self._run_git("rev-parse", "HEAD").stdout.strip()

    def configure_remote(self, name: str, url: str) -> RemoteBinding:
        """Remove then re-add the binding so it always matches ``url``."""
        # Removing a binding that does not exist is expected on first sync
        self._run_git("remote", "remove", name, check=False)
        try:
            self._run_git("remote", "add", name, url)
        except GitCommandError as e:
            raise RemoteConfigError(f"Could not set remote '{name}'", e.stderr) from e
        return RemoteBinding(name=name, url=url)

    def remote_url(self, name: str) -> Optional[str]:
        result = self._run_git("remote", "get-url", name, check=False)
        return result.stdout.strip() if result.ok else None

    def track_upstream(self, remote: str, ref: str) -> bool:
        """Point the local branch at ``remote/ref``. Returns False if git refused."""
        result = self._run_git("branch", f"--set-upstream-to={remote}/{ref}", check=False)
        return result.ok

    def fetch(self, remote: str, ref: str, credentials: Optional[CredentialProvider] = None) -> bool:
        try:
            self._run_git("fetch", remote, network=True)
        except GitCommandError as e:
            if is_auth_failure(e.stderr):
                raise AuthError("Remote rejected credentials", e.stderr) from e
            raise NetworkError("Invalid remote URL or remote unreachable", e.stderr) from e
        return True

    def pull(
        self,
        remote: str,
        ref: str,
        options: PullOptions,
        credentials: Optional[CredentialProvider] = None,
    ) -> Optional[PullSummary]:
        mode = "--rebase" if options.rebase else "--no-rebase"
        try:
            result = self._run_git("pull", mode, remote, ref, network=True)
        except GitCommandError as e:
            raise PullError("Pull failed", e.stderr or e.stdout.strip()) from e

        if "Already up to date" in result.stdout:
            return PullSummary(changes=0)
        match = _CHANGES_RE.search(result.stdout)
        return PullSummary(changes=int(match.group(1)) if match else None)

    def push(
        self,
        remote: str,
        ref: str,
        options: PushOptions,
        credentials: Optional[CredentialProvider] = None,
    ) -> PushSummary:
        args = ["push"]
        if options.set_upstream:
            args.append("-u")
        args.extend([remote, ref])
        try:
            self._run_git(*args, network=True)
        except GitCommandError as e:
            raise PushError("Push failed", e.stderr) from e
        return PushSummary()
