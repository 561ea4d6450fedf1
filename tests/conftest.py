# vaultsync Test Fixtures
# Pytest fixtures and fakes shared by the vaultsync tests

import tempfile
from collections.abc import Generator, Sequence
from pathlib import Path
from typing import Optional

import pytest
import yaml

from vaultsync.config.schema import SyncConfiguration
from vaultsync.git.native import CommandResult
from vaultsync.vault import LocalVault


class RecordingNotifier:
    """Notifier that keeps every message for assertions."""

    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def of(self, level: str) -> list[str]:
        return [message for lvl, message in self.messages if lvl == level]


class FakeRunner:
    """
    CommandRunner returning canned results keyed by the git subcommand.

    Responses are matched on the longest registered argument prefix;
    unmatched commands succeed with empty output.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self.responses: dict[tuple[str, ...], CommandResult | Exception] = {}

    def on(self, *args: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.responses[args] = CommandResult(returncode=returncode, stdout=stdout, stderr=stderr)

    def raise_on(self, *args: str, exc: Exception) -> None:
        self.responses[args] = exc

    def run(self, args: Sequence[str], *, cwd: Path, timeout: Optional[float] = None) -> CommandResult:
        git_args = list(args[1:])
        self.calls.append(git_args)
        best: Optional[tuple[str, ...]] = None
        for prefix in self.responses:
            if tuple(git_args[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        if best is None:
            return CommandResult(returncode=0)
        response = self.responses[best]
        if isinstance(response, Exception):
            raise response
        return response

    def subcommands(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeToolkit:
    """In-memory stand-in for an embedded git toolkit."""

    def __init__(self, rows: Optional[list[list]] = None):
        self.rows = rows or []
        self.remotes: list[dict[str, str]] = []
        self.logs: dict[str, list[str]] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, dict]] = []
        self.added: list[str] = []
        self.removed: list[str] = []

    def _call(self, name: str, kwargs: dict) -> None:
        self.calls.append((name, kwargs))
        if name in self.failures:
            raise self.failures[name]

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def init(self, **kwargs) -> None:
        self._call("init", kwargs)
        kwargs["fs"].make_directory(".git")

    def status_matrix(self, **kwargs) -> list[list]:
        self._call("status_matrix", kwargs)
        return self.rows

    def add(self, **kwargs) -> None:
        self._call("add", kwargs)
        self.added.append(kwargs["filepath"])

    def remove(self, **kwargs) -> None:
        self._call("remove", kwargs)
        self.removed.append(kwargs["filepath"])

    def commit(self, **kwargs) -> str:
        self._call("commit", kwargs)
        return "c0ffee"

    def log(self, **kwargs) -> list[str]:
        self._call("log", kwargs)
        ref = kwargs["ref"]
        if ref not in self.logs:
            raise LookupError(f"Could not find {ref}")
        return self.logs[ref]

    def list_remotes(self, **kwargs) -> list[dict[str, str]]:
        self._call("list_remotes", kwargs)
        return list(self.remotes)

    def add_remote(self, **kwargs) -> None:
        self._call("add_remote", kwargs)
        self.remotes.append({"remote": kwargs["remote"], "url": kwargs["url"]})

    def fetch(self, **kwargs) -> None:
        self._call("fetch", kwargs)

    def pull(self, **kwargs) -> None:
        self._call("pull", kwargs)

    def push(self, **kwargs) -> None:
        self._call("push", kwargs)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("VAULTSYNC_CONFIG", raising=False)
    monkeypatch.delenv("VAULTSYNC_TOKEN", raising=False)
    return home


@pytest.fixture
def vault_dir(temp_dir: Path) -> Path:
    """Create a vault directory with a few notes."""
    vault = temp_dir / "vault"
    vault.mkdir()
    (vault / "Welcome.md").write_text("# Welcome\n", encoding="utf-8")
    (vault / "daily").mkdir()
    (vault / "daily" / "2024-03-07.md").write_text("- standup\n", encoding="utf-8")
    (vault / "attachments").mkdir()
    (vault / "attachments" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\xff")
    return vault


@pytest.fixture
def vault(vault_dir: Path) -> LocalVault:
    return LocalVault(vault_dir)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def toolkit() -> FakeToolkit:
    return FakeToolkit()


@pytest.fixture
def sync_config(vault_dir: Path) -> SyncConfiguration:
    """Configuration pointing at the test vault."""
    return SyncConfiguration(
        vault_path=str(vault_dir),
        remote_url="https://github.com/alice/notes.git",
        username="alice",
        token="secret-token",
        colored=False,
    )


@pytest.fixture
def config_file(temp_home: Path, vault_dir: Path) -> Path:
    """Create a configuration file in the default location."""
    config_dir = temp_home / ".config" / "vaultsync"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "config.yaml"

    data = {
        "vault_path": str(vault_dir),
        "remote_url": "https://github.com/alice/notes.git",
        "backend": "native",
        "sync_interval": 5,
        "colored": False,
    }
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False)

    return config_path
