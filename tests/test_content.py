# Tests for vaultsync.content
# One-way upload through the hosting provider content API

import base64
import json

import httpx
import pytest

from vaultsync.content import DirectContentSyncEngine, parse_repository
from vaultsync.errors import PartialWriteError, RemoteConfigError
from vaultsync.git.engine import CommitAuthor, Credentials, PullOptions, PushOptions
from vaultsync.vault import LocalVault


class FakeContentApi:
    """Records content API requests and answers them per path."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_by_path: dict[str, int] = {}
        self.existing_sha: dict[str, str] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.split("/contents/", 1)[1]

        if request.method == "GET":
            if path in self.existing_sha:
                return httpx.Response(200, json={"sha": self.existing_sha[path]})
            return httpx.Response(404, json={"message": "Not Found"})

        status = self.status_by_path.get(path, 201)
        body = json.loads(request.content)
        if path in self.existing_sha and body.get("sha") != self.existing_sha[path]:
            status = 422
        return httpx.Response(status, json={"content": {"path": path}})

    def puts(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "PUT"]


@pytest.fixture
def api() -> FakeContentApi:
    return FakeContentApi()


@pytest.fixture
def engine(vault, api: FakeContentApi) -> DirectContentSyncEngine:
    client = httpx.Client(transport=httpx.MockTransport(api.handler))
    engine = DirectContentSyncEngine(vault, client=client, commit_message="Vault sync")
    engine.configure_remote("origin", "https://github.com/alice/notes.git")
    return engine


def credentials() -> Credentials:
    return Credentials("alice", "secret-token")


class TestParseRepository:
    """Tests for owner/repo extraction."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/alice/notes.git",
            "https://github.com/alice/notes",
            "https://alice@github.com/alice/notes.git",
            "git@github.com:alice/notes.git",
            "ssh://git@github.com/alice/notes.git",
        ],
    )
    def test_supported_forms(self, url: str):
        assert parse_repository(url) == ("alice", "notes")

    @pytest.mark.parametrize("url", ["", "notes", "https://github.com/alice"])
    def test_unsupported(self, url: str):
        with pytest.raises(RemoteConfigError):
            parse_repository(url)


class TestProtocol:
    """Tests for the non-upload parts of the backend contract."""

    def test_status_lists_every_file(self, engine: DirectContentSyncEngine):
        status = engine.status()
        assert status.dirty
        assert status.changed_paths == ("Welcome.md", "attachments/logo.png", "daily/2024-03-07.md")

    def test_git_directory_excluded(self, engine: DirectContentSyncEngine, vault_dir):
        (vault_dir / ".git").mkdir()
        (vault_dir / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
        assert ".git/HEAD" not in engine.files()

    def test_commit_returns_snapshot_label(self, engine: DirectContentSyncEngine):
        engine.stage_all(engine.status())
        assert engine.commit("msg", CommitAuthor("laptop")) == "snapshot of 3 files"

    def test_commit_with_empty_vault(self, temp_dir):
        empty = DirectContentSyncEngine(LocalVault(temp_dir))
        empty.stage_all(empty.status())
        assert empty.status().clean
        assert empty.commit("msg", CommitAuthor("laptop")) is None

    def test_fetch_and_pull_not_applicable(self, engine: DirectContentSyncEngine):
        assert engine.fetch("origin", "main") is False
        assert engine.pull("origin", "main", PullOptions()) is None
        assert engine.track_upstream("origin", "main") is False

    def test_push_requires_remote(self, vault):
        engine = DirectContentSyncEngine(vault)
        with pytest.raises(RemoteConfigError):
            engine.push("origin", "main", PushOptions(), credentials)


class TestPush:
    """Tests for the upload step."""

    def test_uploads_every_file(self, engine: DirectContentSyncEngine, api: FakeContentApi, vault_dir):
        summary = engine.push("origin", "main", PushOptions(), credentials)

        assert summary.uploaded == ["Welcome.md", "attachments/logo.png", "daily/2024-03-07.md"]
        put = api.puts()[0]
        assert put.url.path == "/repos/alice/notes/contents/Welcome.md"
        assert put.headers["Authorization"] == "token secret-token"
        body = json.loads(put.content)
        assert body["message"] == "Vault sync"
        assert body["branch"] == "main"
        assert base64.b64decode(body["content"]) == b"# Welcome\n"

    def test_binary_content_is_preserved(self, engine: DirectContentSyncEngine, api: FakeContentApi):
        engine.push("origin", "main", PushOptions(), credentials)
        put = next(r for r in api.puts() if r.url.path.endswith("logo.png"))
        assert base64.b64decode(json.loads(put.content)["content"]) == b"\x89PNG\r\n\x1a\n\x00\xff"

    def test_no_authorization_without_token(self, engine: DirectContentSyncEngine, api: FakeContentApi):
        engine.push("origin", "main", PushOptions(), None)
        assert "Authorization" not in api.puts()[0].headers

    def test_one_failure_does_not_stop_the_rest(self, engine: DirectContentSyncEngine, api: FakeContentApi):
        api.status_by_path["daily/2024-03-07.md"] = 500

        with pytest.raises(PartialWriteError) as exc_info:
            engine.push("origin", "main", PushOptions(), credentials)

        err = exc_info.value
        assert err.uploaded == 2
        assert err.failures == {"daily/2024-03-07.md": "HTTP 500"}
        assert len(api.puts()) == 3
        assert str(err) == "1 of 3 files failed to upload: daily/2024-03-07.md"

    def test_existing_file_is_updated_with_sha(self, engine: DirectContentSyncEngine, api: FakeContentApi):
        api.existing_sha["Welcome.md"] = "abc123"
        summary = engine.push("origin", "main", PushOptions(), credentials)

        assert "Welcome.md" in summary.uploaded
        welcome = [r for r in api.requests if r.url.path.endswith("/Welcome.md")]
        assert [r.method for r in welcome] == ["PUT", "GET", "PUT"]
        assert welcome[1].url.params["ref"] == "main"
        assert json.loads(welcome[2].content)["sha"] == "abc123"

    def test_timeout_is_collected(self, vault):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("Welcome.md"):
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(201, json={})

        engine = DirectContentSyncEngine(vault, client=httpx.Client(transport=httpx.MockTransport(handler)))
        engine.configure_remote("origin", "git@github.com:alice/notes.git")

        with pytest.raises(PartialWriteError) as exc_info:
            engine.push("origin", "main", PushOptions(), credentials)
        assert exc_info.value.failures == {"Welcome.md": "request timed out"}
