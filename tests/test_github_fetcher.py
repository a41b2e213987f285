"""Tests for GitHub ingestion over a mocked REST API."""

from pathlib import Path

import httpx
import pytest

from techdocs.errors import (
    AuthenticationRequired,
    RepositoryNotFoundOrAccessDenied,
    TransportFailure,
)
from techdocs.ingest import rules
from techdocs.ingest.github_fetcher import RemoteTreeFetcher
from techdocs.ingest.local_walker import SourceWalker

from .conftest import FakeGitHub, blob_sha


class TestListing:

    @pytest.mark.asyncio
    async def test_not_found(self):
        github = FakeGitHub({"README.md": "# hi"}, tree_status=404)
        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            with pytest.raises(RepositoryNotFoundOrAccessDenied):
                await fetcher.fetch_repo_files("acme", "missing")
        assert github.blob_requests() == []

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        github = FakeGitHub({}, tree_status=401)
        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            with pytest.raises(AuthenticationRequired):
                await fetcher.fetch_repo_tree("acme", "private")

    @pytest.mark.asyncio
    async def test_forbidden_without_token_needs_authentication(self):
        github = FakeGitHub({}, tree_status=403)
        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            with pytest.raises(AuthenticationRequired):
                await fetcher.fetch_repo_tree("acme", "private")

    @pytest.mark.asyncio
    async def test_forbidden_with_token_is_access_denied(self):
        github = FakeGitHub({}, tree_status=403)
        async with RemoteTreeFetcher(access_token="ghp_x", client=github.client()) as fetcher:
            with pytest.raises(RepositoryNotFoundOrAccessDenied):
                await fetcher.fetch_repo_tree("acme", "private")

    @pytest.mark.asyncio
    async def test_other_status_is_transport_failure(self):
        github = FakeGitHub({}, tree_status=502)
        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            with pytest.raises(TransportFailure) as exc_info:
                await fetcher.fetch_repo_tree("acme", "repo")
        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(base_url="https://api.github.com", transport=httpx.MockTransport(handler))
        async with RemoteTreeFetcher(client=client) as fetcher:
            with pytest.raises(TransportFailure):
                await fetcher.fetch_repo_tree("acme", "repo")

    @pytest.mark.asyncio
    async def test_headers(self):
        github = FakeGitHub({})
        async with RemoteTreeFetcher(access_token="ghp_secret", client=github.client()) as fetcher:
            await fetcher.fetch_repo_tree("acme", "repo")

        request = github.requests[0]
        assert request.url.path == "/repos/acme/repo/git/trees/HEAD"
        assert request.url.params["recursive"] == "1"
        assert request.headers["Authorization"] == "token ghp_secret"
        assert request.headers["User-Agent"] == "TechDocs-Generator"
        assert request.headers["Accept"] == "application/vnd.github.v3+json"

    @pytest.mark.asyncio
    async def test_no_authorization_header_without_token(self):
        github = FakeGitHub({})
        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            await fetcher.fetch_repo_tree("acme", "repo")
        assert "Authorization" not in github.requests[0].headers


class TestSelectEntries:

    def test_filters_and_caps(self):
        fetcher = RemoteTreeFetcher(max_files=2)
        tree = [
            {"path": "src", "type": "tree", "sha": "1"},
            {"path": "a.py", "type": "blob", "sha": "2", "size": 10},
            {"path": "node_modules/x.js", "type": "blob", "sha": "3", "size": 10},
            {"path": "logo.png", "type": "blob", "sha": "4", "size": 10},
            {"path": "huge.py", "type": "blob", "sha": "5", "size": rules.MAX_FILE_SIZE + 1},
            {"path": "b.py", "type": "blob", "sha": "6", "size": 10},
            {"path": "c.py", "type": "blob", "sha": "7", "size": 10},
        ]
        assert [item["path"] for item in fetcher.select_entries(tree)] == ["a.py", "b.py"]


class TestFetchRepoFiles:

    @pytest.mark.asyncio
    async def test_decodes_blobs(self):
        github = FakeGitHub({
            "README.md": "# Shop\n",
            "src/app.py": "print('hello')\n",
        })
        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            records = await fetcher.fetch_repo_files("acme", "shop")

        by_path = {r.path: r for r in records}
        assert by_path["README.md"].content == "# Shop\n"
        assert by_path["src/app.py"].language == "python"
        assert by_path["src/app.py"].size == len("print('hello')\n")

    @pytest.mark.asyncio
    async def test_partial_failures_are_skipped(self):
        files = {f"f{i}.py": f"x = {i}\n" for i in range(5)}
        github = FakeGitHub(files, failing=("f1.py", "f3.py"))

        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            records = await fetcher.fetch_repo_files("acme", "repo")

        assert sorted(r.path for r in records) == ["f0.py", "f2.py", "f4.py"]
        assert sorted(s.path for s in fetcher.skipped) == ["f1.py", "f3.py"]
        assert len(github.blob_requests()) == 5

    @pytest.mark.asyncio
    async def test_raised_blob_errors_are_skipped(self):
        github = FakeGitHub({"ok.py": "ok = 1\n", "bad.py": "bad = 1\n"})

        def handler(request):
            if request.url.path.endswith(blob_sha("bad.py")):
                raise httpx.ReadTimeout("timed out", request=request)
            return github.handler(request)

        client = httpx.AsyncClient(base_url="https://api.github.com", transport=httpx.MockTransport(handler))
        async with RemoteTreeFetcher(client=client) as fetcher:
            records = await fetcher.fetch_repo_files("acme", "repo")

        assert [r.path for r in records] == ["ok.py"]
        assert [s.path for s in fetcher.skipped] == ["bad.py"]

    @pytest.mark.asyncio
    async def test_remote_cap(self):
        files = {f"m{i:03d}.py": "pass\n" for i in range(150)}
        github = FakeGitHub(files)

        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            records = await fetcher.fetch_repo_files("acme", "big")

        assert len(records) == 100
        assert len(github.blob_requests()) == 100

    @pytest.mark.asyncio
    async def test_truncates_and_drops_binary(self):
        github = FakeGitHub({
            "long.py": "y" * (rules.MAX_CONTENT_CHARS + 10),
            "blob.json": "\x00\x01\x02\x03\x04",
        })
        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            records = await fetcher.fetch_repo_files("acme", "repo")

        [record] = records
        assert record.path == "long.py"
        assert record.content.endswith(rules.TRUNCATION_MARKER)
        assert len(record.content) == rules.MAX_CONTENT_CHARS + len(rules.TRUNCATION_MARKER)
        assert [s.reason for s in fetcher.skipped] == ["binary content"]

    @pytest.mark.asyncio
    async def test_does_not_close_injected_client(self):
        github = FakeGitHub({})
        client = github.client()
        async with RemoteTreeFetcher(client=client) as fetcher:
            await fetcher.fetch_repo_files("acme", "repo")
        assert not client.is_closed
        await client.aclose()


class TestMalformedListing:

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>proxy error</html>")

        client = httpx.AsyncClient(base_url="https://api.github.com", transport=httpx.MockTransport(handler))
        async with RemoteTreeFetcher(client=client) as fetcher:
            with pytest.raises(TransportFailure) as exc_info:
                await fetcher.fetch_repo_files("acme", "repo")
        assert exc_info.value.status == 200
        assert exc_info.value.to_dict()["kind"] == "transport_failure"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[{"path": "a.py"}], {"tree": "not-a-list"}])
    async def test_unexpected_shape(self, body):
        def handler(request):
            return httpx.Response(200, json=body)

        client = httpx.AsyncClient(base_url="https://api.github.com", transport=httpx.MockTransport(handler))
        async with RemoteTreeFetcher(client=client) as fetcher:
            with pytest.raises(TransportFailure):
                await fetcher.fetch_repo_tree("acme", "repo")


class TestParityWithLocalWalker:

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_kept_on_both_paths(self, tmp_path: Path):
        raw = "café = 1\n".encode("latin-1")
        (tmp_path / "app.py").write_bytes(raw)
        local = SourceWalker().walk(str(tmp_path))

        github = FakeGitHub({"app.py": raw})
        async with RemoteTreeFetcher(client=github.client()) as fetcher:
            remote = await fetcher.fetch_repo_files("acme", "repo")

        assert [r.path for r in remote] == [r.path for r in local] == ["app.py"]
        assert remote[0].content == local[0].content
        assert "�" in remote[0].content
        assert fetcher.skipped == []
