"""
Pytest Configuration and Fixtures

Shared fixtures for ingestion, pipeline, delivery and API tests.
"""

import base64
import hashlib
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from techdocs.ai import prompts
from techdocs.config import Settings
from techdocs.models import FileRecord

SPEC_RESPONSE = (
    "# Technical Specification\n\nLayered service."
    f"\n{prompts.FUNCTIONAL_SPEC_MARKER}\n"
    "<html><body><h1>Functional Specification</h1></body></html>"
)
REVIEW_RESPONSE = (
    f"{prompts.CODE_ANALYSIS_LABEL}\nreviewed code\n\n"
    f"{prompts.DOC_ANALYSIS_LABEL}\nreviewed docs"
)


class ScriptedGenerator:
    """
    Text generator fake that answers by system prompt.

    Every call is recorded as (system_prompt, user_prompt, max_output_tokens).
    A response may be an exception instance, which is raised instead.
    """

    def __init__(self, responses: Optional[Dict[str, object]] = None, default: str = "analysis"):
        self.responses = {
            prompts.CODE_ANALYSIS_SYSTEM: "code analysis",
            prompts.DOC_ANALYSIS_SYSTEM: "doc analysis",
            prompts.REVIEW_SYSTEM: REVIEW_RESPONSE,
            prompts.SPECIFICATION_SYSTEM: SPEC_RESPONSE,
        }
        self.responses.update(responses or {})
        self.default = default
        self.calls: List[Tuple[str, str, int]] = []
        self.closed = False

    async def generate(self, system_prompt: str, user_prompt: str, max_output_tokens: int) -> str:
        self.calls.append((system_prompt, user_prompt, max_output_tokens))
        response = self.responses.get(system_prompt, self.default)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True

    def prompts_for(self, system_prompt: str) -> List[str]:
        return [user for system, user, _ in self.calls if system == system_prompt]


class RecordingDelivery:
    """Delivery fake for the orchestrator."""

    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.sent: List[Dict[str, object]] = []

    async def send_documentation(self, recipient, project_name, technical_spec, functional_spec, metadata=None):
        self.sent.append({
            "recipient": recipient,
            "project_name": project_name,
            "technical_spec": technical_spec,
            "functional_spec": functional_spec,
            "metadata": metadata,
        })
        if self.error:
            raise self.error
        return self.result


def blob_sha(path: str) -> str:
    return hashlib.sha1(path.encode("utf-8")).hexdigest()


def as_bytes(content) -> bytes:
    return content if isinstance(content, bytes) else content.encode("utf-8")


def encode_blob(content) -> str:
    return base64.b64encode(as_bytes(content)).decode("ascii")


class FakeGitHub:
    """
    In-memory GitHub API served through httpx.MockTransport.

    Files are given as {path: content}, content as str or raw bytes. Blob paths in ``failing`` answer 500.
    """

    def __init__(
        self,
        files: Dict[str, object],
        tree_status: int = 200,
        failing: Tuple[str, ...] = (),
        sizes: Optional[Dict[str, int]] = None,
    ):
        self.files = files
        self.tree_status = tree_status
        self.failing = set(failing)
        self.sizes = sizes or {}
        self.requests: List[httpx.Request] = []
        self._by_sha = {blob_sha(path): path for path in files}

    def tree(self) -> List[Dict[str, object]]:
        return [
            {
                "path": path,
                "type": "blob",
                "sha": blob_sha(path),
                "size": self.sizes.get(path, len(as_bytes(content))),
            }
            for path, content in self.files.items()
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if "/git/trees/" in path:
            if self.tree_status != 200:
                return httpx.Response(self.tree_status, json={"message": "error"})
            return httpx.Response(200, json={"tree": self.tree(), "truncated": False})

        if "/git/blobs/" in path:
            sha = path.rsplit("/", 1)[-1]
            file_path = self._by_sha.get(sha)
            if file_path is None:
                return httpx.Response(404, json={"message": "Not Found"})
            if file_path in self.failing:
                return httpx.Response(500, json={"message": "Server Error"})
            return httpx.Response(
                200,
                json={"sha": sha, "encoding": "base64", "content": encode_blob(self.files[file_path])},
            )

        return httpx.Response(404, json={"message": "Not Found"})

    def client(self, base_url: str = "https://api.github.com") -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=base_url, transport=httpx.MockTransport(self.handler))

    def blob_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if "/git/blobs/" in r.url.path]


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the process environment and any .env file."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        github_token=None,
        microsoft_client_id=None,
        microsoft_client_secret=None,
        microsoft_tenant_id=None,
        email_from=None,
    )


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture
def make_record() -> Callable[..., FileRecord]:
    def _make(path: str, content: str = "x", language: str = "unknown") -> FileRecord:
        return FileRecord(path=path, content=content, language=language, size=len(content))
    return _make


@pytest.fixture
def sample_files() -> List[FileRecord]:
    return [
        FileRecord(path="README.md", content="# Shop\nA React storefront.", language="markdown", size=26),
        FileRecord(path="package.json", content='{"dependencies": {"express": "4"}}', language="json", size=34),
        FileRecord(path="src/index.js", content="const app = require('express')();", language="javascript", size=34),
        FileRecord(path="api/views.py", content="from django.http import HttpResponse", language="python", size=36),
    ]


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """
    Create a small project on disk.

    Layout:
        README.md, src/app.py, src/util.js, node_modules/lib/index.js,
        .git/config, image.bin (unsupported extension), notes.txt
    """
    (tmp_path / "README.md").write_text("# Demo\n\nA demo project.")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("from flask import Flask\napp = Flask(__name__)\n")
    (tmp_path / "src" / "util.js").write_text("export const add = (a, b) => a + b;\n")
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib" / "index.js").write_text("module.exports = {};\n")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "config").write_text("[core]\n")
    (tmp_path / "image.bin").write_bytes(b"\x00\x01\x02")
    (tmp_path / "notes.txt").write_text("todo list\n")
    return tmp_path
