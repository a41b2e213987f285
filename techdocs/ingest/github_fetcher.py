"""
GitHub repository ingestion over the REST API.

One recursive tree listing per run, then one blob request per surviving file.
Blobs are addressed by SHA and fetched concurrently; a failed blob only drops
that file, a failed listing fails the run.

Rate limits:
- Unauthenticated: 60 requests/hour
- Authenticated: 5000 requests/hour
The entry cap (100 by default) bounds the blob requests per run.
"""

import asyncio
import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

import httpx

from techdocs.errors import (
    AuthenticationRequired,
    PerFileIngestionSkip,
    RepositoryNotFoundOrAccessDenied,
    TransportFailure,
)
from techdocs.ingest import rules
from techdocs.models import FileRecord

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.github.com"
USER_AGENT = "TechDocs-Generator"
MAX_REMOTE_FILES = 100


class RemoteTreeFetcher:
    """
    Fetches repository files from the GitHub API.

    Usage:
        async with RemoteTreeFetcher(access_token="ghp_...") as fetcher:
            records = await fetcher.fetch_repo_files("owner", "repo")
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: str = DEFAULT_API_BASE,
        max_files: int = MAX_REMOTE_FILES,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.access_token = access_token
        self.base_url = base_url
        self.max_files = max_files
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self.skipped: List[PerFileIngestionSkip] = []

    async def __aenter__(self) -> "RemoteTreeFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self.access_token:
            headers["Authorization"] = f"token {self.access_token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self):
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch_repo_tree(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        """
        Fetch the full recursive file tree of the default branch.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            List of tree entries (path, type, sha, size)

        Raises:
            RepositoryNotFoundOrAccessDenied: 404, or 403 with a token
            AuthenticationRequired: 401, or 403 without a token
            TransportFailure: any other failure
        """
        client = await self._get_client()
        url = f"/repos/{owner}/{repo}/git/trees/HEAD"

        try:
            response = await client.get(url, params={"recursive": "1"}, headers=self._headers())
        except httpx.HTTPError as e:
            raise TransportFailure(f"GitHub API request failed: {e}") from e

        if response.status_code != 200:
            raise self._listing_error(owner, repo, response)

        try:
            data = response.json()
        except ValueError as e:
            raise TransportFailure(
                f"GitHub tree listing for {owner}/{repo} was not valid JSON: {e}", status=200
            ) from e
        if not isinstance(data, dict) or not isinstance(data.get("tree", []), list):
            raise TransportFailure(
                f"Unexpected tree listing shape for {owner}/{repo}", status=200
            )

        if data.get("truncated"):
            logger.warning(f"GitHub returned a truncated tree for {owner}/{repo}")
        return data.get("tree", [])

    def _listing_error(self, owner: str, repo: str, response: httpx.Response) -> Exception:
        status = response.status_code
        full_name = f"{owner}/{repo}"
        logger.error(f"GitHub tree listing for {full_name} failed with {status}")

        if status == 404 or (status == 403 and self.access_token):
            return RepositoryNotFoundOrAccessDenied(
                f"Repository {full_name} not found or access denied. "
                "Check the URL and that the token can read it."
            )
        if status in (401, 403):
            return AuthenticationRequired(
                "Authentication failed. Provide a valid GitHub Personal Access "
                "Token for private repositories."
            )
        return TransportFailure(
            f"GitHub API error: {status} {response.reason_phrase}", status=status
        )

    def select_entries(self, tree: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Keep blobs that pass the inclusion rules, capped at max_files."""
        selected = [
            item for item in tree
            if item.get("type") == "blob"
            and rules.should_include_file(item["path"], item.get("size") or 0)
        ]
        if len(selected) > self.max_files:
            logger.info(
                f"Capping remote files at {self.max_files} (of {len(selected)} eligible)"
            )
        return selected[: self.max_files]

    async def fetch_blob(self, owner: str, repo: str, item: Dict[str, Any]) -> Optional[FileRecord]:
        """
        Fetch and decode a single blob.

        Returns:
            FileRecord, or None when the blob can't be used (logged as a skip)
        """
        path = item["path"]
        client = await self._get_client()
        response = await client.get(
            f"/repos/{owner}/{repo}/git/blobs/{item['sha']}", headers=self._headers()
        )

        if response.status_code != 200:
            self._skip(path, f"blob request returned {response.status_code}")
            return None

        data = response.json()
        if data.get("encoding") != "base64":
            self._skip(path, f"unsupported encoding {data.get('encoding')!r}")
            return None

        try:
            raw = base64.b64decode(data.get("content", "")).decode("utf-8", errors="replace")
        except binascii.Error as e:
            self._skip(path, f"decode failed: {e}")
            return None

        content = rules.prepare_content(raw)
        if content is None:
            self._skip(path, "binary content")
            return None

        return FileRecord(
            path=path,
            content=content,
            language=rules.detect_language(path),
            size=item.get("size") or len(raw),
        )

    async def fetch_repo_files(self, owner: str, repo: str) -> List[FileRecord]:
        """
        Fetch every eligible file in the repository.

        All blob requests are issued together and awaited as one batch; each
        settles independently and only successes are kept.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            FileRecords in completion order (rank them afterwards)
        """
        self.skipped = []
        tree = await self.fetch_repo_tree(owner, repo)
        entries = self.select_entries(tree)

        logger.info(f"Fetching {len(entries)} files from {owner}/{repo}")

        results = await asyncio.gather(
            *(self.fetch_blob(owner, repo, item) for item in entries),
            return_exceptions=True,
        )

        records: List[FileRecord] = []
        for item, result in zip(entries, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self._skip(item["path"], f"fetch failed: {result}")
            elif result is not None:
                records.append(result)

        logger.info(
            f"Fetched {len(records)} files from {owner}/{repo} ({len(self.skipped)} skipped)"
        )
        return records

    def _skip(self, path: str, reason: str) -> None:
        skip = PerFileIngestionSkip(path=path, reason=reason)
        self.skipped.append(skip)
        logger.warning(str(skip))
