"""Single entry point that turns an IngestionSource into ranked FileRecords."""

import asyncio
import logging
from typing import List, Optional

import httpx

from techdocs.config import Settings
from techdocs.ingest.github_fetcher import RemoteTreeFetcher
from techdocs.ingest.local_walker import SourceWalker
from techdocs.ingest.ranking import rank
from techdocs.models import FileRecord, IngestionSource, LocalSource, RemoteSource

logger = logging.getLogger(__name__)


class RepositoryIngestor:
    """
    Validates a source once and dispatches to the matching reader.

    Usage:
        ingestor = RepositoryIngestor(settings)
        records = await ingestor.ingest(RemoteSource("https://github.com/o/r"))
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.http_client = http_client

    async def ingest(self, source: IngestionSource) -> List[FileRecord]:
        if isinstance(source, RemoteSource):
            records = await self.ingest_github(source)
        elif isinstance(source, LocalSource):
            records = await self.ingest_local(source)
        else:
            raise TypeError(f"Unsupported ingestion source: {type(source).__name__}")
        return rank(records)

    async def ingest_github(self, source: RemoteSource) -> List[FileRecord]:
        owner, repo = source.parse()
        token = source.token or self.settings.github_token
        async with RemoteTreeFetcher(
            access_token=token,
            base_url=self.settings.github_api_base,
            max_files=self.settings.max_remote_files,
            timeout=self.settings.http_timeout,
            client=self.http_client,
        ) as fetcher:
            return await fetcher.fetch_repo_files(owner, repo)

    async def ingest_local(self, source: LocalSource) -> List[FileRecord]:
        root = source.validate()
        walker = SourceWalker()
        # Blocking filesystem walk
        return await asyncio.to_thread(walker.walk, root)
