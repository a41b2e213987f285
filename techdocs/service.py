"""
TechDocs generator - ingestion plus the pipeline behind one call.

Used by the API and the CLI. Progress from the pipeline (0-100) is rescaled
into 10-100 so ingestion can report the first 10%.
"""

import logging
from typing import Optional

import httpx

from techdocs.ai.client import LLMClient, TextGenerator
from techdocs.config import Settings
from techdocs.delivery.email import DocumentationMailer, GraphEmailSender
from techdocs.ingest.repository import RepositoryIngestor
from techdocs.models import (
    AnalysisResult,
    DeliveryOptions,
    IngestionSource,
    ProgressEvent,
    ProjectInfo,
    RemoteSource,
)
from techdocs.pipeline.orchestrator import StageOrchestrator
from techdocs.pipeline.progress import ProgressObserver, ScaledObserver

logger = logging.getLogger(__name__)

INGESTION_DONE_PERCENT = 10


class TechDocsGenerator:
    """
    Generates documentation for a GitHub repository or a local folder.

    Usage:
        generator = TechDocsGenerator.from_settings(get_settings())
        result = await generator.generate(
            RemoteSource("https://github.com/owner/repo"),
            ProjectInfo(name="repo"),
        )
        await generator.close()
    """

    def __init__(
        self,
        settings: Settings,
        generator: TextGenerator,
        sender: Optional[GraphEmailSender] = None,
        github_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.generator = generator
        self.sender = sender
        self.ingestor = RepositoryIngestor(settings, http_client=github_client)
        self.mailer = DocumentationMailer(sender, generator) if sender else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "TechDocsGenerator":
        sender = GraphEmailSender.from_settings(settings) if settings.email_configured() else None
        return cls(settings, LLMClient.from_settings(settings), sender=sender)

    def _emit(self, observer: Optional[ProgressObserver], label: str, percent: float) -> None:
        if observer:
            observer.on_progress(ProgressEvent(label=label, percent=percent))

    async def generate(
        self,
        source: IngestionSource,
        project: ProjectInfo,
        options: Optional[DeliveryOptions] = None,
        observer: Optional[ProgressObserver] = None,
    ) -> AnalysisResult:
        """
        Ingest the source and run the documentation pipeline.

        Raises:
            InvalidSourceLocator, RepositoryNotFoundOrAccessDenied,
            AuthenticationRequired, TransportFailure: ingestion failures
            StageFailure: pipeline failures
        """
        if isinstance(source, RemoteSource):
            self._emit(observer, "Fetching repository...", 5)
        else:
            self._emit(observer, "Analyzing local files...", 5)

        files = await self.ingestor.ingest(source)
        logger.info(f"Ingested {len(files)} files for {project.name}")

        self._emit(observer, "Starting analysis...", INGESTION_DONE_PERCENT)

        # One orchestrator per run
        orchestrator = StageOrchestrator(
            self.generator,
            delivery=self.mailer,
            review_max_tokens=self.settings.llm_max_completion_tokens,
        )
        scaled = ScaledObserver(
            observer,
            offset=INGESTION_DONE_PERCENT,
            scale=(100 - INGESTION_DONE_PERCENT) / 100,
        )
        return await orchestrator.run(files, project, options, scaled)

    async def test_email_connection(self) -> bool:
        if self.sender is None:
            logger.warning("Email is not configured")
            return False
        return await self.sender.test_connection()

    async def close(self):
        close = getattr(self.generator, "close", None)
        if close:
            await close()
        if self.sender:
            await self.sender.close()
