"""
Pipeline Orchestrator - runs the documentation stages for one ingestion.

Stages, in order, with no branching and no retries:
1. Code analysis
2. Documentation analysis
3. Review (synthesizes 1 and 2)
4. Specification generation
5. Split into technical and functional documents
6. Email delivery (only when requested)

A failure in stages 1-5 fails the run. A delivery failure is recorded in the
result metadata and the run still completes.
"""

import logging
from dataclasses import replace
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

from techdocs.ai.client import TextGenerator
from techdocs.ai.stages import (
    CodeAnalysisStage,
    DocumentationStage,
    ReviewStage,
    SpecificationInput,
    SpecificationStage,
)
from techdocs.errors import StageFailure
from techdocs.models import (
    AnalysisMetadata,
    AnalysisResult,
    DeliveryOptions,
    FileRecord,
    ProgressEvent,
    ProjectInfo,
)
from techdocs.pipeline.progress import ProgressObserver
from techdocs.pipeline.splitter import build_metadata, split_specifications

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Stages of the pipeline."""
    IDLE = "idle"
    CODE_ANALYSIS = "code_analysis"
    DOC_ANALYSIS = "doc_analysis"
    REVIEW = "review"
    GENERATION = "generation"
    SPLIT = "split"
    DELIVERY = "delivery"
    COMPLETE = "complete"
    FAILED = "failed"


# Fixed waypoints, not a measure of work done
STAGE_PROGRESS: Dict[PipelineStage, Tuple[int, str]] = {
    PipelineStage.CODE_ANALYSIS: (15, "Analyzing code structure and architecture..."),
    PipelineStage.DOC_ANALYSIS: (30, "Analyzing existing documentation..."),
    PipelineStage.REVIEW: (50, "Reviewing and synthesizing analysis..."),
    PipelineStage.GENERATION: (70, "Generating technical specifications..."),
    PipelineStage.SPLIT: (85, "Finalizing documentation..."),
    PipelineStage.DELIVERY: (95, "Sending documentation via email..."),
    PipelineStage.COMPLETE: (100, "Documentation generation complete!"),
}


class DocumentationDelivery(Protocol):
    async def send_documentation(
        self,
        recipient: str,
        project_name: str,
        technical_spec: str,
        functional_spec: str,
        metadata: Optional[AnalysisMetadata] = None,
    ) -> bool:
        ...


class StageOrchestrator:
    """
    Drives the analysis stages for one set of FileRecords.

    Usage:
        orchestrator = StageOrchestrator(llm_client, delivery=mailer)
        result = await orchestrator.run(
            files,
            ProjectInfo(name="shop-api"),
            DeliveryOptions(send_email=True, recipient="team@example.com"),
            observer=CallbackObserver(lambda label, pct: print(pct, label)),
        )
    """

    def __init__(
        self,
        generator: TextGenerator,
        delivery: Optional[DocumentationDelivery] = None,
        review_max_tokens: Optional[int] = None,
    ):
        self.code_analyzer = CodeAnalysisStage(generator)
        self.doc_analyzer = DocumentationStage(generator)
        self.reviewer = ReviewStage(generator, max_output_tokens=review_max_tokens)
        self.spec_generator = SpecificationStage(generator)
        self.delivery = delivery
        self.stage = PipelineStage.IDLE

    def _enter(self, stage: PipelineStage, observer: Optional[ProgressObserver]) -> None:
        self.stage = stage
        percent, label = STAGE_PROGRESS[stage]
        logger.info(f"Pipeline progress: {stage.value} ({percent}%)")
        if observer is None:
            return
        try:
            observer.on_progress(ProgressEvent(label=label, percent=percent))
        except Exception as e:
            # A failing observer never fails the run
            logger.warning(f"Progress observer failed at {stage.value}: {e}")

    async def run(
        self,
        files: List[FileRecord],
        project: ProjectInfo,
        options: Optional[DeliveryOptions] = None,
        observer: Optional[ProgressObserver] = None,
    ) -> AnalysisResult:
        """
        Run every stage once, in order.

        Args:
            files: Ranked FileRecords for this run
            project: Project name and optional description
            options: Email delivery options
            observer: Receives a ProgressEvent at each stage

        Returns:
            AnalysisResult with both documents and metadata

        Raises:
            StageFailure: if any stage before delivery raises
        """
        options = options or DeliveryOptions()
        self.stage = PipelineStage.IDLE
        logger.info(f"Pipeline started for {project.name} with {len(files)} files")

        try:
            self._enter(PipelineStage.CODE_ANALYSIS, observer)
            code_analysis = await self.code_analyzer.run(files)

            self._enter(PipelineStage.DOC_ANALYSIS, observer)
            doc_analysis = await self.doc_analyzer.run(files)

            self._enter(PipelineStage.REVIEW, observer)
            code_analysis, doc_analysis = await self.reviewer.review(code_analysis, doc_analysis)

            self._enter(PipelineStage.GENERATION, observer)
            specifications = await self.spec_generator.run(
                SpecificationInput(
                    code_analysis=code_analysis,
                    doc_analysis=doc_analysis,
                    project=project,
                )
            )

            self._enter(PipelineStage.SPLIT, observer)
            technical_spec, functional_spec = split_specifications(specifications)
            metadata = build_metadata(files)
        except Exception as e:
            failed_stage = self.stage
            self.stage = PipelineStage.FAILED
            logger.error(f"Pipeline failed during {failed_stage.value}: {e}")
            raise StageFailure(failed_stage.value, str(e)) from e

        if options.send_email:
            delivered = False
            if options.should_deliver:
                self._enter(PipelineStage.DELIVERY, observer)
                delivered = await self._deliver(
                    options.recipient, project, technical_spec, functional_spec, metadata
                )
            else:
                logger.warning("Email delivery requested without a recipient; skipping")
            metadata = replace(metadata, delivery_requested=True, delivery_succeeded=delivered)

        self._enter(PipelineStage.COMPLETE, observer)
        logger.info(
            f"Pipeline complete for {project.name}: {metadata.files_analyzed} files, "
            f"languages={metadata.code_languages}, frameworks={metadata.frameworks}"
        )

        return AnalysisResult(
            technical_spec=technical_spec,
            functional_spec=functional_spec,
            metadata=metadata,
        )

    async def _deliver(
        self,
        recipient: str,
        project: ProjectInfo,
        technical_spec: str,
        functional_spec: str,
        metadata: AnalysisMetadata,
    ) -> bool:
        if self.delivery is None:
            logger.warning("Email delivery requested but no sender is configured")
            return False
        try:
            return bool(
                await self.delivery.send_documentation(
                    recipient,
                    project.name,
                    technical_spec,
                    functional_spec,
                    metadata,
                )
            )
        except Exception as e:
            logger.error(f"Failed to send documentation to {recipient}: {e}")
            return False
