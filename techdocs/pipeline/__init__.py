"""
Pipeline module for TechDocs.

Runs the analysis stages over ranked FileRecords and splits the generated
specification into a technical and a functional document.
"""

from .orchestrator import PipelineStage, StageOrchestrator, STAGE_PROGRESS
from .progress import (
    CallbackObserver,
    FanOutObserver,
    LoggingObserver,
    ProgressObserver,
    RecordingObserver,
    ScaledObserver,
)
from .splitter import FALLBACK_FUNCTIONAL_SPEC, build_metadata, split_specifications

__all__ = [
    "PipelineStage",
    "StageOrchestrator",
    "STAGE_PROGRESS",
    "CallbackObserver",
    "FanOutObserver",
    "LoggingObserver",
    "ProgressObserver",
    "RecordingObserver",
    "ScaledObserver",
    "FALLBACK_FUNCTIONAL_SPEC",
    "build_metadata",
    "split_specifications",
]
