"""LLM access and the analysis stages built on it."""

from .client import GenerationResult, LLMClient, TextGenerator
from .prompts import FUNCTIONAL_SPEC_MARKER, StageName
from .stages import (
    AnalysisStage,
    CodeAnalysisStage,
    DocumentationStage,
    ReviewStage,
    SpecificationInput,
    SpecificationStage,
)

__all__ = [
    "GenerationResult",
    "LLMClient",
    "TextGenerator",
    "FUNCTIONAL_SPEC_MARKER",
    "StageName",
    "AnalysisStage",
    "CodeAnalysisStage",
    "DocumentationStage",
    "ReviewStage",
    "SpecificationInput",
    "SpecificationStage",
]
