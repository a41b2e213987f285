"""
Analysis stages.

A stage pairs a system prompt with a formatter that turns its input into the
user prompt, then asks the text generator. Stages don't interpret the
generated text; the orchestrator threads it forward.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from techdocs.ai.client import TextGenerator
from techdocs.ai import prompts
from techdocs.models import FileRecord, ProjectInfo

FILE_EXCERPT_CHARS = 2000
MAX_DOC_STAGE_CODE_FILES = 15

DOC_STAGE_CODE_EXTENSIONS = ("js", "ts", "jsx", "tsx", "py", "java", "cs", "php", "rb", "go")
DOC_STAGE_EXCLUDED_FRAGMENTS = ("test", "spec", "config", "node_modules", ".min.")


class AnalysisStage:
    """Base class for a single LLM-backed stage."""

    name: prompts.StageName
    system_prompt: str = ""
    max_output_tokens: int = 4000

    def __init__(self, generator: TextGenerator, max_output_tokens: Optional[int] = None):
        self.generator = generator
        if max_output_tokens is not None:
            self.max_output_tokens = max_output_tokens

    def format_input(self, data) -> str:
        raise NotImplementedError

    async def run(self, data) -> str:
        return await self.generator.generate(
            self.system_prompt,
            self.format_input(data),
            self.max_output_tokens,
        )


class CodeAnalysisStage(AnalysisStage):
    name = prompts.StageName.CODE_ANALYSIS
    system_prompt = prompts.CODE_ANALYSIS_SYSTEM
    max_output_tokens = 4000

    def format_input(self, files: List[FileRecord]) -> str:
        parts = ["Analyze the following codebase:\n\n"]
        for record in files:
            parts.append(f"--- {record.path} ({record.language}) ---\n")
            parts.append(record.content[:FILE_EXCERPT_CHARS])
            parts.append("\n\n")
        parts.append("\nProvide a comprehensive technical analysis of this codebase.")
        return "".join(parts)


def is_documentation_file(record: FileRecord) -> bool:
    path = record.path.lower()
    return (
        "readme" in path
        or "doc" in path
        or ".md" in path
        or record.language == "markdown"
    )


def is_business_logic_file(record: FileRecord) -> bool:
    path = record.path.lower()
    is_code = any(path.endswith(f".{ext}") for ext in DOC_STAGE_CODE_EXTENSIONS)
    excluded = any(fragment in path for fragment in DOC_STAGE_EXCLUDED_FRAGMENTS)
    return is_code and not excluded


class DocumentationStage(AnalysisStage):
    name = prompts.StageName.DOC_ANALYSIS
    system_prompt = prompts.DOC_ANALYSIS_SYSTEM
    max_output_tokens = 6000

    def format_input(self, files: List[FileRecord]) -> str:
        doc_files = [f for f in files if is_documentation_file(f)]
        code_files = [f for f in files if is_business_logic_file(f)][:MAX_DOC_STAGE_CODE_FILES]

        parts = [
            "Analyze the following codebase to understand the functional logic "
            "and user workflows:\n\n"
        ]

        if doc_files:
            parts.append("=== DOCUMENTATION CONTEXT ===\n")
            for record in doc_files:
                parts.append(f"--- {record.path} ---\n")
                parts.append(record.content[:FILE_EXCERPT_CHARS])
                parts.append("\n\n")

        parts.append("=== CODE ANALYSIS ===\n")
        for record in code_files:
            parts.append(f"--- {record.path} ---\n")
            parts.append(f"Language: {record.language}\n")
            parts.append(record.content)
            parts.append("\n\n")

        parts.append(
            "\nBased on this code, provide a functional analysis that includes:\n"
            "1. Business overview and main use cases\n"
            "2. Step-by-step user workflows and journeys\n"
            "3. Functional requirements with acceptance criteria\n"
            "4. Business rules and validation logic\n"
            "5. Integration points and data flow\n"
            "6. User interaction patterns and system behaviors\n\n"
            "Describe how users interact with the system, what happens at each "
            "processing step, decision points, external interactions, error "
            "handling, and the final outputs delivered to users."
        )
        return "".join(parts)


class ReviewStage(AnalysisStage):
    """Combines both analyses into one request and splits the answer back."""

    name = prompts.StageName.REVIEW
    system_prompt = prompts.REVIEW_SYSTEM
    max_output_tokens = 4000

    def format_input(self, analyses: Tuple[str, str]) -> str:
        code_analysis, doc_analysis = analyses
        return prompts.REVIEW_TEMPLATE.format(
            code_analysis=code_analysis,
            doc_analysis=doc_analysis,
        )

    @staticmethod
    def parse(response: str, code_analysis: str, doc_analysis: str) -> Tuple[str, str]:
        """
        Split a review response into (code, doc) analyses.

        Without the documentation label both inputs come back unchanged; an
        empty side falls back to its input.
        """
        if prompts.DOC_ANALYSIS_LABEL not in response:
            return code_analysis, doc_analysis

        code_part, doc_part = response.split(prompts.DOC_ANALYSIS_LABEL, 1)
        code_part = code_part.replace(prompts.CODE_ANALYSIS_LABEL, "", 1).strip()
        doc_part = doc_part.strip()
        return code_part or code_analysis, doc_part or doc_analysis

    async def review(self, code_analysis: str, doc_analysis: str) -> Tuple[str, str]:
        response = await self.run((code_analysis, doc_analysis))
        return self.parse(response, code_analysis, doc_analysis)


@dataclass
class SpecificationInput:
    code_analysis: str
    doc_analysis: str
    project: ProjectInfo


class SpecificationStage(AnalysisStage):
    name = prompts.StageName.SPECIFICATION
    system_prompt = prompts.SPECIFICATION_SYSTEM
    max_output_tokens = 6000

    def format_input(self, data: SpecificationInput) -> str:
        return prompts.SPECIFICATION_TEMPLATE.format(
            name=data.project.name,
            description=data.project.description or "Not provided",
            code_analysis=data.code_analysis,
            doc_analysis=data.doc_analysis,
        )
