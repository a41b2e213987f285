"""Split the combined specification output into two documents."""

from typing import Iterable, List, Sequence, Tuple

from techdocs.ai.prompts import FUNCTIONAL_SPEC_MARKER
from techdocs.ingest.rules import UNKNOWN_LANGUAGE
from techdocs.models import AnalysisMetadata, FileRecord

ARCHITECTURE_LABEL = "Multi-tier"

# (lowercase keyword, framework label), matched as plain substrings
FRAMEWORK_KEYWORDS: Sequence[Tuple[str, str]] = (
    ("react", "React"),
    ("angular", "Angular"),
    ("vue", "Vue.js"),
    ("express", "Express.js"),
    ("django", "Django"),
    ("flask", "Flask"),
    ("spring", "Spring"),
    (".net", ".NET"),
    ("fastapi", "FastAPI"),
    ("next", "Next.js"),
    ("nuxt", "Nuxt.js"),
)

FALLBACK_FUNCTIONAL_SPEC = """<!DOCTYPE html>
<html>
<head>
    <title>Functional Specification</title>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; margin: 20px; }
        h1 { color: #2c3e50; border-bottom: 2px solid #3498db; padding-bottom: 10px; }
        h2 { color: #34495e; margin-top: 30px; }
        .requirement { background: #ecf0f1; padding: 15px; border-left: 4px solid #3498db; margin: 10px 0; }
    </style>
</head>
<body>
    <h1>Functional Specification</h1>
    <h2>Overview</h2>
    <p>This document outlines the functional requirements and specifications for the analyzed system.</p>

    <div class="requirement">
        <h3>Core Functionality</h3>
        <p>The system provides core functionality based on the analyzed codebase.</p>
    </div>

    <h2>Requirements</h2>
    <p>Detailed functional requirements based on code analysis.</p>
</body>
</html>"""


def split_specifications(combined: str, marker: str = FUNCTIONAL_SPEC_MARKER) -> Tuple[str, str]:
    """
    Split generated text into (technical, functional).

    Args:
        combined: Full specification stage output
        marker: Literal separator between the two documents

    Returns:
        Both documents, stripped. Without the marker the functional document
        is the fixed fallback page.
    """
    if marker not in combined:
        return combined.strip(), FALLBACK_FUNCTIONAL_SPEC

    before, after = combined.split(marker, 1)
    return before.strip(), after.strip()


def detect_languages(files: Iterable[FileRecord]) -> List[str]:
    """Distinct language tags in first-seen order, without "unknown"."""
    seen: List[str] = []
    for record in files:
        if record.language != UNKNOWN_LANGUAGE and record.language not in seen:
            seen.append(record.language)
    return seen


def detect_frameworks(files: Iterable[FileRecord]) -> List[str]:
    """Framework labels whose keyword appears anywhere in the file contents."""
    content = " ".join(record.content for record in files).lower()
    frameworks: List[str] = []
    for keyword, label in FRAMEWORK_KEYWORDS:
        if keyword in content and label not in frameworks:
            frameworks.append(label)
    return frameworks


def build_metadata(files: Sequence[FileRecord]) -> AnalysisMetadata:
    return AnalysisMetadata(
        files_analyzed=len(files),
        code_languages=detect_languages(files),
        frameworks=detect_frameworks(files),
        architecture=ARCHITECTURE_LABEL,
    )
