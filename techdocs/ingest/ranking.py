"""
File importance ranking.

Downstream prompts only keep the first N files, so the order decides what the
model actually sees. Rules are checked top to bottom; the first match wins.
"""

import posixpath
from typing import Iterable, List

from techdocs.ingest.rules import extension_of
from techdocs.models import FileRecord

PACKAGE_MANIFESTS = (
    "package.json", "composer.json", "requirements.txt", "pyproject.toml",
    "pom.xml", "build.gradle", "gemfile", "cargo.toml", "go.mod",
)

CODE_EXTENSIONS = frozenset({".js", ".ts", ".py", ".java", ".cs", ".cpp", ".go", ".rs"})

DEFAULT_SCORE = 30


def _contains_any(name: str, needles: Iterable[str]) -> bool:
    return any(needle in name for needle in needles)


# (predicate on lowercased basename, score)
SCORE_RULES = (
    (lambda name: "readme" in name, 100),
    (lambda name: _contains_any(name, PACKAGE_MANIFESTS), 95),
    (lambda name: "dockerfile" in name, 90),
    (lambda name: name.startswith(("main.", "index.")), 85),
    (lambda name: name.startswith(("app.", "server.")), 80),
    (lambda name: extension_of(name) == ".md", 70),
    (lambda name: "config" in name, 65),
    (lambda name: _contains_any(name, ("setup", "install")), 60),
    (lambda name: extension_of(name) in CODE_EXTENSIONS, 50),
)


def importance_score(path: str) -> int:
    """Score a file path by how useful it is for understanding the project."""
    name = posixpath.basename(path.replace("\\", "/")).lower()
    for predicate, score in SCORE_RULES:
        if predicate(name):
            return score
    return DEFAULT_SCORE


def rank(records: Iterable[FileRecord]) -> List[FileRecord]:
    """Return records sorted by descending importance; ties keep input order."""
    return sorted(records, key=lambda record: importance_score(record.path), reverse=True)
