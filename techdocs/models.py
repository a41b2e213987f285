"""Core data model shared by ingestion, the pipeline and the API."""

import os
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from techdocs.errors import InvalidSourceLocator

GITHUB_URL_PATTERN = re.compile(r"github\.com[/:]([^/\s]+)/([^/\s?#]+)")


@dataclass(frozen=True)
class FileRecord:
    """One ingested text file."""
    path: str
    content: str
    language: str
    size: int


# =============================================================================
# Ingestion sources
# =============================================================================

@dataclass(frozen=True)
class RemoteSource:
    """A GitHub repository, optionally with a personal access token."""
    url: str
    token: Optional[str] = None

    def parse(self) -> Tuple[str, str]:
        """
        Extract owner and repository name from the URL.

        Returns:
            (owner, name) with any trailing ".git" removed

        Raises:
            InvalidSourceLocator: if the URL is not a GitHub repository URL
        """
        match = GITHUB_URL_PATTERN.search(self.url or "")
        if not match:
            raise InvalidSourceLocator(
                f"Invalid GitHub repository URL format: {self.url!r}"
            )
        owner, name = match.group(1), match.group(2)
        if name.endswith(".git"):
            name = name[: -len(".git")]
        if not owner or not name:
            raise InvalidSourceLocator(
                f"Invalid GitHub repository URL format: {self.url!r}"
            )
        return owner, name


@dataclass(frozen=True)
class LocalSource:
    """A directory on the local filesystem."""
    path: str

    def validate(self) -> str:
        """Return the absolute path, or raise if it is not a readable directory."""
        if not self.path:
            raise InvalidSourceLocator("Local path is required")
        resolved = os.path.abspath(os.path.expanduser(self.path))
        if not os.path.isdir(resolved):
            raise InvalidSourceLocator(f"Local path is not a directory: {self.path}")
        if not os.access(resolved, os.R_OK | os.X_OK):
            raise InvalidSourceLocator(f"Local path is not readable: {self.path}")
        return resolved


IngestionSource = Union[RemoteSource, LocalSource]


# =============================================================================
# Run inputs and outputs
# =============================================================================

@dataclass(frozen=True)
class ProjectInfo:
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class DeliveryOptions:
    send_email: bool = False
    recipient: Optional[str] = None

    @property
    def should_deliver(self) -> bool:
        return self.send_email and bool(self.recipient)


@dataclass(frozen=True)
class AnalysisMetadata:
    """Facts gathered alongside the two documents."""
    files_analyzed: int
    code_languages: List[str] = field(default_factory=list)
    frameworks: List[str] = field(default_factory=list)
    architecture: str = "Multi-tier"
    delivery_requested: bool = False
    delivery_succeeded: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AnalysisResult:
    """Terminal artifact of one pipeline run."""
    technical_spec: str
    functional_spec: str
    metadata: AnalysisMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "technical_spec": self.technical_spec,
            "functional_spec": self.functional_spec,
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class ProgressEvent:
    label: str
    percent: float
