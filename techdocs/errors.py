"""Structured failures raised by ingestion, generation and delivery."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class TechDocsError(Exception):
    """Base class for every failure a caller can act on."""

    kind = "techdocs_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class InvalidSourceLocator(TechDocsError):
    """Malformed repository URL or unusable local path."""

    kind = "invalid_source_locator"


class RepositoryNotFoundOrAccessDenied(TechDocsError):
    kind = "repository_not_found"


class AuthenticationRequired(TechDocsError):
    kind = "authentication_required"


class TransportFailure(TechDocsError):
    """Non-success remote response that has no more specific meaning."""

    kind = "transport_failure"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        return data


class GenerationError(TechDocsError):
    """The LLM endpoint returned an error."""

    kind = "generation_error"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class StageFailure(TechDocsError):
    """A pipeline stage raised; fatal to the run."""

    kind = "stage_failure"

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage}: {message}")
        self.stage = stage

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["stage"] = self.stage
        return data


class DeliveryFailure(TechDocsError):
    """Email could not be sent. Recorded in metadata, never fails a run."""

    kind = "delivery_failure"


@dataclass(frozen=True)
class PerFileIngestionSkip:
    """Why a single file was left out of ingestion."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"Skipping {self.path}: {self.reason}"
