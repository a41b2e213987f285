"""
TechDocs API.

Endpoints:
- GET  /api/health       liveness and version
- POST /api/generate     run ingestion and the documentation pipeline
- POST /api/email/test   check the Microsoft Graph connection
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, model_validator

from techdocs.config import Settings, configure_logging, get_settings
from techdocs.errors import (
    AuthenticationRequired,
    InvalidSourceLocator,
    RepositoryNotFoundOrAccessDenied,
    StageFailure,
    TechDocsError,
    TransportFailure,
)
from techdocs.models import DeliveryOptions, IngestionSource, LocalSource, ProjectInfo, RemoteSource
from techdocs.pipeline.progress import FanOutObserver, LoggingObserver, RecordingObserver
from techdocs.service import TechDocsGenerator

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidSourceLocator: 400,
    AuthenticationRequired: 401,
    RepositoryNotFoundOrAccessDenied: 404,
    TransportFailure: 502,
    StageFailure: 500,
}


# =============================================================================
# Request/Response Models
# =============================================================================

class SourceType(str, Enum):
    GITHUB = "github"
    LOCAL = "local"


class GenerateRequest(BaseModel):
    source_type: SourceType
    repo_url: Optional[str] = None
    pat: Optional[str] = None
    local_path: Optional[str] = None
    project_name: str
    description: Optional[str] = None
    send_email: bool = False
    recipient_email: Optional[str] = None

    @model_validator(mode="after")
    def check_locator(self):
        if self.source_type == SourceType.GITHUB and not self.repo_url:
            raise ValueError("repo_url is required for github sources")
        if self.source_type == SourceType.LOCAL and not self.local_path:
            raise ValueError("local_path is required for local sources")
        return self

    def to_source(self) -> IngestionSource:
        if self.source_type == SourceType.GITHUB:
            return RemoteSource(url=self.repo_url, token=self.pat or None)
        return LocalSource(path=self.local_path)


class ProgressItem(BaseModel):
    label: str
    percent: float


class MetadataResponse(BaseModel):
    files_analyzed: int
    code_languages: List[str]
    frameworks: List[str]
    architecture: str
    delivery_requested: bool
    delivery_succeeded: Optional[bool]


class GenerateResponse(BaseModel):
    technical_spec: str
    functional_spec: str
    metadata: MetadataResponse
    progress: List[ProgressItem]


class EmailTestResponse(BaseModel):
    connected: bool


# =============================================================================
# Dependencies
# =============================================================================

def get_generator(settings: Settings = Depends(get_settings)) -> TechDocsGenerator:
    try:
        return TechDocsGenerator.from_settings(settings)
    except ValueError as e:
        raise HTTPException(status_code=503, detail={"kind": "not_configured", "message": str(e)})


def error_status(error: TechDocsError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 500


# =============================================================================
# Routes
# =============================================================================

router = APIRouter(prefix="/api", tags=["techdocs"])


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return {"status": "ok", "app": settings.app_name, "version": settings.app_version}


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    request: GenerateRequest,
    generator: TechDocsGenerator = Depends(get_generator),
):
    """
    Generate technical and functional specifications.

    Ingests the GitHub repository or local folder, runs every analysis stage
    and optionally emails both documents.
    """
    recorder = RecordingObserver()
    observer = FanOutObserver(recorder, LoggingObserver())

    try:
        result = await generator.generate(
            request.to_source(),
            ProjectInfo(name=request.project_name, description=request.description),
            DeliveryOptions(send_email=request.send_email, recipient=request.recipient_email),
            observer,
        )
    except TechDocsError as e:
        logger.error(f"Generation failed for {request.project_name}: {e}")
        raise HTTPException(status_code=error_status(e), detail=e.to_dict())
    finally:
        await generator.close()

    return GenerateResponse(
        technical_spec=result.technical_spec,
        functional_spec=result.functional_spec,
        metadata=MetadataResponse(**result.metadata.to_dict()),
        progress=[ProgressItem(label=e.label, percent=e.percent) for e in recorder.events],
    )


@router.post("/email/test", response_model=EmailTestResponse)
async def test_email(generator: TechDocsGenerator = Depends(get_generator)):
    try:
        connected = await generator.test_email_connection()
    finally:
        await generator.close()
    return EmailTestResponse(connected=connected)


# =============================================================================
# App
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    missing = settings.missing_required()
    if missing:
        logger.warning(f"Missing environment variables: {', '.join(missing)}")

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    app.include_router(router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.dependency_overrides[get_settings] = lambda: settings
    return app


app = create_app()


def main():
    import uvicorn

    settings = get_settings()
    uvicorn.run("techdocs.server:app", host="0.0.0.0", port=3000, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
