"""Application configuration using Pydantic Settings."""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from techdocs import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="",
        extra="ignore",
    )

    # LLM (OpenAI-compatible endpoint, Azure style when api version is set)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_api_version: Optional[str] = None
    llm_model: str = "o1-2024-12-17"
    llm_max_completion_tokens: int = 4000
    llm_timeout: float = 120.0

    # Email (Microsoft Graph, client credentials)
    microsoft_client_id: Optional[str] = None
    microsoft_client_secret: Optional[str] = None
    microsoft_tenant_id: Optional[str] = None
    email_from: Optional[str] = None

    # GitHub
    github_token: Optional[str] = None  # Used when a request carries no PAT
    github_api_base: str = "https://api.github.com"
    max_remote_files: int = 100
    http_timeout: float = 30.0

    # Application
    app_name: str = "TechDocs Generator"
    app_version: str = __version__
    log_level: str = "INFO"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "*"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, list):
            return ",".join(v)
        return v

    @field_validator("openai_base_url", "github_api_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def get_cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def email_configured(self) -> bool:
        """Check that every Microsoft Graph value is present."""
        return all([
            self.microsoft_client_id,
            self.microsoft_client_secret,
            self.microsoft_tenant_id,
            self.email_from,
        ])

    def missing_required(self) -> List[str]:
        """Names of the environment variables a full run needs but are unset."""
        required = {
            "OPENAI_API_KEY": self.openai_api_key,
            "MICROSOFT_CLIENT_ID": self.microsoft_client_id,
            "MICROSOFT_CLIENT_SECRET": self.microsoft_client_secret,
            "MICROSOFT_TENANT_ID": self.microsoft_tenant_id,
            "EMAIL_FROM": self.email_from,
        }
        return [name for name, value in required.items() if not value]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance. Call once at process entry."""
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the server and the CLI."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
