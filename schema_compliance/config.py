"""Environment-driven configuration."""

import os
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx
from dotenv import load_dotenv
from pydantic import BaseModel, Field

TokenProvider = Callable[[], Awaitable[str]]


def load_environment(dotenv_path: str | Path | None = None) -> None:
    """Load a .env file into the environment without overriding variables already set."""
    load_dotenv(dotenv_path)


class DataverseConfig(BaseModel):
    """Connection settings for the Dataverse Web API."""

    organization_url: str = Field(..., description="e.g. https://contoso.crm.dynamics.com")
    api_version: str = "v9.2"
    timeout_seconds: float = Field(default=30.0, gt=0)

    @classmethod
    def from_env(cls) -> "DataverseConfig":
        """
        Build config from DATAVERSE_* environment variables.

        Raises:
            ValueError: If DATAVERSE_URL is not set.
        """
        load_environment()
        organization_url = os.getenv("DATAVERSE_URL")
        if not organization_url:
            raise ValueError("DATAVERSE_URL environment variable is not set")
        return cls(
            organization_url=organization_url,
            api_version=os.getenv("DATAVERSE_API_VERSION", "v9.2"),
            timeout_seconds=float(os.getenv("DATAVERSE_TIMEOUT", "30")),
        )

    @property
    def api_base_url(self) -> str:
        return f"{self.organization_url.rstrip('/')}/api/data/{self.api_version}/"

    def create_client(self, **kwargs) -> httpx.AsyncClient:
        """
        Creates an async HTTP client for the Web API.

        Returns:
            httpx.AsyncClient: Client with base URL, OData headers and timeout set.
        """
        return httpx.AsyncClient(
            base_url=self.api_base_url,
            timeout=self.timeout_seconds,
            headers={
                "Accept": "application/json",
                "OData-MaxVersion": "4.0",
                "OData-Version": "4.0",
            },
            **kwargs,
        )


def static_token_provider(token: str) -> TokenProvider:
    """Wrap a pre-acquired bearer token as a token provider."""

    async def _provide() -> str:
        return token

    return _provide


def token_provider_from_env() -> TokenProvider:
    """
    Token provider reading DATAVERSE_ACCESS_TOKEN.

    Raises:
        ValueError: If the variable is not set.
    """
    load_environment()
    token = os.getenv("DATAVERSE_ACCESS_TOKEN")
    if not token:
        raise ValueError("DATAVERSE_ACCESS_TOKEN environment variable is not set")
    return static_token_provider(token)


class AuditConfig(BaseModel):
    """Audit sink settings."""

    max_entries: int = Field(default=1000, gt=0)
    log_to_console: bool = True
    file_path: Path | None = None

    @classmethod
    def from_env(cls) -> "AuditConfig":
        load_environment()
        file_path = os.getenv("SCHEMA_COMPLIANCE_AUDIT_FILE")
        return cls(file_path=Path(file_path) if file_path else None)
