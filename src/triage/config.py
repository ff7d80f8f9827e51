"""Triage configuration using pydantic-settings.

This module defines the TriageSettings class that reads configuration from
environment variables. Variable names match the field names without a
prefix (e.g. OPENAI_API_KEY, TRIAGE_MODEL), case-insensitively.

Only OPENAI_API_KEY is required; settings construction fails fast when it
is missing so that no issue is touched with an unusable classifier.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TriageSettings(BaseSettings):
    """Issue triage configuration from environment variables.

    Required fields (must be set via environment variables):
    - openai_api_key: API key for the OpenAI-compatible endpoint
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # LLM Configuration
    # -------------------------------------------------------------------------
    # API key for the chat-completion endpoint
    openai_api_key: str

    # Base URL of the OpenAI-compatible API
    openai_base_url: str = "https://api.openai.com/v1"

    # Model used for classification
    triage_model: str = "gpt-4o-mini"

    # Request timeout in seconds; unset means the client default
    triage_llm_timeout: Optional[float] = None

    # Issue body characters sent to the model
    triage_body_limit: int = 3000

    # -------------------------------------------------------------------------
    # GitHub Configuration
    # -------------------------------------------------------------------------
    # Repository to triage, in owner/name form
    triage_repo: str = "modelcontextprotocol/rust-sdk"

    # Token handed to the gh CLI; gh's own login is used when unset
    github_token: Optional[str] = None

    # Maximum number of open issues listed in batch mode
    triage_issue_limit: int = 500

    # -------------------------------------------------------------------------
    # Run Configuration
    # -------------------------------------------------------------------------
    # Delay between issues in batch mode
    triage_delay_seconds: float = 1.0

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("openai_api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that the API key is not empty."""
        if not v or not v.strip():
            raise ValueError("OPENAI_API_KEY cannot be empty")
        return v

    @field_validator("openai_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate that the base URL is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("openai_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("triage_repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        """Validate that the repository is in owner/name form."""
        owner, _, name = v.partition("/")
        if not owner or not name or "/" in name:
            raise ValueError("triage_repo must be in owner/name form")
        return v

    @field_validator("triage_body_limit", "triage_issue_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate that limits are positive."""
        if v < 1:
            raise ValueError("limit must be at least 1")
        return v

    @field_validator("triage_delay_seconds")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        """Validate that the inter-issue delay is not negative."""
        if v < 0:
            raise ValueError("triage_delay_seconds cannot be negative")
        return v

    @field_validator("github_token")
    @classmethod
    def empty_token_is_unset(cls, v: Optional[str]) -> Optional[str]:
        return v if v and v.strip() else None


def get_settings(**overrides) -> TriageSettings:
    """Create and return a TriageSettings instance.

    Args:
        **overrides: Field values that take precedence over the environment
            (used for CLI flags such as --model).

    Returns:
        TriageSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    return TriageSettings(**{k: v for k, v in overrides.items() if v is not None})
