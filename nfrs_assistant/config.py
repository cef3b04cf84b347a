"""Client configuration with environment variable loading.

Pydantic-based configuration for the chat client and its response animator.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

SUPPORTED_LANGUAGES = ("en", "ne")


class AnimationConfig(BaseModel):
    """Timing for the simulated response reveal, in seconds.

    Attributes:
        start_delay: Pause before the first chunk is revealed.
        step_delay: Base pause between chunks.
        sentence_pause: Extra pause after sentence-ending punctuation.
        finish_delay: Pause between the last chunk and completion.
        safety_timeout: Upper bound after which the reveal is force-completed.
    """

    start_delay: float = Field(default=0.2, ge=0.0)
    step_delay: float = Field(default=0.01, ge=0.0)
    sentence_pause: float = Field(default=0.03, ge=0.0)
    finish_delay: float = Field(default=0.05, ge=0.0)
    safety_timeout: float = Field(default=12.0, gt=0.0)


class ClientConfig(BaseModel):
    """Configuration for the chat client.

    Attributes:
        api_base_url: Backend base URL.
        api_prefix: Path prefix of the versioned API.
        access_token: Bearer token for the conversation service.
        language: Default conversation language ('en' or 'ne').
        request_timeout: HTTP timeout for backend calls.
        data_dir: Directory for locally persisted state (session id).
        animation: Response reveal timing.
    """

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
        description="Backend base URL",
    )
    api_prefix: str = Field(
        default_factory=lambda: os.getenv("API_PREFIX", "/api/v1"),
        description="Path prefix of the versioned API",
    )
    access_token: str | None = Field(
        default_factory=lambda: os.getenv("ACCESS_TOKEN") or None,
        description="Bearer token (None when not logged in)",
    )
    language: str = Field(
        default_factory=lambda: os.getenv("CHAT_LANGUAGE", "en"),
        description="Default conversation language",
    )
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "120")),
        gt=0.0,
        description="HTTP timeout in seconds",
    )
    data_dir: Path = Field(
        default_factory=lambda: Path(
            os.getenv("NFRS_ASSISTANT_DATA_DIR", str(Path.home() / ".nfrs_assistant"))
        ),
        description="Directory for locally persisted client state",
    )
    animation: AnimationConfig = Field(default_factory=AnimationConfig)

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        """Validate that the language is one the backend supports."""
        v = v.strip().lower()
        if v not in SUPPORTED_LANGUAGES:
            raise ValueError(f"language must be one of {', '.join(SUPPORTED_LANGUAGES)}")
        return v

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended directly."""
        v = v.strip()
        if not v:
            raise ValueError("API base URL required. Set API_BASE_URL in .env")
        return v.rstrip("/")

    @property
    def api_url(self) -> str:
        return f"{self.api_base_url}{self.api_prefix}"


def get_client_config() -> ClientConfig:
    """Create client configuration from environment.

    Returns:
        Configured ClientConfig instance.

    Raises:
        ValueError: If an environment value is invalid.
    """
    return ClientConfig()
