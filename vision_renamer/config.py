"""Runtime configuration read from the environment and an optional .env file."""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VISION_RENAMER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Captioning API
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("VISION_RENAMER_API_KEY", "GEMINI_API_KEY", "API_KEY"),
        description="Credential for the captioning API",
    )
    model: str = Field(default="gemini-3-flash-preview", description="Vision model name")
    api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the generateContent endpoint",
    )
    request_timeout: Optional[float] = Field(
        default=120.0, description="Seconds before a caption request fails; None waits forever"
    )

    # Queue / worker
    max_queue_size: int = Field(default=200, ge=1)
    poll_interval: float = Field(default=5.0, gt=0)

    # Server
    host: str = Field(default="0.0.0.0", description="Bind address for Uvicorn")
    port: int = Field(default=8000, description="Port for Uvicorn")
    cors_allow_origins: list[str] = Field(default=["*"])


settings = Settings()
