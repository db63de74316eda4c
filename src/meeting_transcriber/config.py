"""Application configuration loaded from environment variables."""

import os
from typing import Literal

from pydantic import BaseModel, computed_field


class DatabaseConfig(BaseModel, frozen=True):
    """Immutable database connection configuration."""

    host: str
    port: str
    user: str
    password: str
    database: str

    @computed_field
    @property
    def url(self) -> str:
        """Returns the full PostgreSQL connection URL."""
        return (
            f"postgresql+psycopg://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class MinioConfig(BaseModel, frozen=True):
    """MinIO connection configuration."""

    endpoint: str
    user: str
    password: str
    secure: bool = False
    bucket_name: str = "media"
    signed_url_expiry_seconds: int = 7200


class RedisConfig(BaseModel, frozen=True):
    """Redis connection configuration."""

    host: str
    port: int = 6379
    lease_ttl_seconds: int = 7200


class TranscriptionConfig(BaseModel, frozen=True):
    """Speech-to-text provider configuration."""

    provider: Literal["elevenlabs", "assemblyai"] = "elevenlabs"
    delivery: Literal["sync", "webhook"] = "sync"
    elevenlabs_api_key: str = ""
    elevenlabs_base_url: str = "https://api.elevenlabs.io"
    assemblyai_api_key: str = ""
    timeout_seconds: float = 300.0


class WebhookConfig(BaseModel, frozen=True):
    """Shared secret expected on provider callbacks."""

    secret: str = ""


class GeminiConfig(BaseModel, frozen=True):
    """Gemini LLM configuration."""

    api_key: str


class PipelineDefaults(BaseModel, frozen=True):
    """
    Process-wide defaults for transcription and summary generation.

    The values here are the built-in fallbacks; the settings row maintained by
    administrative tooling is overlaid on top of them once per request.
    """

    transcription_model_id: str = "scribe_v2"
    diarize: bool = True
    tag_audio_events: bool = False
    summary_model: str = "gemini-2.5-flash-lite"
    summary_temperature: float = 0.2
    summary_max_tokens: int = 1200


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    database: DatabaseConfig
    minio: MinioConfig
    redis: RedisConfig
    transcription: TranscriptionConfig
    webhook: WebhookConfig
    gemini: GeminiConfig
    defaults: PipelineDefaults = PipelineDefaults()


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        database=DatabaseConfig(
            host=os.getenv("POSTGRES_HOST", "postgres"),
            port=os.getenv("POSTGRES_PORT", "5432"),
            user=os.getenv("POSTGRES_USER", ""),
            password=os.getenv("POSTGRES_PASSWORD", ""),
            database=os.getenv("POSTGRES_DB", "meeting_transcriber"),
        ),
        minio=MinioConfig(
            endpoint=os.getenv("MINIO_ENDPOINT", "minio:9000"),
            user=os.getenv("MINIO_USER", ""),
            password=os.getenv("MINIO_PASSWORD", ""),
            signed_url_expiry_seconds=int(
                os.getenv("SIGNED_URL_EXPIRY_SECONDS", "7200")
            ),
        ),
        redis=RedisConfig(
            host=os.getenv("REDIS_HOST", "redis"),
            port=int(os.getenv("REDIS_PORT", "6379")),
            lease_ttl_seconds=int(os.getenv("LEASE_TTL_SECONDS", "7200")),
        ),
        transcription=TranscriptionConfig(
            provider=os.getenv("TRANSCRIPTION_PROVIDER", "elevenlabs"),
            delivery=os.getenv("TRANSCRIPTION_DELIVERY", "sync"),
            elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY", ""),
            elevenlabs_base_url=os.getenv(
                "ELEVENLABS_BASE_URL", "https://api.elevenlabs.io"
            ),
            assemblyai_api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
            timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "300")),
        ),
        webhook=WebhookConfig(
            secret=os.getenv("WEBHOOK_SECRET", ""),
        ),
        gemini=GeminiConfig(
            api_key=os.getenv("GEMINI_API_KEY", ""),
        ),
    )
