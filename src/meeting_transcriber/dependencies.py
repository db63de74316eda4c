"""FastAPI dependency injection configuration."""

from contextlib import contextmanager
from typing import Annotated
from uuid import UUID

import assemblyai as aai
import redis
import requests
from fastapi import Depends, Header, HTTPException
from google import genai
from minio import Minio
from sqlmodel import Session, SQLModel, create_engine

from meeting_transcriber.config import PipelineDefaults, TranscriptionConfig, load_config
from meeting_transcriber.domain import SegmentBuilder
from meeting_transcriber.handlers import (
    CallbackHandler,
    SummaryHandler,
    TranscriptIngestor,
    TranscriptionHandler,
)
from meeting_transcriber.infrastructure import (
    AssemblyAITranscriber,
    ElevenLabsTranscriber,
    GeminiLLMService,
    MinioStorageClient,
    RedisLeaseService,
)
from meeting_transcriber.infrastructure.interfaces import TranscriptionService
from meeting_transcriber.logging import setup_logging
from meeting_transcriber.repositories import (
    RecordingRepository,
    SegmentRepository,
    SettingsRepository,
    SummaryRepository,
    TemplateRepository,
    TranscriptionStateTracker,
)

logger = setup_logging()

_config = load_config()

# PostgreSQL database
_engine = create_engine(_config.database.url, pool_pre_ping=True)


@contextmanager
def _session_factory():
    """Creates a database session context manager."""
    with Session(_engine, expire_on_commit=False) as session:
        yield session


# MinIO storage
_minio_client = Minio(
    endpoint=_config.minio.endpoint,
    access_key=_config.minio.user,
    secret_key=_config.minio.password,
    secure=_config.minio.secure,
)
_storage = MinioStorageClient(_minio_client)

# Redis lease
_redis_client = redis.Redis(
    host=_config.redis.host,
    port=_config.redis.port,
    decode_responses=True,
)
_lease = RedisLeaseService(_redis_client, _config.redis.lease_ttl_seconds)


def _build_transcriber(config: TranscriptionConfig) -> TranscriptionService:
    """Selects the speech-to-text gateway named by the configuration."""
    if config.provider == "assemblyai":
        aai.settings.api_key = config.assemblyai_api_key
        aai.settings.http_timeout = config.timeout_seconds
        return AssemblyAITranscriber(
            aai.Transcriber(), config.assemblyai_api_key, config.timeout_seconds
        )

    return ElevenLabsTranscriber(
        requests.Session(),
        api_key=config.elevenlabs_api_key,
        base_url=config.elevenlabs_base_url,
        timeout_seconds=config.timeout_seconds,
    )


_transcriber = _build_transcriber(_config.transcription)

# Gemini LLM
_gemini_client = (
    genai.Client(api_key=_config.gemini.api_key) if _config.gemini.api_key else None
)
_llm = GeminiLLMService(_gemini_client)

# Service composition
_tracker = TranscriptionStateTracker(_session_factory)
_ingestor = TranscriptIngestor(_tracker, SegmentBuilder(), _lease)
_recordings = RecordingRepository(_session_factory)
_segments = SegmentRepository(_session_factory)
_summaries = SummaryRepository(_session_factory)
_templates = TemplateRepository(_session_factory)


def init_infrastructure() -> None:
    """Creates tables and the media bucket if they do not exist yet."""
    SQLModel.metadata.create_all(_engine)
    _storage.ensure_bucket_exists(_config.minio.bucket_name)
    logger.info(
        "Infrastructure initialized",
        extra={
            "postgres_host": _config.database.host,
            "provider": _transcriber.provider_name,
            "delivery": _config.transcription.delivery,
        },
    )


def get_owner_id(x_user_id: Annotated[str | None, Header()] = None) -> UUID:
    """Returns the caller identity established by the upstream auth layer."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid caller identity")


def get_pipeline_defaults() -> PipelineDefaults:
    """Reads the settings row once for the current request."""
    return SettingsRepository(_session_factory).load_defaults(_config.defaults)


DefaultsDep = Annotated[PipelineDefaults, Depends(get_pipeline_defaults)]


def get_transcription_handler(defaults: DefaultsDep) -> TranscriptionHandler:
    """Returns a transcription handler bound to this request's defaults."""
    return TranscriptionHandler(
        recordings=_recordings,
        tracker=_tracker,
        storage=_storage,
        transcriber=_transcriber,
        lease=_lease,
        ingestor=_ingestor,
        defaults=defaults,
        storage_config=_config.minio,
        webhook_delivery=_config.transcription.delivery == "webhook",
    )


def get_callback_handler() -> CallbackHandler:
    """Returns the provider callback handler."""
    return CallbackHandler(_tracker, _ingestor, _config.webhook.secret)


def get_summary_handler(defaults: DefaultsDep) -> SummaryHandler:
    """Returns a summary handler bound to this request's defaults."""
    return SummaryHandler(
        recordings=_recordings,
        templates=_templates,
        segments=_segments,
        summaries=_summaries,
        llm=_llm,
        defaults=defaults,
    )


def get_recording_repository() -> RecordingRepository:
    return _recordings


def get_segment_repository() -> SegmentRepository:
    return _segments


def get_summary_repository() -> SummaryRepository:
    return _summaries


def get_state_tracker() -> TranscriptionStateTracker:
    return _tracker
