from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime, Index, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from meeting_transcriber.domain.models import JobStatus, RecordingStatus

JSONType = JSON().with_variant(JSONB, "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _json_column() -> Column:
    return Column(JSONType, nullable=True)


class Recording(SQLModel, table=True):
    __tablename__ = "recordings"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(index=True)
    title: str = Field(default="")
    source_filename: str
    storage_path: str
    media_mime: str
    duration_seconds: Optional[int] = None
    status: RecordingStatus = Field(default=RecordingStatus.uploaded, index=True)
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )


class TranscriptionJob(SQLModel, table=True):
    __tablename__ = "transcription_jobs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    recording_id: UUID = Field(foreign_key="recordings.id", index=True)
    provider: str = Field(default="elevenlabs")
    provider_job_id: Optional[str] = Field(default=None, index=True)
    status: JobStatus = Field(default=JobStatus.queued)
    error: Optional[str] = Field(default=None, sa_type=Text)
    options: Optional[Dict[str, Any]] = Field(default=None, sa_column=_json_column())
    raw_response: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=_json_column()
    )
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )


class TranscriptSegment(SQLModel, table=True):
    __tablename__ = "transcript_segments"
    __table_args__ = (
        Index("idx_transcript_segments_recording_start", "recording_id", "start_ms"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    recording_id: UUID = Field(foreign_key="recordings.id", index=True)
    job_id: UUID = Field(foreign_key="transcription_jobs.id", index=True)
    speaker_id: str
    speaker_label: str
    start_ms: int
    end_ms: int
    text: str = Field(sa_type=Text)
    meta: Optional[Dict[str, Any]] = Field(default=None, sa_column=_json_column())
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )


class SummaryTemplate(SQLModel, table=True):
    __tablename__ = "summary_templates"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    system_prompt: str = Field(sa_type=Text)
    user_prompt: str = Field(sa_type=Text)
    output_format: str = Field(default="markdown")
    is_default: bool = Field(default=False)
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )


class Summary(SQLModel, table=True):
    __tablename__ = "summaries"
    __table_args__ = (
        UniqueConstraint("recording_id", "version", name="uq_summaries_recording_version"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    recording_id: UUID = Field(foreign_key="recordings.id", index=True)
    version: int
    template_id: Optional[UUID] = Field(default=None, foreign_key="summary_templates.id")
    model_id: str = Field(default="")
    content: str = Field(sa_type=Text)
    raw_response: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=_json_column()
    )
    created_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True)
    )


class AppSettings(SQLModel, table=True):
    """Singleton settings row owned by administrative tooling."""

    __tablename__ = "app_settings"

    id: int = Field(default=1, primary_key=True)
    transcription_default_model_id: Optional[str] = None
    transcription_diarize_default: bool = Field(default=True)
    transcription_tag_audio_events_default: bool = Field(default=False)
    summary_default_model: Optional[str] = None
    summary_temperature: float = Field(default=0.2)
    summary_max_tokens: int = Field(default=1200)
