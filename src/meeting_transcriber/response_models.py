from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from meeting_transcriber.domain import JobStatus, RecordingStatus


class SpeakerRenameRequest(BaseModel):
    """New display label for every segment of one speaker."""

    label: str = Field(min_length=1, max_length=200)


class SummaryRequest(BaseModel):
    """Optional overrides for a summary generation."""

    template_id: UUID | None = None
    model_id: str | None = None
    instructions: str | None = None


class JobResponse(BaseModel):
    """Latest transcription attempt of a recording."""

    job_id: UUID
    provider: str
    provider_job_id: str | None
    status: JobStatus
    error: str | None
    created_at: datetime


class RecordingStatusResponse(BaseModel):
    """Recording state together with its latest transcription job."""

    recording_id: UUID
    title: str
    status: RecordingStatus
    duration_seconds: int | None
    latest_job: JobResponse | None


class SegmentResponse(BaseModel):
    """One attributed span of the current transcript."""

    segment_id: UUID
    speaker_id: str
    speaker_label: str
    start_ms: int
    end_ms: int
    text: str


class SpeakerRenameResponse(BaseModel):
    speaker_id: str
    speaker_label: str
    updated_segments: int


class SummaryResponse(BaseModel):
    """A stored summary version."""

    summary_id: UUID
    version: int
    template_id: UUID | None
    model_id: str
    content: str
    created_at: datetime
