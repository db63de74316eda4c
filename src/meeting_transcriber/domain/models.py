"""Domain models for the transcription pipeline."""

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, field_validator

from meeting_transcriber.config import PipelineDefaults

DEFAULT_SPEAKER_ID = "speaker_0"

_DURATION_KEYS = ("duration_seconds", "duration", "audio_duration_secs")


class RecordingStatus(str, Enum):
    """Lifecycle of a recording."""

    uploaded = "uploaded"
    transcribing = "transcribing"
    ready = "ready"
    failed = "failed"


class JobStatus(str, Enum):
    """Lifecycle of a single transcription attempt."""

    queued = "queued"
    running = "running"
    completed = "completed"
    failed = "failed"


class TranscriptionOptions(BaseModel):
    """Caller-supplied transcription options; unset fields fall back to defaults."""

    language_code: str | None = None
    diarize: bool | None = None
    tag_audio_events: bool | None = None
    model_id: str | None = None

    def resolve(self, defaults: PipelineDefaults) -> "ResolvedOptions":
        """Applies the request -> process-wide defaults fallback chain."""
        return ResolvedOptions(
            model_id=self.model_id or defaults.transcription_model_id,
            diarize=defaults.diarize if self.diarize is None else self.diarize,
            tag_audio_events=(
                defaults.tag_audio_events
                if self.tag_audio_events is None
                else self.tag_audio_events
            ),
            language_code=self.language_code or None,
        )


class ResolvedOptions(BaseModel, frozen=True):
    """Effective options of one transcription job."""

    model_id: str
    diarize: bool
    tag_audio_events: bool
    language_code: str | None = None


class TranscriptionRequest(BaseModel, frozen=True):
    """Everything a provider gateway needs to transcribe one recording."""

    job_id: UUID
    media_url: str
    options: ResolvedOptions
    webhook: bool = False


class ProviderWord(BaseModel, frozen=True):
    """One timed word as reported by the provider (times in seconds)."""

    text: str = ""
    start: float = 0.0
    end: float = 0.0
    speaker_id: str | None = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _missing_time_is_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("text", mode="before")
    @classmethod
    def _missing_text_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ProviderTranscript(BaseModel, frozen=True):
    """Normalized synchronous (or webhook-delivered) provider result."""

    words: list[ProviderWord] = []
    text: str | None = None
    duration_seconds: float | None = None
    provider_job_id: str | None = None
    raw_response: dict[str, Any] = {}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ProviderTranscript":
        """
        Normalizes a provider response body.

        Spacing tokens are dropped so that the word stream holds only spoken
        words and audio events. The duration is taken from whichever duration
        key the provider used, falling back to the end of the last word.

        Raises:
            pydantic.ValidationError: If a word entry has an invalid shape.
        """
        words = [
            ProviderWord.model_validate(word)
            for word in payload.get("words") or []
            if not (isinstance(word, dict) and word.get("type") == "spacing")
        ]

        duration = next(
            (payload[key] for key in _DURATION_KEYS if payload.get(key) is not None),
            None,
        )
        if duration is None and words:
            duration = words[-1].end

        return cls(
            words=words,
            text=payload.get("text"),
            duration_seconds=duration,
            provider_job_id=payload.get("transcription_id"),
            raw_response=payload,
        )


class ProviderSubmission(BaseModel, frozen=True):
    """Provider accepted the job and will deliver the result by callback."""

    provider_job_id: str
    raw_response: dict[str, Any] = {}


class SegmentDraft(BaseModel, frozen=True):
    """A speaker run ready to be persisted as a transcript segment."""

    speaker_id: str
    speaker_label: str
    start_ms: int
    end_ms: int
    text: str


class SubmissionResult(BaseModel):
    """Caller-facing outcome of a transcription submission."""

    job_id: UUID
    provider_job_id: str | None
    status: JobStatus


class GenerationRequest(BaseModel, frozen=True):
    """Prompt and sampling parameters for the text-generation provider."""

    system_prompt: str
    user_prompt: str
    model: str
    temperature: float
    max_tokens: int


class GeneratedText(BaseModel, frozen=True):
    """Text returned by the text-generation provider."""

    content: str
    raw_response: dict[str, Any] = {}


class SummaryResult(BaseModel):
    """Caller-facing outcome of a summary generation."""

    summary_id: UUID
    version: int
    content: str
