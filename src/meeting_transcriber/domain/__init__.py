"""Domain layer exports."""

from .models import (
    DEFAULT_SPEAKER_ID,
    GeneratedText,
    GenerationRequest,
    JobStatus,
    ProviderSubmission,
    ProviderTranscript,
    ProviderWord,
    RecordingStatus,
    ResolvedOptions,
    SegmentDraft,
    SubmissionResult,
    SummaryResult,
    TranscriptionOptions,
    TranscriptionRequest,
)
from .segment_builder import SegmentBuilder, seconds_to_ms, speaker_label
from .transcript_formatter import format_transcript, render_prompt

__all__ = [
    "DEFAULT_SPEAKER_ID",
    "GeneratedText",
    "GenerationRequest",
    "JobStatus",
    "ProviderSubmission",
    "ProviderTranscript",
    "ProviderWord",
    "RecordingStatus",
    "ResolvedOptions",
    "SegmentDraft",
    "SubmissionResult",
    "SummaryResult",
    "TranscriptionOptions",
    "TranscriptionRequest",
    "SegmentBuilder",
    "seconds_to_ms",
    "speaker_label",
    "format_transcript",
    "render_prompt",
]
