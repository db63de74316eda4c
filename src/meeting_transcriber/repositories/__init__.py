"""Repository layer exports."""

from .job_state_tracker import TranscriptionStateTracker
from .recording_repository import RecordingRepository
from .segment_repository import SegmentRepository
from .settings_repository import SettingsRepository
from .summary_repository import SummaryRepository, TemplateRepository

__all__ = [
    "TranscriptionStateTracker",
    "RecordingRepository",
    "SegmentRepository",
    "SettingsRepository",
    "SummaryRepository",
    "TemplateRepository",
]
