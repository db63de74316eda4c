"""Handler layer exports."""

from .callback_handler import CallbackHandler
from .summary_handler import SummaryHandler
from .transcript_ingestor import TranscriptIngestor
from .transcription_handler import TranscriptionHandler

__all__ = [
    "CallbackHandler",
    "SummaryHandler",
    "TranscriptIngestor",
    "TranscriptionHandler",
]
