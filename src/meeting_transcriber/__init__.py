"""Recording transcription, speaker attribution and summary service."""

__version__ = "0.1.0"
