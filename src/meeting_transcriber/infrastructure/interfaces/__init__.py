"""Infrastructure interface exports."""

from .lease_service import LeaseService
from .llm_service import LLMService
from .storage_client import StorageClient
from .transcription_service import TranscriptionService

__all__ = ["LeaseService", "LLMService", "StorageClient", "TranscriptionService"]
