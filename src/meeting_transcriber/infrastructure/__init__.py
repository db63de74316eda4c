"""Infrastructure layer exports."""

from .assemblyai_transcriber import AssemblyAITranscriber
from .elevenlabs_transcriber import ElevenLabsTranscriber
from .gemini_llm import GeminiLLMService
from .minio_storage import MinioStorageClient
from .redis_lease import RedisLeaseService

__all__ = [
    "AssemblyAITranscriber",
    "ElevenLabsTranscriber",
    "GeminiLLMService",
    "MinioStorageClient",
    "RedisLeaseService",
]
