"""AssemblyAI implementation of the TranscriptionService interface."""

from concurrent.futures import TimeoutError as FuturesTimeoutError

import assemblyai as aai

from meeting_transcriber.domain.models import (
    ProviderTranscript,
    ProviderWord,
    TranscriptionRequest,
)
from meeting_transcriber.exceptions import (
    ProviderNotConfiguredError,
    ProviderTransportError,
    UpstreamServiceError,
)
from meeting_transcriber.logging import setup_logging

from .interfaces import TranscriptionService

logger = setup_logging()


class AssemblyAITranscriber(TranscriptionService):
    """Handles transcription of signed media URLs using AssemblyAI."""

    provider_name = "assemblyai"

    def __init__(
        self, transcriber: aai.Transcriber, api_key: str, timeout_seconds: float = 300.0
    ):
        self._transcriber = transcriber
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def transcribe(self, request: TranscriptionRequest) -> ProviderTranscript:
        """
        Transcribes the media URL and waits for the result.

        The SDK polls until the transcript is finished, so the whole wait is
        bounded by ``timeout_seconds``; running out of time is a transport
        failure like any other.

        AssemblyAI reports word times in milliseconds; they are converted to
        seconds so the result matches every other provider. Webhook delivery
        is not used with this provider.
        """
        if not self.is_configured:
            raise ProviderNotConfiguredError(self.provider_name, "ASSEMBLYAI_API_KEY")

        if request.webhook:
            logger.warning(
                "Webhook delivery not supported by AssemblyAI, transcribing synchronously",
                extra={"job_id": str(request.job_id)},
            )

        try:
            future = self._transcriber.transcribe_async(
                request.media_url, config=self._build_config(request)
            )
            transcript = future.result(timeout=self._timeout_seconds)
        except FuturesTimeoutError as e:
            logger.error(
                "AssemblyAI transcription timed out",
                extra={
                    "job_id": str(request.job_id),
                    "timeout_seconds": self._timeout_seconds,
                },
            )
            future.cancel()
            raise ProviderTransportError(
                self.provider_name,
                TimeoutError(f"no result after {self._timeout_seconds}s"),
            ) from e
        except Exception as e:
            logger.exception(
                "AssemblyAI transcription failed", extra={"job_id": str(request.job_id)}
            )
            raise ProviderTransportError(self.provider_name, e) from e

        if transcript.status == aai.TranscriptStatus.error:
            raise UpstreamServiceError(
                self.provider_name, None, transcript.error or "Unknown error"
            )

        words = [
            ProviderWord(
                text=w.text,
                start=w.start / 1000,
                end=w.end / 1000,
                speaker_id=w.speaker,
            )
            for w in transcript.words or []
        ]

        logger.info(
            "AssemblyAI transcription successful",
            extra={"job_id": str(request.job_id), "word_count": len(words)},
        )
        return ProviderTranscript(
            words=words,
            text=transcript.text,
            duration_seconds=transcript.audio_duration,
            provider_job_id=transcript.id,
            raw_response=transcript.json_response or {},
        )

    def _build_config(self, request: TranscriptionRequest) -> aai.TranscriptionConfig:
        options = request.options
        config = aai.TranscriptionConfig(
            speaker_labels=options.diarize,
            language_code=options.language_code,
        )
        try:
            config.speech_model = aai.SpeechModel(options.model_id)
        except ValueError:
            logger.info(
                "Model id is not an AssemblyAI speech model, using provider default",
                extra={"model_id": options.model_id},
            )
        return config
