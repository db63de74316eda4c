"""ElevenLabs implementation of the TranscriptionService interface."""

import json

import requests
from pydantic import ValidationError

from meeting_transcriber.domain.models import (
    ProviderSubmission,
    ProviderTranscript,
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


class ElevenLabsTranscriber(TranscriptionService):
    """Submits signed media URLs to the ElevenLabs speech-to-text API."""

    provider_name = "elevenlabs"

    def __init__(
        self,
        session: requests.Session,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io",
        timeout_seconds: float = 300.0,
    ):
        self._session = session
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/v1/speech-to-text"
        self._timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def transcribe(
        self, request: TranscriptionRequest
    ) -> ProviderTranscript | ProviderSubmission:
        """
        Sends the media URL to ElevenLabs as multipart form data.

        In webhook mode the provider answers with a receipt and delivers the
        transcript later; the job id travels in the webhook metadata.
        """
        if not self.is_configured:
            raise ProviderNotConfiguredError(self.provider_name, "ELEVENLABS_API_KEY")

        options = request.options
        form = {
            "cloud_storage_url": request.media_url,
            "model_id": options.model_id,
            "diarize": str(options.diarize).lower(),
            "tag_audio_events": str(options.tag_audio_events).lower(),
        }
        if options.language_code:
            form["language_code"] = options.language_code
        if request.webhook:
            form["webhook"] = "true"
            form["webhook_metadata"] = json.dumps({"job_id": str(request.job_id)})

        logger.info(
            "Calling ElevenLabs speech-to-text",
            extra={
                "job_id": str(request.job_id),
                "model_id": options.model_id,
                "diarize": options.diarize,
                "webhook": request.webhook,
            },
        )

        try:
            response = self._session.post(
                self._url,
                headers={"xi-api-key": self._api_key},
                files={key: (None, value) for key, value in form.items()},
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as e:
            logger.exception(
                "ElevenLabs request failed", extra={"job_id": str(request.job_id)}
            )
            raise ProviderTransportError(self.provider_name, e) from e

        if not response.ok:
            logger.error(
                "ElevenLabs returned an error",
                extra={
                    "job_id": str(request.job_id),
                    "status_code": response.status_code,
                },
            )
            raise UpstreamServiceError(
                self.provider_name, response.status_code, response.text
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamServiceError(
                self.provider_name, response.status_code, response.text, e
            ) from e
        if not isinstance(body, dict):
            raise UpstreamServiceError(
                self.provider_name, response.status_code, response.text
            )

        if request.webhook:
            provider_job_id = body.get("transcription_id") or body.get("request_id")
            logger.info(
                "ElevenLabs accepted job for webhook delivery",
                extra={"job_id": str(request.job_id), "provider_job_id": provider_job_id},
            )
            return ProviderSubmission(
                provider_job_id=provider_job_id or str(request.job_id),
                raw_response=body,
            )

        try:
            transcript = ProviderTranscript.from_payload(body)
        except ValidationError as e:
            logger.exception(
                "ElevenLabs response has an unexpected shape",
                extra={"job_id": str(request.job_id)},
            )
            raise UpstreamServiceError(
                self.provider_name, response.status_code, response.text, e
            ) from e

        logger.info(
            "ElevenLabs transcription received",
            extra={"job_id": str(request.job_id), "word_count": len(transcript.words)},
        )
        return transcript
