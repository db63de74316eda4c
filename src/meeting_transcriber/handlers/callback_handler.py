"""Handler for provider callbacks carrying transcription results."""

import hmac
from typing import Any
from uuid import UUID

from pydantic import ValidationError

from meeting_transcriber.db_models import TranscriptionJob
from meeting_transcriber.domain import ProviderTranscript
from meeting_transcriber.domain.state_machine import is_terminal
from meeting_transcriber.exceptions import (
    InvalidCallbackPayloadError,
    JobNotFoundError,
    ProviderNotConfiguredError,
    WebhookAuthenticationError,
)
from meeting_transcriber.logging import setup_logging
from meeting_transcriber.repositories import TranscriptionStateTracker

from .transcript_ingestor import TranscriptIngestor

logger = setup_logging()


class CallbackHandler:
    """
    Applies an asynchronously delivered provider result to its job.

    Providers deliver at least once, so a callback for a job that is already
    completed or failed is acknowledged without being applied again.
    """

    def __init__(
        self,
        tracker: TranscriptionStateTracker,
        ingestor: TranscriptIngestor,
        webhook_secret: str,
    ):
        self._tracker = tracker
        self._ingestor = ingestor
        self._webhook_secret = webhook_secret

    def handle(self, job_id: str | None, secret: str | None, payload: Any) -> None:
        """
        Processes one callback delivery.

        Args:
            job_id: Job identifier from the query string or header. When absent,
                the ``webhook_metadata`` echoed back by the provider is used.
            secret: Shared secret presented by the caller.
            payload: Decoded JSON body.

        Raises:
            ProviderNotConfiguredError: If no webhook secret is configured.
            WebhookAuthenticationError: If the secret does not match.
            InvalidCallbackPayloadError: If the body is not a provider result.
            JobNotFoundError: If the job id is missing or unknown.
            PersistenceError: If the result could not be stored.
        """
        self._authenticate(secret)

        if not isinstance(payload, dict):
            raise InvalidCallbackPayloadError("body must be a JSON object")

        job = self._resolve_job(job_id or self._metadata_job_id(payload))

        if is_terminal(job.status):
            logger.info(
                "Duplicate callback ignored",
                extra={"job_id": str(job.id), "status": job.status.value},
            )
            return

        if payload.get("status") == "failed" or payload.get("error"):
            error = str(payload.get("error") or "Unknown error")
            logger.info(
                "Provider reported failure", extra={"job_id": str(job.id), "error": error}
            )
            self._ingestor.fail(job, error, raw_response=payload)
            return

        try:
            transcript = ProviderTranscript.from_payload(payload)
        except ValidationError as e:
            raise InvalidCallbackPayloadError(str(e)) from e

        diarize = bool((job.options or {}).get("diarize", True))
        self._ingestor.ingest(job, transcript, diarize)

        logger.info(
            "Callback processed",
            extra={"job_id": str(job.id), "word_count": len(transcript.words)},
        )

    def _authenticate(self, secret: str | None) -> None:
        if not self._webhook_secret:
            raise ProviderNotConfiguredError("webhook", "WEBHOOK_SECRET")
        if secret is None or not hmac.compare_digest(
            secret.encode(), self._webhook_secret.encode()
        ):
            logger.warning("Callback rejected: invalid secret")
            raise WebhookAuthenticationError()

    def _resolve_job(self, job_id: str | None) -> TranscriptionJob:
        if not job_id:
            raise JobNotFoundError(job_id)
        try:
            job_uuid = UUID(job_id)
        except ValueError as e:
            raise JobNotFoundError(job_id) from e

        job = self._tracker.get_job(job_uuid)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _metadata_job_id(self, payload: dict[str, Any]) -> str | None:
        metadata = payload.get("webhook_metadata")
        if isinstance(metadata, dict) and isinstance(metadata.get("job_id"), str):
            return metadata["job_id"]
        return None
