"""Handler for submitting recordings to the speech-to-text provider."""

from uuid import UUID, uuid4

from meeting_transcriber.config import MinioConfig, PipelineDefaults
from meeting_transcriber.domain import (
    JobStatus,
    ProviderSubmission,
    RecordingStatus,
    SubmissionResult,
    TranscriptionOptions,
    TranscriptionRequest,
)
from meeting_transcriber.exceptions import (
    InvalidStateTransitionError,
    PersistenceError,
    ProviderNotConfiguredError,
    StorageSignedUrlError,
    TranscriptionInProgressError,
    UpstreamServiceError,
)
from meeting_transcriber.infrastructure.interfaces import (
    LeaseService,
    StorageClient,
    TranscriptionService,
)
from meeting_transcriber.logging import setup_logging
from meeting_transcriber.repositories import (
    RecordingRepository,
    TranscriptionStateTracker,
)

from .transcript_ingestor import TranscriptIngestor

logger = setup_logging()

SIGNED_URL_ERROR = "Could not create signed URL"
ORPHANED_JOB_ERROR = "Timed out waiting for provider callback"


class TranscriptionHandler:
    """Orchestrates one transcription attempt for a recording."""

    def __init__(
        self,
        recordings: RecordingRepository,
        tracker: TranscriptionStateTracker,
        storage: StorageClient,
        transcriber: TranscriptionService,
        lease: LeaseService,
        ingestor: TranscriptIngestor,
        defaults: PipelineDefaults,
        storage_config: MinioConfig,
        webhook_delivery: bool = False,
    ):
        self._recordings = recordings
        self._tracker = tracker
        self._storage = storage
        self._transcriber = transcriber
        self._lease = lease
        self._ingestor = ingestor
        self._defaults = defaults
        self._storage_config = storage_config
        self._webhook_delivery = webhook_delivery

    def submit(
        self,
        recording_id: UUID,
        owner_id: UUID,
        options: TranscriptionOptions | None = None,
    ) -> SubmissionResult:
        """
        Starts a transcription job and, for synchronous providers, finishes it.

        Failures after the job exists are written to the job and recording
        before they are raised, so the recording's status always reflects them.

        Args:
            recording_id: The recording to transcribe.
            owner_id: The authenticated caller.
            options: Optional per-request overrides of the defaults.

        Returns:
            SubmissionResult with status ``completed`` or, when the provider
            will call back, ``running``.

        Raises:
            RecordingNotFoundError: If the recording is absent or not owned.
            ProviderNotConfiguredError: If the provider credential is absent.
            TranscriptionInProgressError: If another job is outstanding.
            StorageSignedUrlError: If the media reference cannot be created.
            UpstreamServiceError: If the provider rejects or cannot be reached.
            PersistenceError: If state cannot be written.
        """
        recording = self._recordings.get_owned(recording_id, owner_id)
        resolved = (options or TranscriptionOptions()).resolve(self._defaults)

        if not self._transcriber.is_configured:
            raise ProviderNotConfiguredError(self._transcriber.provider_name)

        job_id = uuid4()
        if not self._lease.acquire(str(recording.id), str(job_id)):
            raise TranscriptionInProgressError(recording.id)

        try:
            job = self._begin_job(recording.id, job_id, resolved)
        except InvalidStateTransitionError as e:
            self._lease.release(str(recording.id), str(job_id))
            raise TranscriptionInProgressError(recording.id) from e
        except Exception:
            self._lease.release(str(recording.id), str(job_id))
            raise

        logger.info(
            "Submitting recording for transcription",
            extra={
                "recording_id": str(recording.id),
                "job_id": str(job.id),
                "model_id": resolved.model_id,
                "diarize": resolved.diarize,
            },
        )

        try:
            media_url = self._storage.create_signed_url(
                self._storage_config.bucket_name,
                recording.storage_path,
                self._storage_config.signed_url_expiry_seconds,
            )
        except StorageSignedUrlError:
            self._ingestor.fail(job, SIGNED_URL_ERROR)
            raise

        request = TranscriptionRequest(
            job_id=job.id,
            media_url=media_url,
            options=resolved,
            webhook=self._webhook_delivery,
        )

        try:
            outcome = self._transcriber.transcribe(request)
        except UpstreamServiceError as e:
            self._ingestor.fail(job, e.detail)
            raise
        except Exception as e:
            self._ingestor.fail(job, f"Unexpected provider error: {e}")
            raise

        if isinstance(outcome, ProviderSubmission):
            try:
                self._tracker.attach_provider_job(
                    job.id, outcome.provider_job_id, outcome.raw_response
                )
            except PersistenceError as e:
                self._ingestor.fail(job, f"Could not record provider job: {e}")
                raise
            logger.info(
                "Transcription awaiting provider callback",
                extra={"job_id": str(job.id), "provider_job_id": outcome.provider_job_id},
            )
            return SubmissionResult(
                job_id=job.id,
                provider_job_id=outcome.provider_job_id,
                status=JobStatus.running,
            )

        self._ingestor.ingest(job, outcome, resolved.diarize)

        return SubmissionResult(
            job_id=job.id,
            provider_job_id=outcome.provider_job_id or str(job.id),
            status=JobStatus.completed,
        )

    def _begin_job(self, recording_id: UUID, job_id: UUID, resolved):
        try:
            return self._tracker.begin_job(
                recording_id, job_id, self._transcriber.provider_name, resolved
            )
        except InvalidStateTransitionError as e:
            if e.current != RecordingStatus.transcribing.value:
                raise

        # The lease is ours, so whatever left the recording transcribing is gone.
        self._tracker.expire_running_jobs(recording_id, ORPHANED_JOB_ERROR)
        return self._tracker.begin_job(
            recording_id, job_id, self._transcriber.provider_name, resolved
        )
