"""Shared path that turns a provider result into a resolved job."""

from meeting_transcriber.db_models import TranscriptionJob
from meeting_transcriber.domain import ProviderTranscript, SegmentBuilder
from meeting_transcriber.exceptions import LeaseServiceError, PersistenceError
from meeting_transcriber.infrastructure.interfaces import LeaseService
from meeting_transcriber.logging import setup_logging
from meeting_transcriber.repositories import TranscriptionStateTracker

logger = setup_logging()


class TranscriptIngestor:
    """Resolves a job from a provider outcome and frees its recording lease."""

    def __init__(
        self,
        tracker: TranscriptionStateTracker,
        segment_builder: SegmentBuilder,
        lease: LeaseService,
    ):
        self._tracker = tracker
        self._segment_builder = segment_builder
        self._lease = lease

    def ingest(
        self, job: TranscriptionJob, transcript: ProviderTranscript, diarize: bool
    ) -> bool:
        """
        Builds segments and completes the job.

        Returns:
            False if the job was already resolved and nothing was written.

        Raises:
            PersistenceError: If the result could not be stored. The failure is
                recorded on the job before the error propagates.
        """
        segments = self._segment_builder.build(transcript, diarize)

        try:
            applied = self._tracker.complete_job(job.id, segments, transcript)
        except PersistenceError as e:
            self._record_failure(job, f"Could not store transcript: {e}")
            self.release_lease(job)
            raise

        self.release_lease(job)
        return applied

    def fail(
        self, job: TranscriptionJob, error: str, raw_response: dict | None = None
    ) -> bool:
        """Marks the job and its recording failed."""
        applied = self._tracker.fail_job(job.id, error, raw_response)
        self.release_lease(job)
        return applied

    def release_lease(self, job: TranscriptionJob) -> None:
        try:
            self._lease.release(str(job.recording_id), str(job.id))
        except LeaseServiceError:
            logger.exception(
                "Lease release failed, it will expire on its own",
                extra={"job_id": str(job.id), "recording_id": str(job.recording_id)},
            )

    def _record_failure(self, job: TranscriptionJob, error: str) -> None:
        try:
            self._tracker.fail_job(job.id, error)
        except PersistenceError:
            logger.exception(
                "Could not record job failure", extra={"job_id": str(job.id)}
            )
