"""Keeps recordings and their transcription jobs in consistent states."""

import math
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from meeting_transcriber.db_models import (
    Recording,
    TranscriptionJob,
    TranscriptSegment,
    utcnow,
)
from meeting_transcriber.domain.models import (
    JobStatus,
    ProviderTranscript,
    RecordingStatus,
    ResolvedOptions,
    SegmentDraft,
)
from meeting_transcriber.domain.state_machine import (
    is_terminal,
    job_sources,
    recording_sources,
)
from meeting_transcriber.exceptions import (
    InvalidStateTransitionError,
    JobNotFoundError,
    PersistenceError,
)
from meeting_transcriber.logging import setup_logging

logger = setup_logging()


class TranscriptionStateTracker:
    """
    Owns every status write for recordings and transcription jobs.

    Each write is a compare-and-set UPDATE whose WHERE clause only admits the
    legal source statuses, so concurrent writers cannot produce an illegal
    transition. A job outcome and the recording outcome it drives are written
    in one transaction, with segments flushed before either status.
    """

    def __init__(self, session_factory):
        """
        Initializes the tracker.

        Args:
            session_factory: Callable that returns a SQLModel Session context manager.
        """
        self._session_factory = session_factory

    def get_job(self, job_id: UUID) -> TranscriptionJob | None:
        try:
            with self._session_factory() as db_session:
                return db_session.get(TranscriptionJob, job_id)
        except SQLAlchemyError as e:
            logger.exception("Failed to load job", extra={"job_id": str(job_id)})
            raise PersistenceError("get_job", cause=e) from e

    def get_latest_job(self, recording_id: UUID) -> TranscriptionJob | None:
        try:
            with self._session_factory() as db_session:
                return db_session.exec(
                    select(TranscriptionJob)
                    .where(TranscriptionJob.recording_id == recording_id)
                    .order_by(TranscriptionJob.created_at.desc())
                    .limit(1)
                ).first()
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to load latest job", extra={"recording_id": str(recording_id)}
            )
            raise PersistenceError("get_latest_job", cause=e) from e

    def begin_job(
        self,
        recording_id: UUID,
        job_id: UUID,
        provider: str,
        options: ResolvedOptions,
    ) -> TranscriptionJob:
        """
        Moves the recording to transcribing and creates a running job.

        Raises:
            InvalidStateTransitionError: If the recording is already transcribing.
            PersistenceError: If the database write fails.
        """
        try:
            with self._session_factory() as db_session:
                if not self._transition_recording(
                    db_session, recording_id, RecordingStatus.transcribing
                ):
                    current = db_session.exec(
                        select(Recording.status).where(Recording.id == recording_id)
                    ).first()
                    raise InvalidStateTransitionError(
                        "recording",
                        recording_id,
                        current.value if current else None,
                        RecordingStatus.transcribing.value,
                    )

                job = TranscriptionJob(
                    id=job_id,
                    recording_id=recording_id,
                    provider=provider,
                    status=JobStatus.running,
                    options=options.model_dump(),
                )
                db_session.add(job)
                db_session.commit()
                db_session.refresh(job)

                logger.info(
                    "Transcription job started",
                    extra={
                        "job_id": str(job_id),
                        "recording_id": str(recording_id),
                        "provider": provider,
                    },
                )
                return job
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to start job",
                extra={"job_id": str(job_id), "recording_id": str(recording_id)},
            )
            raise PersistenceError("begin_job", cause=e) from e

    def expire_running_jobs(self, recording_id: UUID, error: str) -> int:
        """
        Fails every running job of the recording and moves it out of transcribing.

        Only safe while the caller holds the recording's lease: no live attempt
        can then own the running jobs, so they were orphaned by a lost callback
        or a crashed process.

        Returns:
            The number of jobs marked failed.

        Raises:
            PersistenceError: If the database write fails.
        """
        try:
            with self._session_factory() as db_session:
                job_ids = db_session.exec(
                    select(TranscriptionJob.id)
                    .where(
                        TranscriptionJob.recording_id == recording_id,
                        TranscriptionJob.status.in_(job_sources(JobStatus.failed)),
                    )
                    .with_for_update()
                ).all()

                expired = sum(
                    self._transition_job(
                        db_session, job_id, JobStatus.failed, error=error
                    )
                    for job_id in job_ids
                )
                self._transition_recording(
                    db_session, recording_id, RecordingStatus.failed
                )

                db_session.commit()
                logger.warning(
                    "Expired orphaned transcription jobs",
                    extra={"recording_id": str(recording_id), "expired": expired},
                )
                return expired
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to expire running jobs",
                extra={"recording_id": str(recording_id)},
            )
            raise PersistenceError("expire_running_jobs", cause=e) from e

    def attach_provider_job(
        self, job_id: UUID, provider_job_id: str, raw_response: dict | None = None
    ) -> None:
        """Records the provider's id for a job awaiting its callback."""
        try:
            with self._session_factory() as db_session:
                db_session.exec(
                    update(TranscriptionJob)
                    .where(
                        TranscriptionJob.id == job_id,
                        TranscriptionJob.status == JobStatus.running,
                    )
                    .values(
                        provider_job_id=provider_job_id,
                        raw_response=raw_response,
                        updated_at=utcnow(),
                    )
                )
                db_session.commit()
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to attach provider job", extra={"job_id": str(job_id)}
            )
            raise PersistenceError("attach_provider_job", cause=e) from e

    def complete_job(
        self,
        job_id: UUID,
        segments: list[SegmentDraft],
        transcript: ProviderTranscript,
    ) -> bool:
        """
        Persists segments and marks the job completed and its recording ready.

        Returns:
            False if the job had already reached a terminal status, in which
            case nothing is written.

        Raises:
            JobNotFoundError: If the job does not exist.
            PersistenceError: If the database write fails.
        """
        try:
            with self._session_factory() as db_session:
                job = self._lock_job(db_session, job_id)
                if is_terminal(job.status):
                    logger.info(
                        "Job already resolved, skipping completion",
                        extra={"job_id": str(job_id), "status": job.status.value},
                    )
                    return False

                db_session.add_all(
                    TranscriptSegment(
                        recording_id=job.recording_id,
                        job_id=job.id,
                        **segment.model_dump(),
                    )
                    for segment in segments
                )
                db_session.flush()

                applied = self._transition_job(
                    db_session,
                    job_id,
                    JobStatus.completed,
                    raw_response=transcript.raw_response,
                    provider_job_id=(
                        job.provider_job_id
                        or transcript.provider_job_id
                        or str(job.id)
                    ),
                )
                if not applied:
                    db_session.rollback()
                    logger.info(
                        "Job resolved concurrently, skipping completion",
                        extra={"job_id": str(job_id)},
                    )
                    return False

                values = {}
                if transcript.duration_seconds is not None:
                    values["duration_seconds"] = math.floor(
                        transcript.duration_seconds + 0.5
                    )
                self._resolve_recording(
                    db_session, job, RecordingStatus.ready, **values
                )

                db_session.commit()
                logger.info(
                    "Transcription job completed",
                    extra={
                        "job_id": str(job_id),
                        "recording_id": str(job.recording_id),
                        "segment_count": len(segments),
                    },
                )
                return True
        except SQLAlchemyError as e:
            logger.exception("Failed to complete job", extra={"job_id": str(job_id)})
            raise PersistenceError("complete_job", cause=e) from e

    def fail_job(
        self, job_id: UUID, error: str, raw_response: dict | None = None
    ) -> bool:
        """
        Marks the job failed and its recording failed.

        Returns:
            False if the job had already reached a terminal status.

        Raises:
            JobNotFoundError: If the job does not exist.
            PersistenceError: If the database write fails.
        """
        try:
            with self._session_factory() as db_session:
                job = self._lock_job(db_session, job_id)
                values = {"error": error}
                if raw_response is not None:
                    values["raw_response"] = raw_response

                if not self._transition_job(
                    db_session, job_id, JobStatus.failed, **values
                ):
                    logger.info(
                        "Job already resolved, skipping failure",
                        extra={"job_id": str(job_id), "status": job.status.value},
                    )
                    return False

                self._resolve_recording(db_session, job, RecordingStatus.failed)

                db_session.commit()
                logger.info(
                    "Transcription job failed",
                    extra={
                        "job_id": str(job_id),
                        "recording_id": str(job.recording_id),
                        "error": error,
                    },
                )
                return True
        except SQLAlchemyError as e:
            logger.exception("Failed to record job failure", extra={"job_id": str(job_id)})
            raise PersistenceError("fail_job", cause=e) from e

    def _lock_job(self, db_session: Session, job_id: UUID) -> TranscriptionJob:
        job = db_session.exec(
            select(TranscriptionJob)
            .where(TranscriptionJob.id == job_id)
            .with_for_update()
        ).first()
        if job is None:
            raise JobNotFoundError(str(job_id))
        return job

    def _resolve_recording(
        self,
        db_session: Session,
        job: TranscriptionJob,
        target: RecordingStatus,
        **values,
    ) -> None:
        """Applies a job outcome to its recording unless a newer job superseded it."""
        latest_job_id = db_session.exec(
            select(TranscriptionJob.id)
            .where(TranscriptionJob.recording_id == job.recording_id)
            .order_by(TranscriptionJob.created_at.desc())
            .limit(1)
        ).first()
        if latest_job_id != job.id:
            logger.info(
                "Job superseded, recording status left unchanged",
                extra={"job_id": str(job.id), "latest_job_id": str(latest_job_id)},
            )
            return

        if not self._transition_recording(
            db_session, job.recording_id, target, **values
        ):
            logger.warning(
                "Recording not in a state that accepts the job outcome",
                extra={"recording_id": str(job.recording_id), "target": target.value},
            )

    def _transition_recording(
        self,
        db_session: Session,
        recording_id: UUID,
        target: RecordingStatus,
        **values,
    ) -> bool:
        result = db_session.exec(
            update(Recording)
            .where(
                Recording.id == recording_id,
                Recording.status.in_(recording_sources(target)),
            )
            .values(status=target, updated_at=utcnow(), **values)
        )
        return result.rowcount == 1

    def _transition_job(
        self,
        db_session: Session,
        job_id: UUID,
        target: JobStatus,
        **values,
    ) -> bool:
        result = db_session.exec(
            update(TranscriptionJob)
            .where(
                TranscriptionJob.id == job_id,
                TranscriptionJob.status.in_(job_sources(target)),
            )
            .values(status=target, updated_at=utcnow(), **values)
        )
        return result.rowcount == 1
