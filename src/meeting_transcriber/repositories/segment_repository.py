"""Repository for transcript segments."""

from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from meeting_transcriber.db_models import TranscriptionJob, TranscriptSegment
from meeting_transcriber.domain.models import JobStatus
from meeting_transcriber.exceptions import PersistenceError, SpeakerNotFoundError
from meeting_transcriber.logging import setup_logging

logger = setup_logging()


def current_transcript_job_id(db_session: Session, recording_id: UUID) -> UUID | None:
    """Id of the most recently created completed job of a recording."""
    return db_session.exec(
        select(TranscriptionJob.id)
        .where(
            TranscriptionJob.recording_id == recording_id,
            TranscriptionJob.status == JobStatus.completed,
        )
        .order_by(TranscriptionJob.created_at.desc())
        .limit(1)
    ).first()


class SegmentRepository:
    """
    Reads and relabels the current transcript of a recording.

    Segments belong to the job that produced them; only the latest completed
    job's segments form the current transcript.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def list_current(self, recording_id: UUID) -> list[TranscriptSegment]:
        """Returns the current transcript ordered by start offset."""
        try:
            with self._session_factory() as db_session:
                job_id = current_transcript_job_id(db_session, recording_id)
                if job_id is None:
                    return []
                return list(
                    db_session.exec(
                        select(TranscriptSegment)
                        .where(TranscriptSegment.job_id == job_id)
                        .order_by(TranscriptSegment.start_ms)
                    ).all()
                )
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to load segments", extra={"recording_id": str(recording_id)}
            )
            raise PersistenceError("list_segments", cause=e) from e

    def rename_speaker(self, recording_id: UUID, speaker_id: str, label: str) -> int:
        """
        Updates the display label of every current segment of one speaker.

        Returns:
            Number of segments relabelled.

        Raises:
            SpeakerNotFoundError: If no current segment has ``speaker_id``.
        """
        try:
            with self._session_factory() as db_session:
                job_id = current_transcript_job_id(db_session, recording_id)
                updated = 0
                if job_id is not None:
                    result = db_session.exec(
                        update(TranscriptSegment)
                        .where(
                            TranscriptSegment.job_id == job_id,
                            TranscriptSegment.speaker_id == speaker_id,
                        )
                        .values(speaker_label=label)
                    )
                    updated = result.rowcount
                    db_session.commit()
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to rename speaker",
                extra={"recording_id": str(recording_id), "speaker_id": speaker_id},
            )
            raise PersistenceError("rename_speaker", cause=e) from e

        if not updated:
            raise SpeakerNotFoundError(recording_id, speaker_id)

        logger.info(
            "Speaker renamed",
            extra={
                "recording_id": str(recording_id),
                "speaker_id": speaker_id,
                "segment_count": updated,
            },
        )
        return updated
