"""Repository for recording lookups."""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from meeting_transcriber.db_models import Recording
from meeting_transcriber.exceptions import PersistenceError, RecordingNotFoundError
from meeting_transcriber.logging import setup_logging

logger = setup_logging()


class RecordingRepository:
    """Read access to recordings, scoped to their owner."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def get_owned(self, recording_id: UUID, owner_id: UUID) -> Recording:
        """
        Retrieves a recording belonging to ``owner_id``.

        Raises:
            RecordingNotFoundError: If it does not exist or has another owner.
        """
        try:
            with self._session_factory() as db_session:
                recording = db_session.exec(
                    select(Recording).where(
                        Recording.id == recording_id,
                        Recording.owner_id == owner_id,
                    )
                ).first()
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to load recording", extra={"recording_id": str(recording_id)}
            )
            raise PersistenceError("get_recording", cause=e) from e

        if recording is None:
            raise RecordingNotFoundError(recording_id)
        return recording
