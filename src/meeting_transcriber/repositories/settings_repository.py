"""Repository for the administrative settings singleton."""

from sqlalchemy.exc import SQLAlchemyError

from meeting_transcriber.config import PipelineDefaults
from meeting_transcriber.db_models import AppSettings
from meeting_transcriber.exceptions import PersistenceError
from meeting_transcriber.logging import setup_logging

logger = setup_logging()

SETTINGS_ROW_ID = 1


class SettingsRepository:
    """Reads the settings row into a ``PipelineDefaults`` value object."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def load_defaults(self, fallback: PipelineDefaults) -> PipelineDefaults:
        """
        Overlays the settings row on the built-in defaults.

        Unset model identifiers keep the built-in value; a missing row yields
        the built-in defaults unchanged.
        """
        try:
            with self._session_factory() as db_session:
                row = db_session.get(AppSettings, SETTINGS_ROW_ID)
        except SQLAlchemyError as e:
            logger.exception("Failed to load settings")
            raise PersistenceError("load_settings", cause=e) from e

        if row is None:
            return fallback

        return PipelineDefaults(
            transcription_model_id=(
                row.transcription_default_model_id or fallback.transcription_model_id
            ),
            diarize=row.transcription_diarize_default,
            tag_audio_events=row.transcription_tag_audio_events_default,
            summary_model=row.summary_default_model or fallback.summary_model,
            summary_temperature=row.summary_temperature,
            summary_max_tokens=row.summary_max_tokens,
        )
