"""Repository for versioned summaries and their templates."""

from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from meeting_transcriber.db_models import Summary, SummaryTemplate
from meeting_transcriber.exceptions import (
    MissingTemplateError,
    PersistenceError,
    SummaryVersionConflictError,
    TemplateNotFoundError,
)
from meeting_transcriber.logging import setup_logging

logger = setup_logging()


class SummaryRepository:
    """
    Handles database operations for summaries.

    Versions are claimed optimistically: the next version is read and inserted
    in one transaction, and the ``(recording_id, version)`` unique constraint
    rejects the insert if a concurrent writer claimed the same number first.
    The losing writer re-reads and tries again.
    """

    def __init__(self, session_factory, max_attempts: int = 5):
        self._session_factory = session_factory
        self._max_attempts = max_attempts

    def create_next_version(
        self,
        recording_id: UUID,
        template_id: UUID | None,
        model_id: str,
        content: str,
        raw_response: dict[str, Any] | None,
    ) -> Summary:
        """
        Persists a new immutable summary with the next version number.

        Raises:
            SummaryVersionConflictError: If every attempt lost the race.
            PersistenceError: If the database write fails.
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                with self._session_factory() as db_session:
                    summary = Summary(
                        recording_id=recording_id,
                        version=self._next_version(db_session, recording_id),
                        template_id=template_id,
                        model_id=model_id,
                        content=content,
                        raw_response=raw_response,
                    )
                    db_session.add(summary)
                    db_session.commit()
                    db_session.refresh(summary)

                    logger.info(
                        "Summary persisted",
                        extra={
                            "recording_id": str(recording_id),
                            "version": summary.version,
                        },
                    )
                    return summary
            except IntegrityError:
                logger.warning(
                    "Summary version already claimed, retrying",
                    extra={"recording_id": str(recording_id), "attempt": attempt},
                )
            except SQLAlchemyError as e:
                logger.exception(
                    "Failed to persist summary",
                    extra={"recording_id": str(recording_id)},
                )
                raise PersistenceError("create_summary", cause=e) from e

        raise SummaryVersionConflictError(recording_id, self._max_attempts)

    def list_for_recording(self, recording_id: UUID) -> list[Summary]:
        """Returns every summary version of a recording, newest first."""
        try:
            with self._session_factory() as db_session:
                return list(
                    db_session.exec(
                        select(Summary)
                        .where(Summary.recording_id == recording_id)
                        .order_by(Summary.version.desc())
                    ).all()
                )
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to list summaries", extra={"recording_id": str(recording_id)}
            )
            raise PersistenceError("list_summaries", cause=e) from e

    def _next_version(self, db_session: Session, recording_id: UUID) -> int:
        current = db_session.exec(
            select(func.max(Summary.version)).where(Summary.recording_id == recording_id)
        ).one()
        return (current or 0) + 1


class TemplateRepository:
    """Read access to summary templates maintained by administrative tooling."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def resolve(self, template_id: UUID | None) -> SummaryTemplate:
        """
        Returns the requested template, or the single default template.

        Raises:
            TemplateNotFoundError: If ``template_id`` does not exist.
            MissingTemplateError: If there is not exactly one default template.
        """
        try:
            with self._session_factory() as db_session:
                if template_id is not None:
                    template = db_session.get(SummaryTemplate, template_id)
                    if template is None:
                        raise TemplateNotFoundError(template_id)
                    return template

                defaults = db_session.exec(
                    select(SummaryTemplate)
                    .where(SummaryTemplate.is_default.is_(True))
                    .limit(2)
                ).all()
        except SQLAlchemyError as e:
            logger.exception("Failed to load summary template")
            raise PersistenceError("resolve_template", cause=e) from e

        if not defaults:
            raise MissingTemplateError()
        if len(defaults) > 1:
            raise MissingTemplateError("More than one default summary template")
        return defaults[0]
