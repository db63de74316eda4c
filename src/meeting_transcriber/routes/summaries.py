"""Summary generation endpoints."""

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from meeting_transcriber.dependencies import (
    get_owner_id,
    get_recording_repository,
    get_summary_handler,
    get_summary_repository,
)
from meeting_transcriber.domain import SummaryResult
from meeting_transcriber.exceptions import (
    InternalPipelineError,
    InvalidRequestError,
    ProviderNotConfiguredError,
    ResourceNotFoundError,
    UpstreamServiceError,
)
from meeting_transcriber.handlers import SummaryHandler
from meeting_transcriber.logging import setup_logging
from meeting_transcriber.repositories import RecordingRepository, SummaryRepository
from meeting_transcriber.response_models import SummaryRequest, SummaryResponse

logger = setup_logging()

router = APIRouter(prefix="/recordings", tags=["summaries"])

OwnerDep = Annotated[UUID, Depends(get_owner_id)]
SummaryHandlerDep = Annotated[SummaryHandler, Depends(get_summary_handler)]
RecordingRepositoryDep = Annotated[
    RecordingRepository, Depends(get_recording_repository)
]
SummaryRepositoryDep = Annotated[SummaryRepository, Depends(get_summary_repository)]


@router.post("/{recording_id}/summaries", response_model=SummaryResult)
def generate_summary(
    recording_id: UUID,
    owner_id: OwnerDep,
    handler: SummaryHandlerDep,
    body: SummaryRequest | None = None,
):
    """Generates the next summary version of a ready recording."""
    body = body or SummaryRequest()
    try:
        return handler.generate(
            recording_id,
            owner_id,
            template_id=body.template_id,
            model_id=body.model_id,
            instructions=body.instructions,
        )
    except ResourceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except UpstreamServiceError as e:
        raise HTTPException(status_code=502, detail=e.detail)
    except InternalPipelineError as e:
        logger.error(f"Summary failed for recording {recording_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating summary for {recording_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{recording_id}/summaries", response_model=List[SummaryResponse])
def list_summaries(
    recording_id: UUID,
    owner_id: OwnerDep,
    recordings: RecordingRepositoryDep,
    summaries: SummaryRepositoryDep,
):
    """Returns every summary version of a recording, newest first."""
    try:
        recordings.get_owned(recording_id, owner_id)
        rows = summaries.list_for_recording(recording_id)
    except ResourceNotFoundError:
        raise HTTPException(status_code=404, detail="Recording not found")
    except Exception as e:
        logger.error(f"Error listing summaries for {recording_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return [
        SummaryResponse(
            summary_id=row.id,
            version=row.version,
            template_id=row.template_id,
            model_id=row.model_id,
            content=row.content,
            created_at=row.created_at,
        )
        for row in rows
    ]
