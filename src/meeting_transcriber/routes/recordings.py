"""Recording transcription and transcript endpoints."""

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from meeting_transcriber.dependencies import (
    get_owner_id,
    get_recording_repository,
    get_segment_repository,
    get_state_tracker,
    get_transcription_handler,
)
from meeting_transcriber.domain import SubmissionResult, TranscriptionOptions
from meeting_transcriber.exceptions import (
    ConflictError,
    InternalPipelineError,
    ProviderNotConfiguredError,
    ResourceNotFoundError,
    UpstreamServiceError,
)
from meeting_transcriber.handlers import TranscriptionHandler
from meeting_transcriber.logging import setup_logging
from meeting_transcriber.repositories import (
    RecordingRepository,
    SegmentRepository,
    TranscriptionStateTracker,
)
from meeting_transcriber.response_models import (
    JobResponse,
    RecordingStatusResponse,
    SegmentResponse,
    SpeakerRenameRequest,
    SpeakerRenameResponse,
)

logger = setup_logging()

router = APIRouter(prefix="/recordings", tags=["recordings"])

OwnerDep = Annotated[UUID, Depends(get_owner_id)]
TranscriptionHandlerDep = Annotated[
    TranscriptionHandler, Depends(get_transcription_handler)
]
RecordingRepositoryDep = Annotated[
    RecordingRepository, Depends(get_recording_repository)
]
SegmentRepositoryDep = Annotated[SegmentRepository, Depends(get_segment_repository)]
TrackerDep = Annotated[TranscriptionStateTracker, Depends(get_state_tracker)]


@router.post("/{recording_id}/transcriptions", response_model=SubmissionResult)
def submit_transcription(
    recording_id: UUID,
    owner_id: OwnerDep,
    handler: TranscriptionHandlerDep,
    options: TranscriptionOptions | None = None,
):
    """Starts a transcription job for a recording."""
    try:
        return handler.submit(recording_id, owner_id, options)
    except ResourceNotFoundError:
        raise HTTPException(status_code=404, detail="Recording not found")
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ProviderNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except UpstreamServiceError as e:
        raise HTTPException(status_code=502, detail=e.detail)
    except InternalPipelineError as e:
        logger.error(f"Transcription failed for recording {recording_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Error submitting recording {recording_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{recording_id}", response_model=RecordingStatusResponse)
def get_recording(
    recording_id: UUID,
    owner_id: OwnerDep,
    recordings: RecordingRepositoryDep,
    tracker: TrackerDep,
):
    """Returns the recording status and its latest transcription job."""
    try:
        recording = recordings.get_owned(recording_id, owner_id)
        job = tracker.get_latest_job(recording_id)
    except ResourceNotFoundError:
        raise HTTPException(status_code=404, detail="Recording not found")
    except Exception as e:
        logger.error(f"Error getting recording {recording_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    latest_job = None
    if job is not None:
        latest_job = JobResponse(
            job_id=job.id,
            provider=job.provider,
            provider_job_id=job.provider_job_id,
            status=job.status,
            error=job.error,
            created_at=job.created_at,
        )

    return RecordingStatusResponse(
        recording_id=recording.id,
        title=recording.title,
        status=recording.status,
        duration_seconds=recording.duration_seconds,
        latest_job=latest_job,
    )


@router.get("/{recording_id}/segments", response_model=List[SegmentResponse])
def list_segments(
    recording_id: UUID,
    owner_id: OwnerDep,
    recordings: RecordingRepositoryDep,
    segments: SegmentRepositoryDep,
):
    """Returns the current transcript ordered by start time."""
    try:
        recordings.get_owned(recording_id, owner_id)
        rows = segments.list_current(recording_id)
    except ResourceNotFoundError:
        raise HTTPException(status_code=404, detail="Recording not found")
    except Exception as e:
        logger.error(f"Error listing segments for recording {recording_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return [
        SegmentResponse(
            segment_id=row.id,
            speaker_id=row.speaker_id,
            speaker_label=row.speaker_label,
            start_ms=row.start_ms,
            end_ms=row.end_ms,
            text=row.text,
        )
        for row in rows
    ]


@router.patch(
    "/{recording_id}/speakers/{speaker_id}", response_model=SpeakerRenameResponse
)
def rename_speaker(
    recording_id: UUID,
    speaker_id: str,
    body: SpeakerRenameRequest,
    owner_id: OwnerDep,
    recordings: RecordingRepositoryDep,
    segments: SegmentRepositoryDep,
):
    """Relabels every current segment of one speaker."""
    label = body.label.strip()
    if not label:
        raise HTTPException(status_code=400, detail="Speaker label must not be blank")

    try:
        recordings.get_owned(recording_id, owner_id)
        updated = segments.rename_speaker(recording_id, speaker_id, label)
    except ResourceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error renaming speaker {speaker_id} in {recording_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return SpeakerRenameResponse(
        speaker_id=speaker_id, speaker_label=label, updated_segments=updated
    )
