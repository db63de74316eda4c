"""Provider callback endpoint."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Header, HTTPException
from fastapi.responses import PlainTextResponse

from meeting_transcriber.dependencies import get_callback_handler
from meeting_transcriber.exceptions import (
    InvalidRequestError,
    ProviderNotConfiguredError,
    ResourceNotFoundError,
    UnauthorizedError,
)
from meeting_transcriber.handlers import CallbackHandler
from meeting_transcriber.logging import setup_logging

logger = setup_logging()

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

CallbackHandlerDep = Annotated[CallbackHandler, Depends(get_callback_handler)]


@router.post("/transcription", response_class=PlainTextResponse)
def transcription_callback(
    handler: CallbackHandlerDep,
    payload: Annotated[Any, Body()] = None,
    job_id: str | None = None,
    secret: str | None = None,
    x_job_id: Annotated[str | None, Header()] = None,
    x_webhook_secret: Annotated[str | None, Header()] = None,
):
    """
    Receives an asynchronous transcription result.

    Authenticated, well-formed deliveries are acknowledged even when storing
    the result fails; the failure is logged and recorded on the job.
    """
    try:
        handler.handle(job_id or x_job_id, secret or x_webhook_secret, payload)
    except ProviderNotConfiguredError as e:
        logger.error(f"Callback rejected: {e}")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")
    except UnauthorizedError:
        raise HTTPException(status_code=403, detail="Forbidden")
    except ResourceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception(
            "Callback processing failed", extra={"job_id": job_id or x_job_id}
        )

    return "OK"
