"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from meeting_transcriber.dependencies import init_infrastructure
from meeting_transcriber.logging import setup_logging
from meeting_transcriber.routes import (
    recordings_router,
    summaries_router,
    webhooks_router,
)

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_infrastructure()
    yield


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(
        "Rejected malformed request",
        extra={"path": request.url.path, "errors": len(exc.errors())},
    )
    return JSONResponse(
        status_code=400, content={"detail": jsonable_encoder(exc.errors())}
    )


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Meeting Transcriber API", lifespan=lifespan if with_lifespan else None
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(recordings_router)
    app.include_router(summaries_router)
    app.include_router(webhooks_router)
    return app
