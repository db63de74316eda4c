from .recordings import router as recordings_router
from .summaries import router as summaries_router
from .webhooks import router as webhooks_router

__all__ = ["recordings_router", "summaries_router", "webhooks_router"]
