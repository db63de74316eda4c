"""FastAPI application entry point."""

from ddtrace import patch_all

from meeting_transcriber.app import create_app

patch_all()

app = create_app()
