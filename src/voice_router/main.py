"""ASGI app entrypoint for the voice webhook router.

This module exposes the FastAPI `app` object and includes a
minimal healthcheck endpoint used by orchestration tooling.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import webhooks as webhooks_router
from .config import get_settings
from .log_config import setup_logging
from .schemas import HealthResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging when the server starts, not when the module is imported."""
    logger = setup_logging()
    settings = get_settings()
    logger.info("Starting voice webhook router (debug=%s)", settings.debug_mode)
    yield
    logging.getLogger("voice_router").info("Voice webhook router stopped")


app = FastAPI(title="Voice Webhook Router", lifespan=lifespan)

# The platform and the dashboard call from arbitrary origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(webhooks_router.router, prefix="/vapi", tags=["vapi"])


@app.get("/health", response_model=HealthResponse, status_code=200)
async def health() -> HealthResponse:
    """Return a simple health status in a predictable JSON schema."""
    return HealthResponse()


def run() -> None:
    """Serve the app with uvicorn (console entry point)."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.server_host, port=settings.server_port, log_level=settings.log_level.lower())
