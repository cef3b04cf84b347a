"""FastAPI application factory.

Host application with lifespan logging and CORS middleware. main.py mounts
the NiceGUI chat page onto the app this factory returns.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nfrs_assistant import __version__
from nfrs_assistant.config import get_client_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Log startup and shutdown of the host.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    config = get_client_config()
    logger.info(f"Starting NFRS Assistant, backend at {config.api_url}")
    yield
    logger.info("Shutting down NFRS Assistant...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI host application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="NFRS Assistant",
        description=(
            "Chat client for the NFRS assistant. Hosts the chat interface that "
            "talks to the remote conversation and document services."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "nfrs-assistant", "version": __version__}

    return application
