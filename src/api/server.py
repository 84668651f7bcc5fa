#!/usr/bin/env python
"""FastAPI server for the Reelsmith job pipeline."""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Add src directory to Python path for imports
src_dir = Path(__file__).parent.parent
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import core, jobs
from api.routers.core import API_VERSION
from reel_engine.pipeline import Orchestrator, create_orchestrator
from utils.config import Settings, load_validated_config
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, orchestrator: Orchestrator | None = None) -> FastAPI:
    """Build the FastAPI application.

    Configuration is loaded and validated when the app starts, not at import.

    Args:
        settings: Pre-built settings; loaded from the environment when omitted
        orchestrator: Pre-built orchestrator; wired from settings when omitted

    Raises:
        ConfigError: At startup, if the configuration is invalid
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_settings = orchestrator.settings if orchestrator else settings or load_validated_config()
        setup_logging(app_settings.log_level, json_output=app_settings.log_json)

        app.state.orchestrator = orchestrator or create_orchestrator(app_settings)
        logger.info(
            f"Reelsmith API ready (output={app_settings.output_dir}, "
            f"default niche={app.state.orchestrator.registry.default_niche_id})"
        )
        try:
            yield
        finally:
            await app.state.orchestrator.close()
            logger.info("Reelsmith API stopped")

    app = FastAPI(title="Reelsmith API", version=API_VERSION, lifespan=lifespan)

    # CORS middleware for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(core.router)
    app.include_router(jobs.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=False)
