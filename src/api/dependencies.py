"""Dependency injection for the Reelsmith API.

The orchestrator and settings are built once in the app lifespan and kept on
app.state; routes receive them through these providers.
"""

from fastapi import HTTPException, Request

from reel_engine.pipeline import Orchestrator
from utils.config import Settings


def get_orchestrator(request: Request) -> Orchestrator:
    """Get the orchestrator built at startup."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Pipeline is not ready")
    return orchestrator


def get_settings(request: Request) -> Settings:
    """Get the settings the orchestrator was built with."""
    return get_orchestrator(request).settings
