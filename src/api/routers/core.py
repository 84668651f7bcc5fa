"""Core routes for the Reelsmith API (health, niches, queue stats, media)."""

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from api.dependencies import get_orchestrator, get_settings
from api.schemas import HealthResponse, NicheListResponse, QueueStatsResponse
from reel_engine.pipeline import Orchestrator
from services.providers import describe_providers
from services.storage_service import LocalStorage
from utils.config import Settings
from utils.ffmpeg import ffmpeg_version

API_VERSION = "1.0.0"

router = APIRouter(tags=["Core"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Server health, encoder availability and queue counts.",
)
async def health(
    orchestrator: Orchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    version = await asyncio.to_thread(ffmpeg_version)
    return HealthResponse(
        status="healthy" if version else "degraded",
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        ffmpeg_available=version is not None,
        ffmpeg_version=version,
        providers=describe_providers(settings),
        queue=QueueStatsResponse.from_stats(orchestrator.get_queue_stats()),
    )


@router.get(
    "/niches",
    response_model=NicheListResponse,
    summary="List niches",
    description="Registered niche profiles and the default niche id.",
)
async def list_niches(orchestrator: Orchestrator = Depends(get_orchestrator)) -> NicheListResponse:
    registry = orchestrator.registry
    return NicheListResponse(
        default_niche_id=registry.default_niche_id,
        niches=[profile.to_dict() for profile in registry.all_profiles()],
    )


@router.get(
    "/queue/stats",
    response_model=QueueStatsResponse,
    summary="Queue statistics",
)
async def queue_stats(orchestrator: Orchestrator = Depends(get_orchestrator)) -> QueueStatsResponse:
    return QueueStatsResponse.from_stats(orchestrator.get_queue_stats())


@router.get(
    "/media/{filename}",
    summary="Serve stored output",
    description="Files persisted by local storage; public video URLs point here.",
)
async def media(filename: str, orchestrator: Orchestrator = Depends(get_orchestrator)) -> FileResponse:
    storage = orchestrator.storage
    if not isinstance(storage, LocalStorage):
        raise HTTPException(status_code=404, detail="Media is not served by this storage backend")

    path = storage.resolve_media(filename)
    if path is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path=str(path), filename=path.name)
