from fastapi import APIRouter, Depends
from config import settings
from infra.storage.connection import get_track_repository
from infra.repositories.track_repository import TrackRepository

router = APIRouter()

@router.get("/api/health")
async def health_check(repository: TrackRepository = Depends(get_track_repository)):
    """APIの生存確認と、使用中のストレージバックエンドを返す"""
    tracks = await repository.find_all()
    return {
        "success": True,
        "status": "ok",
        "env": settings.ENV,
        "storage": repository.storage.name,
        "total_tracks": len(tracks),
    }
