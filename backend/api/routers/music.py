from fastapi import APIRouter, Depends, Query, HTTPException
from fastapi.responses import JSONResponse
from typing import Optional

from infra.storage.connection import get_track_repository
from infra.repositories.track_repository import TrackRepository
from api.schemas.music import MusicCreate
from app.services.track_app_service import TrackAppService
from domain.exceptions import MusicStoreError

router = APIRouter()

@router.get("/api/get-music")
async def get_music(
    owner: Optional[str] = Query(None, description="Filter by owner wallet address"),
    visibility: str = Query("all", description="'public' excludes hidden tracks"),
    repository: TrackRepository = Depends(get_track_repository)
):
    service = TrackAppService(repository)
    music = await service.get_music(owner, visibility)
    return {"success": True, "music": music}

@router.post("/api/upload-music")
async def upload_music(data: MusicCreate, repository: TrackRepository = Depends(get_track_repository)):
    """IPFS へピン留め済みのアセット情報を受け取り、楽曲として登録する"""
    service = TrackAppService(repository)
    try:
        music_nft = await service.register_music(data)
    except MusicStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True, "musicNFT": music_nft, "message": "Music NFT uploaded successfully!"}

@router.delete("/api/delete-music")
async def delete_music(
    id: Optional[str] = None,
    owner: Optional[str] = None,
    repository: TrackRepository = Depends(get_track_repository)
):
    service = TrackAppService(repository)
    try:
        deleted, remaining = await service.delete_music(id, owner)
    except MusicStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return JSONResponse(
        content={
            "success": True,
            "message": "Music deleted successfully",
            "deleted": {"id": deleted.id, "title": deleted.title, "artist": deleted.artist},
            "remaining": remaining,
        },
        headers={"Cache-Control": "no-store, no-cache, must-revalidate"},
    )

@router.post("/api/toggle-hide")
async def toggle_hide(
    id: Optional[str] = None,
    owner: Optional[str] = None,
    repository: TrackRepository = Depends(get_track_repository)
):
    service = TrackAppService(repository)
    try:
        hidden = await service.toggle_hidden(id, owner)
    except MusicStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return {
        "success": True,
        "message": "Music hidden from explore page" if hidden else "Music visible on explore page",
        "hidden": hidden,
    }
