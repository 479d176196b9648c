from fastapi import APIRouter, Depends, HTTPException
from typing import Optional

from infra.storage.connection import get_track_repository
from infra.repositories.track_repository import TrackRepository
from api.schemas.music import CommentCreate
from app.services.track_app_service import TrackAppService
from domain.exceptions import MusicStoreError

router = APIRouter()

@router.post("/api/admin-comment")
async def add_admin_comment(
    body: Optional[CommentCreate] = None,
    id: Optional[str] = None,
    admin: Optional[str] = None,
    repository: TrackRepository = Depends(get_track_repository)
):
    """管理者コメントを追加する。admin パラメータのアドレスは信頼済みとして扱う"""
    service = TrackAppService(repository)
    try:
        comment = await service.add_comment(id, admin, body.comment if body else None)
    except MusicStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True, "message": "Comment added successfully", "comment": comment}

@router.get("/api/admin-comment")
async def get_admin_comments(id: Optional[str] = None, repository: TrackRepository = Depends(get_track_repository)):
    service = TrackAppService(repository)
    try:
        comments = await service.get_comments(id)
    except MusicStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True, "comments": comments}
