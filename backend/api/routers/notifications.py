from fastapi import APIRouter, Depends, HTTPException
from typing import Optional

from infra.storage.connection import get_track_repository
from infra.repositories.track_repository import TrackRepository
from api.schemas.music import NotificationRead
from app.services.track_app_service import TrackAppService
from domain.exceptions import MusicStoreError

router = APIRouter()

@router.get("/api/notifications")
async def get_notifications(owner: Optional[str] = None, repository: TrackRepository = Depends(get_track_repository)):
    """所有する楽曲に付いた管理者コメントを新しい順に返す"""
    service = TrackAppService(repository)
    try:
        notifications, unread_count = await service.get_notifications(owner)
    except MusicStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True, "notifications": notifications, "unreadCount": unread_count}

@router.post("/api/notifications")
async def mark_notification_read(body: NotificationRead, repository: TrackRepository = Depends(get_track_repository)):
    service = TrackAppService(repository)
    try:
        await service.mark_notification_read(body.comment_id, body.music_id, body.owner)
    except MusicStoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True, "message": "Notification marked as read"}
