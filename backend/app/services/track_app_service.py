import hashlib
import time
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any, Tuple

from domain.models.track import Track, AdminComment
from domain.exceptions import MissingFieldError, TrackNotFoundError, OwnershipError
from infra.repositories.track_repository import TrackRepository
from api.schemas.music import MusicCreate
from utils.logger import get_logger

logger = get_logger(__name__)

VISIBILITY_ALL = "all"
VISIBILITY_PUBLIC = "public"

def _now_iso() -> str:
    # JS の Date.toISOString() と同じ形式 (ミリ秒 + Z)
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def _now_ms() -> int:
    return int(time.time() * 1000)

def _parse_timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def _find_index(tracks: List[Track], track_id: str) -> int:
    for index, track in enumerate(tracks):
        if track.id == track_id:
            return index
    raise TrackNotFoundError()

def _check_owner(track: Track, owner: str, message: str):
    if not track.is_owned_by(owner):
        logger.warning(f"Ownership verification failed for {track.id}: owner={track.owner}, requester={owner}")
        raise OwnershipError(message)

class TrackAppService:
    def __init__(self, repository: TrackRepository):
        self.repository = repository

    async def get_music(self, owner: Optional[str] = None, visibility: str = VISIBILITY_ALL) -> List[Dict[str, Any]]:
        """
        楽曲一覧を取得する。
        owner 指定時はそのウォレットの楽曲のみ、visibility='public' の場合は非表示の楽曲を除外する。
        """
        tracks = await self.repository.find_by_owner(owner) if owner else await self.repository.find_all()
        if visibility == VISIBILITY_PUBLIC:
            tracks = [t for t in tracks if not t.is_hidden]
        return [t.to_record() for t in tracks]

    async def register_music(self, data: MusicCreate) -> Dict[str, Any]:
        """IPFS へのアップロード済みアセットを楽曲として登録する"""
        if not data.title or not data.artist or not data.owner or not data.audio_url:
            raise MissingFieldError("Missing required fields")

        async with self.repository.transaction() as tracks:
            existing_ids = {t.id for t in tracks}
            stamp = _now_ms()
            while True:
                track_id = hashlib.md5(f"{data.title}{data.artist}{stamp}".encode("utf-8")).hexdigest()[:16]
                if track_id not in existing_ids:
                    break
                stamp += 1

            track = Track(
                id=track_id,
                title=data.title,
                artist=data.artist,
                description=data.description or "",
                price=data.price or "0",
                audio_url=data.audio_url,
                image_url=data.image_url or "",
                owner=data.owner.lower(),
                metadata_url=data.metadata_url or "",
                created_at=_now_iso(),
            )
            # オンチェーン登録済みの場合のみ保存する
            if data.ip_id:
                track.ip_id = data.ip_id
            if data.tx_hash:
                track.tx_hash = data.tx_hash
            tracks.append(track)

        logger.info(f"Music NFT stored: {track.id} ({track.title} by {track.artist})")
        return track.to_record()

    async def delete_music(self, track_id: Optional[str], owner: Optional[str]) -> Tuple[Track, int]:
        """所有者のみ削除可能。削除したトラックと残り件数を返す"""
        if not track_id:
            raise MissingFieldError("Music ID is required")
        if not owner:
            raise MissingFieldError("Owner address is required for verification")

        async with self.repository.transaction() as tracks:
            index = _find_index(tracks, track_id)
            _check_owner(
                tracks[index], owner,
                "You can only delete your own music. Ownership verification failed."
            )
            deleted = tracks.pop(index)
            remaining = len(tracks)

        logger.info(f"Deleted music {deleted.id} ({deleted.title}), remaining: {remaining}")
        return deleted, remaining

    async def toggle_hidden(self, track_id: Optional[str], owner: Optional[str]) -> bool:
        if not track_id or not owner:
            raise MissingFieldError("Missing id or owner")

        async with self.repository.transaction() as tracks:
            track = tracks[_find_index(tracks, track_id)]
            _check_owner(track, owner, "Not authorized - you do not own this music")
            track.hidden = not track.is_hidden
            hidden = track.hidden

        logger.info(f"Music {track_id} hidden={hidden}")
        return hidden

    async def add_comment(self, track_id: Optional[str], admin: Optional[str], comment: Optional[str]) -> Dict[str, Any]:
        """管理者コメントを追記する。コメントは到着順に保持される"""
        if not track_id or not admin or not comment:
            raise MissingFieldError("Missing id, admin, or comment")

        async with self.repository.transaction() as tracks:
            track = tracks[_find_index(tracks, track_id)]
            comments = track.admin_comments if track.admin_comments is not None else []

            # 同一ミリ秒内の連続投稿でも ID が重複しないようにする
            existing_ids = {c.id for c in comments}
            stamp = _now_ms()
            while f"comment-{stamp}" in existing_ids:
                stamp += 1

            new_comment = AdminComment(
                id=f"comment-{stamp}",
                admin=admin,
                comment=comment,
                timestamp=_now_iso(),
                read=False,
            )
            comments.append(new_comment)
            track.admin_comments = comments

        logger.info(f"Admin comment {new_comment.id} added to {track_id} by {admin}")
        return new_comment.model_dump()

    async def get_comments(self, track_id: Optional[str]) -> List[Dict[str, Any]]:
        if not track_id:
            raise MissingFieldError("Missing id")
        track = await self.repository.get_by_id(track_id)
        if not track:
            raise TrackNotFoundError()
        return [c.model_dump() for c in track.comments]

    async def get_notifications(self, owner: Optional[str]) -> Tuple[List[Dict[str, Any]], int]:
        """
        所有する全楽曲のコメントを1つのリストにまとめ、新しい順に並べる。
        Returns: (notifications, unread_count)
        """
        if not owner:
            raise MissingFieldError("Missing owner")

        notifications = []
        for track in await self.repository.find_by_owner(owner):
            for c in track.comments:
                notifications.append({
                    "id": c.id,
                    "musicId": track.id,
                    "musicTitle": track.title,
                    "musicImage": track.image_url,
                    "admin": c.admin,
                    "comment": c.comment,
                    "timestamp": c.timestamp,
                    "read": c.read,
                })

        # sort は安定ソートなので、同時刻のものは元の順序を保つ
        notifications.sort(key=lambda n: _parse_timestamp(n["timestamp"]), reverse=True)
        unread_count = sum(1 for n in notifications if not n["read"])
        return notifications, unread_count

    async def mark_notification_read(self, comment_id: Optional[str], music_id: Optional[str], owner: Optional[str]):
        if not comment_id or not music_id or not owner:
            raise MissingFieldError("Missing commentId, musicId, or owner")

        async with self.repository.transaction() as tracks:
            track = tracks[_find_index(tracks, music_id)]
            _check_owner(track, owner, "Not authorized")
            # 該当コメントがなければ何もしない
            for c in track.comments:
                if c.id == comment_id:
                    c.read = True
                    break
