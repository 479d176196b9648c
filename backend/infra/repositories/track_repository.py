import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from domain.models.track import Track
from infra.storage.base import TrackStorage, split_records, dump_tracks

class TrackRepository:
    """
    楽曲コレクションへのアクセス。
    更新は transaction() 内で「全件読み込み → 変更 → 全件書き戻し」を行い、
    同一プロセス内の更新は1つのロックで直列化する。
    """
    def __init__(self, storage: TrackStorage):
        self.storage = storage
        self._write_lock = asyncio.Lock()

    async def find_all(self) -> List[Track]:
        return await self.storage.read_all()

    async def find_by_owner(self, owner: str) -> List[Track]:
        return [t for t in await self.find_all() if t.is_owned_by(owner)]

    async def get_by_id(self, track_id: str) -> Optional[Track]:
        for track in await self.find_all():
            if track.id == track_id:
                return track
        return None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[List[Track]]:
        # 読み込みに失敗した場合 (StorageReadError) やブロック内で例外が発生した場合は書き戻さない
        async with self._write_lock:
            raw = await self.storage.read_raw()
            tracks, invalid = split_records(raw)
            yield tracks

            # 検証に失敗したレコードは変更せず、元の位置に戻して保存する
            records = dump_tracks(tracks)
            for index, item in invalid:
                records.insert(min(index, len(records)), item)
            await self.storage.write_raw(records)
