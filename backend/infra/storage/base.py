from abc import ABC, abstractmethod
from typing import Any, List, Tuple
from pydantic import ValidationError

from domain.models.track import Track
from domain.exceptions import StorageReadError
from utils.logger import get_logger

logger = get_logger(__name__)

class TrackStorage(ABC):
    """
    楽曲コレクション全体 (JSON配列) の読み書きを行うバックエンドの共通インターフェース。

    - read_raw / write_raw: デコード済みのJSON配列をそのまま扱う。
      read_raw は読み込みに失敗した場合 StorageReadError を送出する (データ未作成は [])。
    - read_all: 表示用。例外を送出せず、失敗時は空リストを返す。
    - write_all: 失敗は呼び出し元に伝播する。
    """
    name = "base"

    @abstractmethod
    async def read_raw(self) -> List[Any]:
        ...

    @abstractmethod
    async def write_raw(self, records: List[Any]) -> None:
        ...

    async def read_all(self) -> List[Track]:
        try:
            raw = await self.read_raw()
        except StorageReadError as e:
            logger.error(f"{self.name} storage read failed, treating as empty: {e}")
            return []
        return parse_tracks(raw)

    async def write_all(self, tracks: List[Track]) -> None:
        await self.write_raw(dump_tracks(tracks))

def ensure_list(data: Any, source: str) -> List[Any]:
    if not isinstance(data, list):
        raise StorageReadError(f"Stored music data in {source} is not a list ({type(data).__name__})")
    return data

def split_records(data: List[Any]) -> Tuple[List[Track], List[Tuple[int, Any]]]:
    """
    JSON配列を検証済みのTrackと、検証に失敗した元データ (index, item) に分ける。
    """
    tracks = []
    invalid = []
    for index, item in enumerate(data):
        try:
            tracks.append(Track.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Invalid track record at index {index}: {e.error_count()} error(s)")
            invalid.append((index, item))
    return tracks, invalid

def parse_tracks(data: List[Any]) -> List[Track]:
    tracks, _ = split_records(data)
    return tracks

def dump_tracks(tracks: List[Track]) -> List[dict]:
    return [t.to_record() for t in tracks]
