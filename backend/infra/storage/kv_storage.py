import asyncio
import json
import urllib.parse
from typing import Any, List, Optional

import aiohttp

from domain.models.track import Track
from domain.exceptions import StorageReadError
from infra.storage.base import TrackStorage, ensure_list, parse_tracks
from utils.logger import get_logger

logger = get_logger(__name__)

class KVTrackStorage(TrackStorage):
    """
    リモートKVストア (Upstash / Vercel KV 互換の REST API) に
    コレクション全体を1つの値として保存する。

    - GET  {base_url}/get/{key}  -> {"result": "<json string>" | null}
    - POST {base_url}/set/{key}  (body: json string)

    read_all ではキーが存在しない、値が壊れている、通信に失敗した場合に
    fallback (ローカルファイル) を読む。
    更新用の read_raw がフォールバックするのはキーが存在しない場合のみで、
    通信失敗時に空に近いデータでリモートを上書きしないようにする。
    """
    name = "kv"

    def __init__(
        self,
        base_url: str,
        token: str,
        key: str = "music-data",
        fallback: Optional[TrackStorage] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.key = key
        self.fallback = fallback
        self.timeout = timeout

    @property
    def _headers(self):
        return {"Authorization": f"Bearer {self.token}"}

    def _url(self, command: str) -> str:
        return f"{self.base_url}/{command}/{urllib.parse.quote(self.key, safe='')}"

    async def _get(self) -> Any:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.get(self._url("get"), headers=self._headers) as response:
                response.raise_for_status()
                payload = await response.json(content_type=None)
                return payload.get("result") if isinstance(payload, dict) else None

    async def _set(self, value: str) -> None:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.post(self._url("set"), data=value.encode("utf-8"), headers=self._headers) as response:
                response.raise_for_status()

    async def _read_remote(self) -> Optional[List[Any]]:
        """
        リモートの値を読む。キーが存在しない場合は None。
        通信失敗・JSON破損の場合は StorageReadError を送出する。
        """
        try:
            raw = await self._get()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error reading from KV store: {e}")
            raise StorageReadError() from e

        if raw is None:
            logger.info(f"No value stored under '{self.key}', will create on first write")
            return None

        # 値は JSON 文字列として保存されるが、デコード済みで返る実装もある
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError as e:
                logger.error(f"KV value under '{self.key}' is not valid JSON: {e}")
                raise StorageReadError() from e

        return ensure_list(raw, f"KV key '{self.key}'")

    async def read_raw(self) -> List[Any]:
        # 更新処理用: リモートの読み込み失敗時はフォールバックせず例外とする
        raw = await self._read_remote()
        if raw is not None:
            return raw
        if self.fallback is not None:
            return await self.fallback.read_raw()
        return []

    async def read_all(self) -> List[Track]:
        try:
            raw = await self._read_remote()
        except StorageReadError:
            raw = None
        if raw is not None:
            tracks = parse_tracks(raw)
            logger.info(f"Loaded {len(tracks)} tracks from KV store")
            return tracks
        if self.fallback is not None:
            logger.info(f"Falling back to {self.fallback.name} storage")
            return await self.fallback.read_all()
        return []

    async def write_raw(self, records: List[Any]) -> None:
        try:
            await self._set(json.dumps(records, ensure_ascii=False))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error writing to KV store: {e}")
            raise
        logger.info(f"Saved {len(records)} tracks to KV store")
