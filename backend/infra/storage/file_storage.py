import json
import os
from typing import Any, List

from domain.exceptions import StorageReadError
from infra.storage.base import TrackStorage, ensure_list
from utils.logger import get_logger

logger = get_logger(__name__)

class FileTrackStorage(TrackStorage):
    """ローカル開発用: 1つのJSONファイルに整形して保存する"""
    name = "file"

    def __init__(self, path: str):
        self.path = path

    async def read_raw(self) -> List[Any]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"FS read error ({self.path}): {e}")
            raise StorageReadError() from e
        return ensure_list(data, self.path)

    async def write_raw(self, records: List[Any]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"FS write error ({self.path}): {e}")
            raise
        logger.info(f"Saved {len(records)} tracks to local file")
