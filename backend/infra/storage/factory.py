from config import Settings, BACKEND_FILE, BACKEND_KV
from domain.exceptions import StorageConfigError
from infra.storage.base import TrackStorage
from infra.storage.file_storage import FileTrackStorage
from infra.storage.kv_storage import KVTrackStorage
from utils.logger import get_logger

logger = get_logger(__name__)

def create_storage(config: Settings) -> TrackStorage:
    """
    設定からストレージバックエンドを生成する。
    起動時に一度だけ呼び出し、以降は注入されたインスタンスを使う。
    """
    backend = config.resolve_storage_backend()
    file_storage = FileTrackStorage(config.STORAGE_FILE)

    if backend == BACKEND_FILE:
        logger.info(f"Using local file storage: {config.STORAGE_FILE}")
        return file_storage

    if backend == BACKEND_KV:
        if not config.kv_configured:
            raise StorageConfigError("STORAGE_BACKEND=kv requires KV_REST_API_URL and KV_REST_API_TOKEN")
        logger.info(f"Using KV storage: {config.KV_REST_API_URL} (key: {config.KV_STORE_KEY})")
        return KVTrackStorage(
            base_url=config.KV_REST_API_URL,
            token=config.KV_REST_API_TOKEN,
            key=config.KV_STORE_KEY,
            fallback=file_storage,
            timeout=config.KV_TIMEOUT,
        )

    raise StorageConfigError(f"Unknown STORAGE_BACKEND: {config.STORAGE_BACKEND}")
