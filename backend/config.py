import os
from pydantic_settings import BaseSettings
from pydantic import Field
import platformdirs

APP_NAME = "MusicNFT"
APP_AUTHOR = "MusicNFTDev"

BACKEND_AUTO = "auto"
BACKEND_KV = "kv"
BACKEND_FILE = "file"

class Settings(BaseSettings):
    # App Info
    APP_NAME: str = APP_NAME
    APP_AUTHOR: str = APP_AUTHOR
    ENV: str = "prod"

    # Paths
    # ログ等の保存先は platformdirs を使用する。楽曲データのファイルはカレントディレクトリ基準
    USER_DATA_DIR: str = Field(default_factory=lambda: platformdirs.user_data_dir(APP_NAME, APP_AUTHOR))
    STORAGE_FILE: str = Field(default_factory=lambda: os.path.join(os.getcwd(), "music-storage.json"))

    # Storage
    # auto: KV の認証情報があれば KV、なければローカルファイル
    STORAGE_BACKEND: str = BACKEND_AUTO
    KV_REST_API_URL: str | None = None
    KV_REST_API_TOKEN: str | None = None
    KV_STORE_KEY: str = "music-data"
    KV_TIMEOUT: float = 10.0

    # Network
    API_PORT: int = 3001
    FRONTEND_PORT: int = 3000

    # Logging
    LOG_DIR: str | None = None
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    def model_post_init(self, __context):
        # ログディレクトリ
        if not self.LOG_DIR:
            self.LOG_DIR = os.path.join(self.USER_DATA_DIR, "logs")

    @property
    def kv_configured(self) -> bool:
        return bool(self.KV_REST_API_URL and self.KV_REST_API_TOKEN)

    def resolve_storage_backend(self) -> str:
        """STORAGE_BACKEND=auto を実際のバックエンド名に解決する"""
        backend = self.STORAGE_BACKEND.lower()
        if backend == BACKEND_AUTO:
            return BACKEND_KV if self.kv_configured else BACKEND_FILE
        return backend

    def setup_environment(self):
        """ロガーが参照する環境変数を設定する"""
        if self.LOG_DIR:
            os.environ["MUSICNFT_LOG_DIR"] = self.LOG_DIR
        os.environ["LOG_LEVEL"] = self.LOG_LEVEL

settings = Settings()
