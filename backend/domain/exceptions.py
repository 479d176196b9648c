class MusicStoreError(Exception):
    """楽曲データ操作に関するエラーの基底クラス"""
    status_code = 500

class MissingFieldError(MusicStoreError):
    status_code = 400

class TrackNotFoundError(MusicStoreError):
    status_code = 404

    def __init__(self, message: str = "Music not found"):
        super().__init__(message)

class OwnershipError(MusicStoreError):
    status_code = 403

class StorageConfigError(MusicStoreError):
    """ストレージ設定が不正 (起動時に検出)"""

class StorageReadError(MusicStoreError):
    """保存データを読み込めない (通信失敗・JSON破損)。更新処理はここで中断する"""

    def __init__(self, message: str = "Failed to read music storage"):
        super().__init__(message)
