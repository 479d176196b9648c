from fastapi import Request

from config import settings
from infra.storage.factory import create_storage
from infra.repositories.track_repository import TrackRepository

def init_storage(app) -> TrackRepository:
    """
    アプリケーション起動時にストレージを選択し、リポジトリを app.state に登録する。
    main.py の lifespan イベントから呼び出されます。
    """
    repository = TrackRepository(create_storage(settings))
    app.state.track_repository = repository
    return repository

def get_track_repository(request: Request) -> TrackRepository:
    return request.app.state.track_repository
