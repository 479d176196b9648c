import os
import pytest
import sys
import json
from typing import Generator, Callable, List, Dict, Any

# 1. パス解決: backendディレクトリをsys.pathに追加
CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.dirname(CURRENT_DIR)
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from config import settings, BACKEND_FILE
from infra.storage.file_storage import FileTrackStorage
from infra.repositories.track_repository import TrackRepository

@pytest.fixture(name="storage_path")
def storage_path_fixture(tmp_path) -> str:
    return str(tmp_path / "music-storage.json")

@pytest.fixture(autouse=True)
def isolate_storage_settings(mocker, storage_path):
    """
    テストごとに独立したローカルファイルを使用し、リモートKVへは接続しない。
    """
    mocker.patch.object(settings, "STORAGE_BACKEND", BACKEND_FILE)
    mocker.patch.object(settings, "STORAGE_FILE", storage_path)

@pytest.fixture(name="storage")
def storage_fixture(storage_path) -> FileTrackStorage:
    return FileTrackStorage(storage_path)

@pytest.fixture(name="repository")
def repository_fixture(storage) -> TrackRepository:
    return TrackRepository(storage)

@pytest.fixture(name="seed")
def seed_fixture(storage_path) -> Callable[[List[Dict[str, Any]]], None]:
    """JSONレコードをそのままストレージファイルに書き込む"""
    def _seed(records: List[Dict[str, Any]]):
        with open(storage_path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
    return _seed

@pytest.fixture(name="stored")
def stored_fixture(storage_path) -> Callable[[], List[Dict[str, Any]]]:
    """ストレージファイルの現在の内容を読む"""
    def _stored():
        with open(storage_path, "r", encoding="utf-8") as f:
            return json.load(f)
    return _stored

@pytest.fixture(name="client")
def client_fixture(repository: TrackRepository) -> Generator:
    """FastAPIのTestClientを提供し、リポジトリをDIで差し替える"""
    from fastapi.testclient import TestClient
    from main import app
    from infra.storage.connection import get_track_repository

    def get_repository_override():
        return repository

    app.dependency_overrides[get_track_repository] = get_repository_override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()

def make_record(id: str, owner: str, **fields) -> Dict[str, Any]:
    record = {
        "id": id,
        "title": f"Title {id}",
        "artist": "Artist",
        "description": "",
        "price": "0.01",
        "audioUrl": f"Qm{id}audio",
        "imageUrl": f"Qm{id}image",
        "owner": owner,
        "metadataUrl": f"Qm{id}meta",
        "createdAt": "2024-01-01T00:00:00.000Z",
    }
    record.update(fields)
    return record

@pytest.fixture(name="make_record")
def make_record_fixture() -> Callable[..., Dict[str, Any]]:
    return make_record
