import os
import json
import asyncio
import aiohttp
from aiohttp import web, test_utils
import pytest

from infra.storage import KVTrackStorage
from infra.repositories.track_repository import TrackRepository
from app.services.track_app_service import TrackAppService
from api.schemas.music import MusicCreate
from domain.exceptions import StorageReadError

def _kv(fallback=None) -> KVTrackStorage:
    return KVTrackStorage(
        base_url="https://kv.example.com",
        token="secret",
        key="music-data",
        fallback=fallback,
    )

@pytest.mark.asyncio
async def test_read_parses_json_string_value(mocker, make_record):
    storage = _kv()
    mocker.patch.object(storage, "_get", return_value=json.dumps([make_record("a", "0xAAA")]))

    tracks = await storage.read_all()
    assert [t.id for t in tracks] == ["a"]

@pytest.mark.asyncio
async def test_read_accepts_decoded_list(mocker, make_record):
    storage = _kv()
    mocker.patch.object(storage, "_get", return_value=[make_record("a", "0xAAA")])

    tracks = await storage.read_all()
    assert tracks[0].owner == "0xAAA"

@pytest.mark.asyncio
async def test_read_stored_empty_list_does_not_fall_back(mocker, storage, seed, make_record):
    seed([make_record("local", "0xAAA")])
    kv = _kv(fallback=storage)
    mocker.patch.object(kv, "_get", return_value="[]")

    assert await kv.read_all() == []

@pytest.mark.asyncio
async def test_missing_key_falls_back_to_file(mocker, storage, seed, make_record):
    seed([make_record("local", "0xAAA")])
    kv = _kv(fallback=storage)
    mocker.patch.object(kv, "_get", return_value=None)

    tracks = await kv.read_all()
    assert [t.id for t in tracks] == ["local"]

@pytest.mark.asyncio
async def test_unparseable_value_falls_back_to_file(mocker, storage, seed, make_record):
    seed([make_record("local", "0xAAA")])
    kv = _kv(fallback=storage)
    mocker.patch.object(kv, "_get", return_value="{broken")

    tracks = await kv.read_all()
    assert [t.id for t in tracks] == ["local"]

@pytest.mark.asyncio
@pytest.mark.parametrize("error", [aiohttp.ClientError("unreachable"), asyncio.TimeoutError()])
async def test_request_failure_falls_back_to_file(mocker, storage, seed, make_record, error):
    seed([make_record("local", "0xAAA")])
    kv = _kv(fallback=storage)
    mocker.patch.object(kv, "_get", side_effect=error)

    tracks = await kv.read_all()
    assert [t.id for t in tracks] == ["local"]

@pytest.mark.asyncio
async def test_read_without_fallback_returns_empty(mocker):
    storage = _kv()
    mocker.patch.object(storage, "_get", side_effect=aiohttp.ClientError("unreachable"))

    assert await storage.read_all() == []

@pytest.mark.asyncio
async def test_write_sends_whole_collection(mocker, make_record):
    storage = _kv()
    mock_get = mocker.patch.object(storage, "_get", return_value=json.dumps([make_record("a", "0xAAA")]))
    mock_set = mocker.patch.object(storage, "_set", return_value=None)

    tracks = await storage.read_all()
    await storage.write_all(tracks)

    mock_get.assert_awaited_once()
    sent = json.loads(mock_set.await_args.args[0])
    assert sent == [make_record("a", "0xAAA")]

@pytest.mark.asyncio
async def test_write_does_not_touch_fallback_file(mocker, storage, storage_path):
    kv = _kv(fallback=storage)
    mocker.patch.object(kv, "_set", return_value=None)

    await kv.write_all([])

    assert not os.path.exists(storage_path)

@pytest.mark.asyncio
async def test_write_failure_propagates(mocker):
    storage = _kv()
    mocker.patch.object(storage, "_set", side_effect=aiohttp.ClientError("unreachable"))

    with pytest.raises(aiohttp.ClientError):
        await storage.write_all([])

def test_url_quotes_key():
    storage = KVTrackStorage(base_url="https://kv.example.com/", token="t", key="music data")
    assert storage._url("get") == "https://kv.example.com/get/music%20data"
    assert storage._headers == {"Authorization": "Bearer t"}

# --- Mutations (strict read) ---

@pytest.mark.asyncio
async def test_mutation_aborts_when_remote_read_fails(mocker, storage):
    """リモートの読み込み失敗時にローカルファイルの内容でリモートを上書きしない"""
    kv = _kv(fallback=storage)
    mocker.patch.object(kv, "_get", side_effect=aiohttp.ClientError("timeout"))
    mock_set = mocker.patch.object(kv, "_set", return_value=None)
    service = TrackAppService(TrackRepository(kv))

    with pytest.raises(StorageReadError):
        await service.register_music(MusicCreate(title="T", artist="A", owner="0xAAA", audio_url="QmAudio"))

    mock_set.assert_not_called()

@pytest.mark.asyncio
async def test_mutation_aborts_when_remote_value_is_corrupt(mocker):
    kv = _kv()
    mocker.patch.object(kv, "_get", return_value="{broken")
    mock_set = mocker.patch.object(kv, "_set", return_value=None)

    with pytest.raises(StorageReadError):
        async with TrackRepository(kv).transaction():
            pass

    mock_set.assert_not_called()

@pytest.mark.asyncio
async def test_mutation_seeds_from_file_when_key_absent(mocker, storage, seed, make_record):
    """キーが未作成の場合のみローカルファイルの内容を引き継ぐ"""
    seed([make_record("local", "0xAAA")])
    kv = _kv(fallback=storage)
    mocker.patch.object(kv, "_get", return_value=None)
    mock_set = mocker.patch.object(kv, "_set", return_value=None)
    service = TrackAppService(TrackRepository(kv))

    await service.toggle_hidden("local", "0xAAA")

    sent = json.loads(mock_set.await_args.args[0])
    assert [r["id"] for r in sent] == ["local"]
    assert sent[0]["hidden"] is True

# --- HTTP requests against a local KV server ---

def _kv_app(store: dict, requests: list) -> web.Application:
    async def handle_get(request: web.Request):
        requests.append(("GET", request.match_info["key"], request.headers.get("Authorization"), None))
        return web.json_response({"result": store.get(request.match_info["key"])})

    async def handle_set(request: web.Request):
        body = await request.text()
        requests.append(("POST", request.match_info["key"], request.headers.get("Authorization"), body))
        store[request.match_info["key"]] = body
        return web.json_response({"result": "OK"})

    app = web.Application()
    app.router.add_get("/get/{key}", handle_get)
    app.router.add_post("/set/{key}", handle_set)
    return app

@pytest.mark.asyncio
async def test_http_round_trip_against_kv_server(make_record):
    store = {}
    requests = []
    records = [make_record("a", "0xAAA"), make_record("b", "0xBBB", hidden=True)]

    async with test_utils.TestServer(_kv_app(store, requests)) as server:
        kv = KVTrackStorage(base_url=str(server.make_url("/")), token="secret", key="music-data")

        # キー未作成
        assert await kv.read_all() == []

        store["music-data"] = json.dumps(records)
        tracks = await kv.read_all()
        assert [t.id for t in tracks] == ["a", "b"]

        tracks.pop(0)
        await kv.write_all(tracks)

    assert json.loads(store["music-data"]) == [records[1]]
    assert [r[0] for r in requests] == ["GET", "GET", "POST"]
    assert all(r[1] == "music-data" for r in requests)
    assert all(r[2] == "Bearer secret" for r in requests)

@pytest.mark.asyncio
async def test_http_error_status_falls_back(storage, seed, make_record):
    seed([make_record("local", "0xAAA")])

    async def unauthorized(request: web.Request):
        return web.json_response({"error": "Unauthorized"}, status=401)

    app = web.Application()
    app.router.add_get("/get/{key}", unauthorized)

    async with test_utils.TestServer(app) as server:
        kv = KVTrackStorage(base_url=str(server.make_url("/")), token="wrong", fallback=storage)
        tracks = await kv.read_all()
        with pytest.raises(StorageReadError):
            await kv.read_raw()

    assert [t.id for t in tracks] == ["local"]
