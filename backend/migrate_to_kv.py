import asyncio
import os
import sys

from config import settings
from infra.storage import FileTrackStorage, KVTrackStorage

# ローカルの music-storage.json の内容をリモートKVストアへ移行する
# 移行後もローカルファイルはバックアップとして残す

async def migrate():
    print("--- MusicNFT Storage Migration Tool ---")
    print(f"Source (local file): {settings.STORAGE_FILE}")
    print(f"Target (KV store):   {settings.KV_REST_API_URL} (key: {settings.KV_STORE_KEY})")

    if not settings.kv_configured:
        print("[Error] KV_REST_API_URL and KV_REST_API_TOKEN must be set.")
        sys.exit(1)

    if not os.path.exists(settings.STORAGE_FILE):
        print(f"[Error] '{settings.STORAGE_FILE}' not found. Nothing to migrate.")
        sys.exit(1)

    local = FileTrackStorage(settings.STORAGE_FILE)
    tracks = await local.read_all()
    print(f"Found {len(tracks)} tracks in local file")
    if not tracks:
        print("No data to migrate.")
        return

    for i, track in enumerate(tracks, start=1):
        print(f"  {i}. \"{track.title}\" by {track.artist}")

    # 検証時にローカルファイルへフォールバックしないよう fallback なしで生成
    remote = KVTrackStorage(
        base_url=settings.KV_REST_API_URL,
        token=settings.KV_REST_API_TOKEN,
        key=settings.KV_STORE_KEY,
        timeout=settings.KV_TIMEOUT,
    )

    try:
        print("Uploading to KV store...")
        await remote.write_all(tracks)
    except Exception as e:
        print(f"[Error] Migration failed: {e}")
        sys.exit(1)

    print("Verifying upload...")
    verified = await remote.read_all()
    if len(verified) == len(tracks):
        print(f"Migration successful! Verified {len(verified)} tracks in KV store.")
        print("Your local music-storage.json is still there for backup.")
    else:
        print(f"[Warning] Track count mismatch: local={len(tracks)}, remote={len(verified)}")
        sys.exit(1)

if __name__ == "__main__":
    asyncio.run(migrate())
