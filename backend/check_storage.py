import asyncio

from config import settings
from infra.storage import create_storage

# 現在の設定でどのストレージが使われ、何件読めるかを確認する

async def main():
    storage = create_storage(settings)
    print(f"Storage backend: {storage.name}")

    tracks = await storage.read_all()
    print(f"Tracks: {len(tracks)}")
    for track in tracks:
        flags = " [hidden]" if track.is_hidden else ""
        print(f"  - {track.id}: \"{track.title}\" by {track.artist} (owner: {track.owner}, comments: {len(track.comments)}){flags}")

if __name__ == "__main__":
    asyncio.run(main())
