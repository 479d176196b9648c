import os
import uvicorn

if __name__ == "__main__":
    # 設定の読み込みと環境変数のセットアップ
    # ロガーがログディレクトリを参照するため、アプリのインポートより先に行う
    from config import settings
    settings.setup_environment()

    os.makedirs(settings.USER_DATA_DIR, exist_ok=True)

    from main import app

    port = int(os.environ.get("API_PORT", settings.API_PORT))

    print(f"Starting MusicNFT Backend Server on port {port}...")
    print(f"Storage backend: {settings.resolve_storage_backend()}")
    uvicorn.run(app, host="127.0.0.1", port=port, reload=False, workers=1)
