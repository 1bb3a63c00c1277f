"""
aiteru (今空いてる君) API 起動スクリプト
実行: python run.py
接続: http://localhost:8000/docs
"""
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

REQUIRED_KEYS = {
    "GEMINI_API_KEY": "イベント情報の取得",
    "YAHOO_CLIENT_ID": "周辺会場の検索",
    "ODPT_CONSUMER_KEY": "路線・駅一覧と乗降客数データ",
}


def check_environment():
    """APIキーの設定を確認 (未設定でも起動はする)"""
    missing = [f"{key} ({purpose})" for key, purpose in REQUIRED_KEYS.items() if not os.getenv(key)]
    if missing:
        print("[WARN]  以下の環境変数が設定されていません:")
        for item in missing:
            print(f"  - {item}")
        print("該当するエンドポイントは 500 を返します。")
        print()

    survey_csv = Path(os.getenv("SURVEY_CSV", "data/passenger_survey.csv"))
    if not os.getenv("ODPT_CONSUMER_KEY") and not survey_csv.exists():
        print(f"[WARN]  乗降客数データがありません ({survey_csv})")
        print("全駅で既定値 (25,000人/日) を使用します。")
        print()


def main():
    print("=" * 60)
    print("aiteru - 駅周辺イベント混雑予測")
    print("=" * 60)
    print()

    load_dotenv()
    check_environment()

    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "True").lower() == "true"

    print(f"[*] サーバー: http://{host}:{port}")
    print(f"[*] プロジェクトディレクトリ: {Path.cwd()}")
    print(f"[*] 自動リロード: {'有効' if reload else '無効'}")
    print()
    print("停止するには Ctrl+C を押してください。")
    print("=" * 60)
    print()

    try:
        uvicorn.run(
            "api.app:app",
            host=host,
            port=port,
            reload=reload,
            reload_dirs=["api", "aiteru"],
            log_level=os.getenv("LOG_LEVEL", "info").lower(),
        )
    except KeyboardInterrupt:
        print("\n\n[*] サーバーを終了します。")
    except Exception as e:
        print(f"\n[ERROR] サーバー実行中にエラーが発生しました: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
