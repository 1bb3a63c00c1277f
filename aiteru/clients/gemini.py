# -*- coding: utf-8 -*-
"""
Gemini generateContent (Google 検索ツール付き) によるイベント情報の取得.

The model only supplies facts: event names, estimated attendance and the
before-doors / after-show hour windows. Scaling is done locally by
aiteru.scorer, so the prompt does not ask for a congestion score.
"""
import json
import logging
import os
from typing import List

from aiteru.clients import transport
from aiteru.errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"

GENERATION_CONFIG = {
    "temperature": 0.1,
    "topP": 0.95,
    "topK": 64,
    "maxOutputTokens": 8192,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

PROMPT_TEMPLATE = """あなたは、特定の日付と場所で開催されるイベント情報を調査するAIアシスタントです。
提供されているGoogle検索ツールを使い、以下の入力情報に基づいて正確なイベント情報を出力してください。

### 入力情報
- **対象駅**: {station_name}
- **対象日付**: {target_date}
- **周辺施設リスト**: {facility_list}

### 実行タスク
1. 指定された日付に、各周辺施設で開催されるイベントを特定します。1つの施設で複数のイベントが見つかった場合は、それぞれを個別のイベントとして報告してください。
2. イベントごとに開始時刻・終了時刻と予想来場者数（人数の整数）を調べ、分からない場合は会場の収容人数などから推測してください。
3. イベントごとに混雑のピーク時間帯を算出します。開始時刻の1〜2時間前を「開場前」、終了時刻の0〜1時間後を「終演後」として、それぞれ開始時間と終了時間を24時間表記の整数で出力してください。
4. 結果を以下のJSONフォーマットのみで出力してください。Markdownのコードブロックは不要です。

### 出力フォーマット
[
  {{
    "facility_name": "施設名",
    "events": [
      {{
        "event_name": "イベント名",
        "estimated_attendance": 5000,
        "congestion_predictions": [
          {{"start_hour": 17, "end_hour": 18, "label": "開場前"}},
          {{"start_hour": 21, "end_hour": 22, "label": "終演後"}}
        ]
      }}
    ]
  }}
]
- 1つの施設で複数のイベントがある場合は、events 配列に複数のオブジェクトを含めてください。
- イベントが見つからなかった施設については、events 配列を空（[]）にしてください。
"""


def build_prompt(station_name: str, target_date: str, facility_list: List[str]) -> str:
    return PROMPT_TEMPLATE.format(
        station_name=station_name,
        target_date=target_date,
        facility_list=json.dumps(list(facility_list), ensure_ascii=False),
    )


class GeminiEventFactsClient:
    _API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def __init__(self, api_key=None, model=DEFAULT_MODEL, timeout_seconds=90):
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        self.model = model
        self.timeout_seconds = timeout_seconds

    def fetch(self, station_name: str, target_date: str, facility_list: List[str]) -> str:
        """モデルの応答テキストをそのまま返す (構造の修復は normalizer の役割)."""
        if not self.api_key:
            logger.error("GEMINI_API_KEY is not configured.")
            raise UpstreamError("サーバー側でAPIキーが設定されていません。")

        body = {
            "contents": [
                {"role": "user", "parts": [{"text": build_prompt(station_name, target_date, facility_list)}]}
            ],
            "tools": [{"google_search": {}}],
            "generationConfig": GENERATION_CONFIG,
            "safetySettings": SAFETY_SETTINGS,
        }
        try:
            data = transport.fetch_json(
                self._API_URL.format(model=self.model),
                headers={"x-goog-api-key": self.api_key},
                body=body,
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            logger.error("Gemini API Error: %s", e)
            raise UpstreamError("Gemini APIとの通信中にエラーが発生しました。", error=str(e))

        return extract_text(data)


def extract_text(data) -> str:
    candidates = (data or {}).get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))
