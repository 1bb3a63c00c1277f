# -*- coding: utf-8 -*-
"""
Error taxonomy shared by the pipeline, the HTTP clients and the API layer.

`detail` is the user-facing message, `error` the diagnostic text.
"""
from typing import Any, Dict, Optional


class AiteruError(Exception):
    status_code = 500

    def __init__(self, detail: str, error: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.error = error

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.detail}
        if self.error:
            payload["error"] = self.error
        return payload


class InputError(AiteruError):
    """必須入力の欠落 (再試行しない)."""
    status_code = 400


class CoordinatesNotFound(AiteruError):
    status_code = 404


class UpstreamError(AiteruError):
    """外部サービスの障害または設定不備."""
    status_code = 500


class EventPayloadError(AiteruError):
    """イベント情報の応答が空、または構造化データとして全く解釈できない."""
    status_code = 500

    def __init__(self, detail: str, response_text: str = "", error: Optional[str] = None):
        super().__init__(detail, error)
        self.response_text = response_text

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["response_text"] = self.response_text
        return payload
