import json
import re
from dataclasses import dataclass
from typing import Any, Optional

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


@dataclass(frozen=True)
class DecodeResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None


def strip_code_fence(raw: str) -> str:
    """```json ... ``` 형태의 코드 블록을 벗겨 본문만 반환"""
    text = (raw or "").strip()
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def decode_json(raw: str) -> DecodeResult:
    """
    모델 응답을 JSON으로 해석. 예외 대신 결과 객체를 반환한다.
    """
    text = strip_code_fence(raw)
    if not text:
        return DecodeResult(ok=False, error="empty response")
    try:
        return DecodeResult(ok=True, value=json.loads(text))
    except json.JSONDecodeError as e:
        return DecodeResult(ok=False, error=f"invalid JSON: {e.msg} at position {e.pos}")
