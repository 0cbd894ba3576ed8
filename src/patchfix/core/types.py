"""
資料模型與錯誤分類

所有型別都只存活於單次 replace() 呼叫之內，不保存任何狀態。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple


class PatchfixError(Exception):
    """patchfix 所有例外的基底類別"""


class InvalidRequestError(PatchfixError, ValueError):
    """呼叫端違反契約 (old_text 為空、參數不是合法文字等)"""

    def __init__(self, message: str, *, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class ErrorKind(str, Enum):
    """替換失敗的種類"""

    NO_MATCH_FOUND = "no_match_found"
    INVALID_REQUEST = "invalid_request"


ERROR_MESSAGES = {
    ErrorKind.NO_MATCH_FOUND: "Approximate match for replacement not found",
    ErrorKind.INVALID_REQUEST: "Invalid replacement request",
}


def _check_text(value: Any, field_name: str) -> None:
    if not isinstance(value, str):
        raise InvalidRequestError(
            f"{field_name} must be str, got {type(value).__name__}", field_name=field_name
        )
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidRequestError(
            f"{field_name} is not valid text: {exc.reason}", field_name=field_name
        ) from exc


@dataclass(frozen=True)
class ReplacementRequest:
    """
    一次編輯提議

    old_text 是錨點 (不可為空)，new_text 是替換內容 (空字串代表刪除)。
    """

    old_text: str
    new_text: str

    def validate(self) -> None:
        _check_text(self.old_text, "old_text")
        _check_text(self.new_text, "new_text")
        if not self.old_text:
            raise InvalidRequestError("old_text must not be empty", field_name="old_text")


def validate_content(content: Any) -> None:
    _check_text(content, "content")


@dataclass(frozen=True)
class MatchCandidate:
    """
    候選區間

    start/end 為半開區間 [start, end)，score 為 0.0 ~ 1.0 的相似度。
    """

    start: int
    end: int
    score: float

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span: [{self.start}, {self.end})")
        if not 0.0 <= self.score <= 1.0:
            raise ValueError("Score must be between 0.0 and 1.0")

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class ReplacementOutcome:
    """
    replace() 的結果

    不變量:
    - success 為 False 時 content 與輸入完全相同
    - success 為 True 時 spans 以外的內容與輸入完全相同
    """

    success: bool
    content: str
    error: Optional[ErrorKind] = None
    stage: Optional[str] = None
    replacements: int = 0
    spans: Tuple[Tuple[int, int], ...] = field(default_factory=tuple)
    score: Optional[float] = None
    detail: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        if self.error is None:
            return None
        base = ERROR_MESSAGES[self.error]
        return f"{base}: {self.detail}" if self.detail else base

    @classmethod
    def failure(
        cls,
        content: str,
        error: ErrorKind,
        *,
        detail: Optional[str] = None,
        score: Optional[float] = None,
    ) -> "ReplacementOutcome":
        return cls(success=False, content=content, error=error, detail=detail, score=score)
