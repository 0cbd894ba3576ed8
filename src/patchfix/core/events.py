"""
事件模型（Event Model）

引擎預設不輸出到 stdout。
若需要知道「這次替換了哪些區間、為什麼失敗」，請使用事件回呼（event handler）。

設計原則：
- Production favors availability：允許降級，但不允許「默默」降級。
- Evaluation favors detectability：評估/CI 模式下遇到錯誤應直接 fail。
"""

from __future__ import annotations

from typing import Callable, Literal, TypedDict


class ReplacementEvent(TypedDict, total=False):
    type: Literal["replacement", "no_match", "rejected", "fuzzy_error", "degraded"]
    trace_id: str

    # replacement
    stage: Literal["exact", "fuzzy", "validate"]
    start: int
    end: int
    original: str
    replacement: str
    score: float
    count: int

    # rejected / no_match
    reason: Literal["pattern_too_short", "empty_after_normalize", "below_threshold", "no_window", "invalid_request"]
    pattern_length: int

    # pipeline / diagnostics
    fallback: Literal["no_match", "none"]
    degrade_reason: str
    exception_type: str
    exception_message: str


ReplacementEventHandler = Callable[[ReplacementEvent], None]
