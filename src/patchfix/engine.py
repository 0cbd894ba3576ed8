"""
替換引擎 (ReplacementEngine)

負責串接精確比對與模糊比對，並保證：
- 失敗時內容完全不變
- 成功時只有命中區間被替換
- 相同輸入永遠得到相同輸出

使用方式:
    from patchfix import ReplacementEngine

    engine = ReplacementEngine()
    outcome = engine.replace(content, old_text, new_text)
    if outcome.success:
        content = outcome.content
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from patchfix.config import DEFAULT_CONFIG, ReplacerConfig
from patchfix.core.events import ReplacementEvent, ReplacementEventHandler
from patchfix.core.types import (
    ErrorKind,
    InvalidRequestError,
    ReplacementOutcome,
    ReplacementRequest,
    validate_content,
)
from patchfix.matching.exact import ExactMatcher
from patchfix.matching.fuzzy import FuzzyWindowMatcher
from patchfix.utils.logger import TimingContext, get_logger, setup_logger


class ReplacementEngine:
    """
    替換引擎

    職責:
    - 驗證請求 (old_text 不可為空、參數必須是合法文字)
    - 先精確比對 (全部替換)，找不到才模糊比對 (只替換一處)
    - 組裝 ReplacementOutcome，失敗時回傳原內容
    - 透過事件回呼回報替換/拒絕/降級

    生命週期:
    - Engine 不持有任何與文件相關的狀態，可在多執行緒間共用
    """

    _engine_name: str = "replacement"

    def __init__(
        self,
        config: Optional[ReplacerConfig] = None,
        *,
        verbose: bool = False,
        on_timing: Optional[Callable[[str, float], None]] = None,
        on_event: Optional[ReplacementEventHandler] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self._init_logger(verbose=verbose or self.config.verbose, on_timing=on_timing or self.config.on_timing)
        self._on_event = on_event
        self.exact_matcher = ExactMatcher()
        self.fuzzy_matcher = FuzzyWindowMatcher(self.config)

    def _init_logger(
        self,
        verbose: bool = False,
        on_timing: Optional[Callable[[str, float], None]] = None,
    ) -> None:
        self._verbose = verbose
        self._timing_callback = on_timing

        if verbose:
            setup_logger(level=logging.DEBUG)

        self._logger = get_logger(f"engine.{self._engine_name}")

    def _log_timing(self, operation: str) -> TimingContext:
        return TimingContext(
            operation=operation,
            logger=self._logger,
            level=logging.DEBUG,
            callback=self._timing_callback,
        )

    def _emit(self, event: ReplacementEvent, *, silent: bool) -> None:
        try:
            if self._on_event is not None:
                self._on_event(event)
        except Exception:
            if not silent:
                self._logger.exception("on_event 回呼執行失敗")

    def replace(
        self,
        content: str,
        old_text: str,
        new_text: str,
        *,
        silent: bool = False,
        mode: Optional[str] = None,
        fail_policy: str = "degrade",
        trace_id: Optional[str] = None,
    ) -> ReplacementOutcome:
        """
        執行替換

        Args:
            content: 文件目前的內容
            old_text: 要被取代的錨點文字 (不可為空)
            new_text: 替換內容 (空字串代表刪除)
            silent: 是否靜默模式 (不輸出替換日誌)
            mode: "evaluation" 強制 fail_policy="raise"；"production" 強制 "degrade"
            fail_policy: "degrade" 以失敗結果回報錯誤；"raise" 直接拋出例外
            trace_id: 附帶在事件上的追蹤 ID (不影響結果)

        Returns:
            ReplacementOutcome
        """
        if mode == "evaluation":
            fail_policy = "raise"
        elif mode == "production":
            fail_policy = "degrade"
        if fail_policy not in ("degrade", "raise"):
            raise ValueError(f"Unknown fail_policy: {fail_policy!r}")

        with self._log_timing("ReplacementEngine.replace"):
            try:
                validate_content(content)
                ReplacementRequest(old_text=old_text, new_text=new_text).validate()
            except InvalidRequestError as exc:
                self._emit(
                    {
                        "type": "rejected",
                        "trace_id": trace_id,
                        "stage": "validate",
                        "reason": "invalid_request",
                        "exception_message": str(exc),
                    },
                    silent=silent,
                )
                if fail_policy == "raise" or not isinstance(content, str):
                    raise
                return ReplacementOutcome.failure(content, ErrorKind.INVALID_REQUEST, detail=str(exc))

            outcome = self._try_exact(content, old_text, new_text, silent=silent, trace_id=trace_id)
            if outcome is not None:
                return outcome

            return self._try_fuzzy(
                content, old_text, new_text, silent=silent, fail_policy=fail_policy, trace_id=trace_id
            )

    def _try_exact(
        self, content: str, old_text: str, new_text: str, *, silent: bool, trace_id: Optional[str]
    ) -> Optional[ReplacementOutcome]:
        matches = self.exact_matcher.find(content, old_text)
        if not matches:
            self._logger.debug("Exact match declined, falling back to fuzzy")
            return None

        updated = self.exact_matcher.apply(content, matches, new_text)
        self._emit(
            {
                "type": "replacement",
                "trace_id": trace_id,
                "stage": "exact",
                "start": matches[0].start,
                "end": matches[-1].end,
                "original": old_text,
                "replacement": new_text,
                "score": 1.0,
                "count": len(matches),
            },
            silent=silent,
        )
        self._logger.debug(f"  [Exact] {len(matches)} occurrence(s) replaced")
        return ReplacementOutcome(
            success=True,
            content=updated,
            stage=self.exact_matcher.name,
            replacements=len(matches),
            spans=tuple((m.start, m.end) for m in matches),
            score=1.0,
        )

    def _try_fuzzy(
        self,
        content: str,
        old_text: str,
        new_text: str,
        *,
        silent: bool,
        fail_policy: str,
        trace_id: Optional[str],
    ) -> ReplacementOutcome:
        """
        模糊比對階段 (精確比對找不到時才會進來)

        找不到時回傳 NO_MATCH_FOUND；若是分數不足，score 帶上最接近的候選分數
        (距離過大的候選只精算到門檻附近，此時 score 為下界)。
        """
        try:
            result = self.fuzzy_matcher.search(content, old_text)
        except Exception as exc:
            self._emit(
                {
                    "type": "fuzzy_error",
                    "trace_id": trace_id,
                    "stage": "fuzzy",
                    "fallback": "none" if fail_policy == "raise" else "no_match",
                    "exception_type": type(exc).__name__,
                    "exception_message": str(exc),
                },
                silent=silent,
            )
            if fail_policy == "raise":
                raise
            self._emit(
                {
                    "type": "degraded",
                    "trace_id": trace_id,
                    "stage": "fuzzy",
                    "fallback": "no_match",
                    "degrade_reason": "fuzzy_error",
                },
                silent=silent,
            )
            if not silent:
                self._logger.exception("模糊比對失敗，回報為 no match")
            return ReplacementOutcome.failure(content, ErrorKind.NO_MATCH_FOUND)

        if result.candidate is None:
            event_type = "rejected" if result.reason in ("pattern_too_short", "empty_after_normalize") else "no_match"
            self._emit(
                {
                    "type": event_type,
                    "trace_id": trace_id,
                    "stage": "fuzzy",
                    "reason": result.reason,
                    "pattern_length": len(old_text),
                    "score": result.best_score,
                },
                silent=silent,
            )
            self._logger.debug(f"No match for pattern (len={len(old_text)}, reason={result.reason})")
            return ReplacementOutcome.failure(
                content,
                ErrorKind.NO_MATCH_FOUND,
                score=result.best_score if result.reason == "below_threshold" else None,
            )

        cand = result.candidate
        original = content[cand.start:cand.end]
        updated = self.fuzzy_matcher.apply(content, [cand], new_text)
        self._emit(
            {
                "type": "replacement",
                "trace_id": trace_id,
                "stage": "fuzzy",
                "start": cand.start,
                "end": cand.end,
                "original": original,
                "replacement": new_text,
                "score": cand.score,
                "count": 1,
            },
            silent=silent,
        )
        if not silent:
            self._logger.info(
                f"[模糊替換] span=[{cand.start}, {cand.end}) len={cand.length} -> {len(new_text)} "
                f"(Score: {cand.score:.3f})"
            )
        return ReplacementOutcome(
            success=True,
            content=updated,
            stage=self.fuzzy_matcher.name,
            replacements=1,
            spans=((cand.start, cand.end),),
            score=cand.score,
        )

_default_engine: Optional[ReplacementEngine] = None


def get_default_engine() -> ReplacementEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = ReplacementEngine()
    return _default_engine


def replace(content: str, old_text: str, new_text: str) -> ReplacementOutcome:
    """以預設引擎執行替換 (見 ReplacementEngine.replace)"""
    return get_default_engine().replace(content, old_text, new_text)
