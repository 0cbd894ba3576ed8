"""
模糊視窗比對器

實作基於滑動視窗 (Sliding Window) 與編輯距離的近似定位。
只有在精確比對完全找不到時才會被呼叫，且只會挑出「一個」最佳區間。

流程:
1. 長度守門：old_text 太短時直接放棄 (避免短字串誤配)
2. 正規化：連續空白壓成單一空格，保留位置對照
3. 粗掃：每個起點一個 pattern 長度的視窗 (大文件改用 anchor + 等距取樣)
4. 精修：對最佳幾個種子做起點/長度的座標搜尋
5. 門檻與挑選：分數最高者勝出，同分取最小 start、再取長度最接近 pattern 者
6. 回推原文區間，並依 old_text 頭尾空白補上相鄰的換行/縮排

使用方式:
    from patchfix.matching import FuzzyWindowMatcher

    matcher = FuzzyWindowMatcher()
    result = matcher.search(content, old_text)
    if result.candidate:
        updated = matcher.apply(content, [result.candidate], new_text)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import Levenshtein

from patchfix.config import DEFAULT_CONFIG, ReplacerConfig
from patchfix.core.matcher_interface import BaseMatcher
from patchfix.core.types import MatchCandidate
from patchfix.utils.aho_corasick import AhoCorasick
from patchfix.utils.logger import get_logger, log_timing

from .normalize import collapse_whitespace, leading_whitespace, normalize_with_map, trailing_whitespace

# 太短的 anchor chunk 容易在文件中到處命中，不具定位意義
MIN_ANCHOR_CHUNK_LEN = 10

# 精修時每一輪在單一座標上最多取樣的點數
REFINE_SAMPLES = 32

_NEWLINES = "\r\n"


def _is_indent(ch: str) -> bool:
    return ch.isspace() and ch not in _NEWLINES


@dataclass(frozen=True)
class FuzzySearchResult:
    """
    模糊搜尋結果

    candidate 為原文座標的最佳區間；找不到時為 None，並以 reason 說明原因。
    """

    candidate: Optional[MatchCandidate]
    reason: Optional[str] = None
    best_score: float = 0.0
    windows_scored: int = 0


class _WindowScorer:
    """
    單次搜尋內的視窗評分器，同一個區間只計算一次

    max_distance 以上的編輯距離不再精算，分數只是下界 (一定低於門檻)。
    """

    def __init__(self, text: str, pattern: str, similarity, max_distance: Optional[int] = None) -> None:
        self.text = text
        self.pattern = pattern
        self.max_distance = max_distance
        self._similarity = similarity
        self._seen: Dict[Tuple[int, int], float] = {}

    @property
    def calls(self) -> int:
        return len(self._seen)

    def is_valid(self, start: int, end: int) -> bool:
        # 視窗頭尾不可落在壓縮後的空格上 (pattern 已去除頭尾空白)
        return 0 <= start < end <= len(self.text) and self.text[start] != " " and self.text[end - 1] != " "

    def score(self, start: int, end: int) -> float:
        key = (start, end)
        cached = self._seen.get(key)
        if cached is None:
            cached = self._similarity(self.text[start:end], self.pattern, self.max_distance)
            self._seen[key] = cached
        return cached


def _selection_key(window: Tuple[float, int, int], pattern_len: int) -> Tuple[float, int, int, int]:
    score, start, end = window
    return (-score, start, abs((end - start) - pattern_len), end)


def _better(
    a: Optional[Tuple[float, int, int]], b: Optional[Tuple[float, int, int]], pattern_len: int
) -> Optional[Tuple[float, int, int]]:
    """
    回傳 (score, start, end) 中較佳者

    分數高優先；同分取較小的 start；再取長度最接近 pattern 者，最後取較小的 end。
    """
    if a is None:
        return b
    if b is None:
        return a
    return a if _selection_key(a, pattern_len) <= _selection_key(b, pattern_len) else b


class FuzzyWindowMatcher(BaseMatcher):
    """
    模糊視窗比對器

    功能:
    - 容忍空白、縮排、換行符號 (CRLF/LF) 的差異
    - 容忍少量文字差異 (例如 LLM 改寫了註解)
    - 大文件時以 Aho-Corasick 找 anchor，限制評分的視窗數量

    建立方式:
        FuzzyWindowMatcher(config=ReplacerConfig(...))
    """

    name = "fuzzy"

    def __init__(self, config: Optional[ReplacerConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self._logger = get_logger("matcher.fuzzy")

    @staticmethod
    def similarity(window: str, pattern: str, max_distance: Optional[int] = None) -> float:
        """
        計算相似度

        1 - (Levenshtein 距離 / 最大長度)，1.0 表示完全相同。

        指定 max_distance 時，距離超過它就提早結束 (Levenshtein 回傳 max_distance + 1)，
        此時的分數只是下界。
        """
        max_len = max(len(window), len(pattern))
        if max_len == 0:
            return 1.0
        if max_distance is None:
            distance = Levenshtein.distance(window, pattern)
        else:
            distance = Levenshtein.distance(window, pattern, score_cutoff=max_distance)
        return max(0.0, 1.0 - distance / max_len)

    def check_pattern(self, pattern: str) -> Optional[str]:
        """長度守門：回傳拒絕原因，可進行模糊比對時回傳 None"""
        if len(pattern) < self.config.minimum_fuzzy_pattern_length:
            return "pattern_too_short"
        if not collapse_whitespace(pattern):
            return "empty_after_normalize"
        return None

    def find(self, content: str, pattern: str) -> List[MatchCandidate]:
        result = self.search(content, pattern)
        return [result.candidate] if result.candidate is not None else []

    @log_timing("FuzzyWindowMatcher.search")
    def search(self, content: str, pattern: str) -> FuzzySearchResult:
        """搜尋單一最佳區間"""
        reason = self.check_pattern(pattern)
        if reason is not None:
            self._logger.debug(f"Fuzzy search skipped: {reason} (len={len(pattern)})")
            return FuzzySearchResult(candidate=None, reason=reason)

        norm_pattern = collapse_whitespace(pattern)
        doc = normalize_with_map(content)
        pattern_len = len(norm_pattern)
        tolerance = self.config.tolerance_for(pattern_len)
        n = len(doc.text)

        if n < max(1, pattern_len - tolerance):
            return FuzzySearchResult(candidate=None, reason="no_window")

        # 快速路徑：正規化後完全相同 (只差空白/換行)
        idx = doc.text.find(norm_pattern)
        if idx != -1:
            best = (1.0, idx, idx + pattern_len)
            windows_scored = 1
        else:
            # 門檻內的視窗距離一定不超過這個值，超過的只需要知道「不及格」
            max_distance = (
                math.ceil((1.0 - self.config.similarity_threshold) * (pattern_len + tolerance)) + 2 * tolerance
            )
            scorer = _WindowScorer(doc.text, norm_pattern, self.similarity, max_distance)
            best = self._best_window(scorer, pattern_len, tolerance)
            windows_scored = scorer.calls

        if best is None:
            return FuzzySearchResult(candidate=None, reason="no_window", windows_scored=windows_scored)

        score, start, end = best
        if score < self.config.similarity_threshold:
            self._logger.debug(
                f"Best fuzzy window below threshold: score={score:.3f} "
                f"< {self.config.similarity_threshold:.3f} (windows={windows_scored})"
            )
            return FuzzySearchResult(
                candidate=None, reason="below_threshold", best_score=score, windows_scored=windows_scored
            )

        src_start, src_end = doc.to_source_span(start, end)
        src_start, src_end = self._extend_edges(content, pattern, src_start, src_end)

        self._logger.debug(
            f"  [Fuzzy] span=[{src_start}, {src_end}) score={score:.3f} windows={windows_scored}"
        )
        return FuzzySearchResult(
            candidate=MatchCandidate(start=src_start, end=src_end, score=score),
            best_score=score,
            windows_scored=windows_scored,
        )

    def _best_window(
        self, scorer: _WindowScorer, pattern_len: int, tolerance: int
    ) -> Optional[Tuple[float, int, int]]:
        n = len(scorer.text)
        coarse_len = min(pattern_len, n)
        last_start = n - coarse_len

        coarse: List[Tuple[float, int]] = []
        for start in self._coarse_starts(scorer.text, scorer.pattern, last_start):
            coarse.append((scorer.score(start, start + coarse_len), start))
        coarse.sort(key=lambda item: (-item[0], item[1]))

        seeds: List[int] = []
        for _score, start in coarse:
            if all(abs(start - seed) > tolerance for seed in seeds):
                seeds.append(start)
                if len(seeds) >= self.config.refine_candidates:
                    break

        best = None
        for seed in seeds:
            best = _better(best, self._refine(scorer, seed, coarse_len, pattern_len, tolerance), pattern_len)
        return best

    def _coarse_starts(self, text: str, pattern: str, last_start: int) -> List[int]:
        """
        粗掃起點

        起點數量不超過視窗上限時逐一掃描；否則使用 anchor 起點加上等距取樣。
        視窗上限見 ReplacerConfig.window_budget (pattern 越長，視窗越少)。
        """
        total = last_start + 1
        max_windows = self.config.window_budget(len(pattern))
        if total <= max_windows:
            return list(range(total))

        anchors = self._anchor_starts(text, pattern, last_start)[: max_windows // 2]
        budget = max(1, max_windows - len(anchors))
        stride = math.ceil(total / budget)
        starts = set(anchors)
        starts.update(range(0, total, stride))

        self._logger.debug(
            f"Window cap hit: {total} starts -> {len(anchors)} anchors + stride {stride}"
        )
        return sorted(starts)

    def _anchor_starts(self, text: str, pattern: str, last_start: int) -> List[int]:
        chunk_size = self.config.anchor_chunk_size
        step = max(1, chunk_size // 2)

        matcher: AhoCorasick[int] = AhoCorasick()
        added = 0
        for offset in range(0, len(pattern), step):
            if added >= self.config.max_anchor_chunks:
                break
            chunk = pattern[offset:offset + chunk_size]
            if len(chunk) < MIN_ANCHOR_CHUNK_LEN:
                continue
            matcher.add(chunk, offset)
            added += 1

        if not added:
            return []

        starts = set()
        for pos, _chunk, offset in matcher.find_limited(text, self.config.max_anchor_occurrences):
            starts.add(min(max(0, pos - offset), last_start))
        return sorted(starts)

    def _refine(
        self,
        scorer: _WindowScorer,
        seed: int,
        coarse_len: int,
        pattern_len: int,
        tolerance: int,
    ) -> Optional[Tuple[float, int, int]]:
        """
        座標搜尋

        1. 固定長度，在 seed ± tolerance 內找最佳起點
        2. 固定起點，在 pattern_len ± tolerance 內找最佳長度
        3. 固定終點，再找一次最佳起點
        """
        n = len(scorer.text)
        min_len = max(1, pattern_len - tolerance)
        max_len = pattern_len + tolerance

        best = self._scan_axis(
            scorer,
            max(0, seed - tolerance),
            min(n - 1, seed + tolerance),
            lambda s: (s, min(n, s + coarse_len)),
            1,
            pattern_len,
        )
        if best is None:
            return None

        fixed_start = best[1]
        best = _better(
            best,
            self._scan_axis(
                scorer,
                fixed_start + min_len,
                min(n, fixed_start + max_len),
                lambda e: (fixed_start, e),
                2,
                pattern_len,
            ),
            pattern_len,
        )

        fixed_end = best[2]
        best = _better(
            best,
            self._scan_axis(
                scorer,
                max(0, fixed_end - max_len),
                fixed_end - min_len,
                lambda s: (s, fixed_end),
                1,
                pattern_len,
            ),
            pattern_len,
        )
        return best

    @staticmethod
    def _scan_axis(
        scorer: _WindowScorer,
        lo: int,
        hi: int,
        window_at: Callable[[int], Tuple[int, int]],
        axis: int,
        pattern_len: int,
    ) -> Optional[Tuple[float, int, int]]:
        """
        在 [lo, hi] 上由粗到細找最佳座標

        每一輪最多取樣 REFINE_SAMPLES 個點，再把範圍縮到最佳點前後一個步長。
        範圍不超過 REFINE_SAMPLES 時等同逐點掃描。axis 為座標在 (score, start, end) 中的位置。
        """
        best = None
        step = max(1, math.ceil((hi - lo + 1) / REFINE_SAMPLES))
        while lo <= hi:
            for x in range(lo, hi + 1, step):
                start, end = window_at(x)
                if scorer.is_valid(start, end):
                    best = _better(best, (scorer.score(start, end), start, end), pattern_len)
            if step == 1:
                break
            if best is None:
                # 取樣點都落在空白上，改用較小的步長重掃
                step = max(1, step // 2)
                continue
            center = best[axis]
            lo, hi = max(lo, center - step + 1), min(hi, center + step - 1)
            step = max(1, math.ceil((hi - lo + 1) / REFINE_SAMPLES))
        return best

    @staticmethod
    def _extend_edges(content: str, pattern: str, start: int, end: int) -> Tuple[int, int]:
        """
        依 old_text 頭尾的空白，把區間延伸到相鄰的同類空白

        縮排只吃縮排。換行 (CRLF 視為一個) 會連同它和區間之間的整段縮排一起吃掉，
        不會留下只剩空白的行；換行與區間之間若有其他文字則停止延伸。
        """
        for ch in reversed(leading_whitespace(pattern).replace("\r\n", "\n")):
            if ch in _NEWLINES:
                j = start
                while j > 0 and _is_indent(content[j - 1]):
                    j -= 1
                if j > 0 and content[j - 1] not in _NEWLINES:
                    break
                start = j
                if content[max(0, start - 2):start] == "\r\n":
                    start -= 2
                elif start > 0:
                    start -= 1
                else:
                    break
            elif start > 0 and _is_indent(content[start - 1]):
                start -= 1

        for ch in trailing_whitespace(pattern).replace("\r\n", "\n"):
            if ch in _NEWLINES:
                k = end
                while k < len(content) and _is_indent(content[k]):
                    k += 1
                if k < len(content) and content[k] not in _NEWLINES:
                    break
                end = k
                if content[end:end + 2] == "\r\n":
                    end += 2
                elif end < len(content):
                    end += 1
                else:
                    break
            elif end < len(content) and _is_indent(content[end]):
                end += 1

        return start, end
