"""
比對器抽象基類

定義精確比對與模糊比對共用的介面。

架構：
- ExactMatcher(BaseMatcher) in matching/exact.py
- FuzzyWindowMatcher(BaseMatcher) in matching/fuzzy.py
- ReplacementEngine 依序呼叫兩者，並負責組裝結果

使用範例:
    >>> from patchfix.matching import ExactMatcher
    >>> matcher = ExactMatcher()
    >>> spans = matcher.find("a-b-a", "a")
    >>> matcher.apply("a-b-a", spans, "c")
    'c-b-c'
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from patchfix.core.types import MatchCandidate


class BaseMatcher(ABC):
    """
    比對器抽象基類

    職責:
    - find(): 找出候選區間 (找不到時回傳空列表，不得拋出「找不到」例外)
    - apply(): 以 new_text 取代候選區間並回傳新字串

    find() 回傳的區間必須互不重疊，且依 start 遞增排列。
    """

    name: str = "base"

    @abstractmethod
    def find(self, content: str, pattern: str) -> List[MatchCandidate]:
        """回傳 pattern 在 content 中的候選區間"""

    def apply(self, content: str, candidates: Sequence[MatchCandidate], new_text: str) -> str:
        """
        套用替換

        以重建字串的方式處理，區間以外的內容原封不動複製。
        """
        result = []
        last_pos = 0
        for cand in sorted(candidates, key=lambda c: c.start):
            if cand.start < last_pos:
                raise ValueError(f"Overlapping spans at offset {cand.start}")
            result.append(content[last_pos:cand.start])
            result.append(new_text)
            last_pos = cand.end
        result.append(content[last_pos:])
        return "".join(result)
