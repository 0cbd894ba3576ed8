"""
精確比對器

逐字搜尋 old_text，找到後全部替換。永遠比模糊比對先執行。
"""

from typing import List

from patchfix.core.matcher_interface import BaseMatcher
from patchfix.core.types import MatchCandidate


class ExactMatcher(BaseMatcher):
    """
    精確比對器

    由左至右掃描，命中後從命中區間的下一個字元繼續 (不重疊)。
    """

    name = "exact"

    def find(self, content: str, pattern: str) -> List[MatchCandidate]:
        if not pattern:
            return []

        matches: List[MatchCandidate] = []
        start = 0
        while True:
            idx = content.find(pattern, start)
            if idx == -1:
                break
            end = idx + len(pattern)
            matches.append(MatchCandidate(start=idx, end=end, score=1.0))
            start = end
        return matches
