"""
Aho-Corasick 多模式字串匹配（無第三方依賴）

用途：
- 大文件時，把 pattern 切成多個 chunk，一次掃描就找出所有 chunk 在文件中的位置
- 每個命中位置推回一個候選視窗起點，避免逐一位置評分
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Generic, Iterator, List, Tuple, TypeVar

T = TypeVar("T")


class AhoCorasick(Generic[T]):
    """
    Aho-Corasick 自動機

    同一個 word 可以 add 多次 (不同 value)，命中時每個 value 都會輸出。
    """

    def __init__(self) -> None:
        self._goto: List[Dict[str, int]] = [{}]
        self._fail: List[int] = [0]
        self._out: List[List[Tuple[str, T]]] = [[]]
        self._built = False

    def add(self, word: str, value: T) -> None:
        if self._built:
            raise RuntimeError("AhoCorasick already built; cannot add()")
        if not word:
            return

        state = 0
        for ch in word:
            nxt = self._goto[state].get(ch)
            if nxt is None:
                nxt = len(self._goto)
                self._goto[state][ch] = nxt
                self._goto.append({})
                self._fail.append(0)
                self._out.append([])
            state = nxt
        self._out[state].append((word, value))

    def build(self) -> None:
        if self._built:
            return

        queue: deque[int] = deque(self._goto[0].values())
        while queue:
            state = queue.popleft()
            for ch, child in self._goto[state].items():
                queue.append(child)

                fallback = self._fail[state]
                while fallback and ch not in self._goto[fallback]:
                    fallback = self._fail[fallback]
                self._fail[child] = self._goto[fallback].get(ch, 0)

                # fail link 的輸出也屬於這個狀態
                self._out[child] = self._out[child] + self._out[self._fail[child]]

        self._built = True

    def iter_matches(self, text: str) -> Iterator[Tuple[int, int, str, T]]:
        """
        逐一輸出 matches (依結束位置遞增)

        Yields:
            (start, end, word, value)
            - start: match 起始 index（含）
            - end: match 結束 index（不含）
        """
        if not self._built:
            self.build()

        state = 0
        for i, ch in enumerate(text):
            while state and ch not in self._goto[state]:
                state = self._fail[state]
            state = self._goto[state].get(ch, 0)

            for word, value in self._out[state]:
                yield i + 1 - len(word), i + 1, word, value

    def find_limited(self, text: str, max_per_word: int) -> List[Tuple[int, str, T]]:
        """
        收集 matches，每個 (word, value) 最多保留 max_per_word 筆 (value 須可雜湊)

        Returns:
            [(start, word, value), ...]，依 start 遞增
        """
        seen: Dict[Tuple[str, T], int] = {}
        hits: List[Tuple[int, str, T]] = []
        for start, _end, word, value in self.iter_matches(text):
            key = (word, value)
            count = seen.get(key, 0)
            if count >= max_per_word:
                continue
            seen[key] = count + 1
            hits.append((start, word, value))
        hits.sort(key=lambda h: h[0])
        return hits
