"""
空白正規化

把連續空白 (含 \\r、\\n、tab 與其他 Unicode 空白) 壓成單一空格，
同時保留「正規化索引 -> 原文索引」的對照，讓模糊比對的結果能回推到原文區間。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class NormalizedText:
    """
    正規化後的文字

    positions[i] 為 text[i] 在原文中的索引；壓縮後的空格對應到該段空白的第一個字元。
    """

    text: str
    positions: Tuple[int, ...]
    source_length: int

    def to_source_span(self, start: int, end: int) -> Tuple[int, int]:
        """把正規化區間 [start, end) 換回原文區間"""
        if start >= end:
            raise ValueError(f"Empty span: [{start}, {end})")
        return self.positions[start], self.positions[end - 1] + 1


def collapse_whitespace(text: str) -> str:
    """壓縮空白並去除頭尾空白 (pattern 用)"""
    return " ".join(text.split())


def normalize_with_map(text: str) -> NormalizedText:
    """壓縮空白但保留頭尾 (文件用)，並建立位置對照"""
    chars: List[str] = []
    positions: List[int] = []
    in_space = False
    for i, ch in enumerate(text):
        if ch.isspace():
            if in_space:
                continue
            in_space = True
            chars.append(" ")
        else:
            in_space = False
            chars.append(ch)
        positions.append(i)
    return NormalizedText(text="".join(chars), positions=tuple(positions), source_length=len(text))


def leading_whitespace(text: str) -> str:
    return text[: len(text) - len(text.lstrip())]


def trailing_whitespace(text: str) -> str:
    return text[len(text.rstrip()):]
