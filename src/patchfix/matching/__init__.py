"""
比對模組

- ExactMatcher: 精確比對 (全部替換)
- FuzzyWindowMatcher: 模糊視窗比對 (單一最佳區間)
"""

from .exact import ExactMatcher
from .fuzzy import FuzzySearchResult, FuzzyWindowMatcher

__all__ = [
    "ExactMatcher",
    "FuzzyWindowMatcher",
    "FuzzySearchResult",
]
