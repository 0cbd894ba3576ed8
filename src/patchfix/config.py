"""
全域配置模組

提供替換引擎的可調參數，控制模糊比對門檻、視窗大小與日誌行為。

使用方式:
    from patchfix import ReplacementEngine
    from patchfix.config import ReplacerConfig

    # 預設值即可應付大部分 LLM 編輯
    engine = ReplacementEngine()

    # 進階: 調整門檻
    engine = ReplacementEngine(ReplacerConfig(similarity_threshold=0.9))

    # 進階: 使用標準 logging 控制
    import logging
    logging.getLogger("patchfix").setLevel(logging.DEBUG)
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .utils.logger import setup_logger


def configure_logging(verbose: bool = False) -> None:
    """
    根據 verbose 設定配置 logging

    Args:
        verbose: 是否開啟詳細日誌
    """
    if verbose:
        setup_logger(level=logging.DEBUG)


@dataclass(frozen=True)
class ReplacerConfig:
    """
    替換引擎配置

    屬性:
        minimum_fuzzy_pattern_length: old_text 短於此長度時不進行模糊比對
        similarity_threshold: 模糊候選的最低接受分數 (0.0 ~ 1.0)
        window_size_tolerance: 視窗長度可偏離 pattern 長度的幅度
            - int: 絕對字元數
            - float (0, 1): pattern 長度的比例
        max_windows: 粗掃階段最多評分的視窗數 (大文件的延遲上限)
        max_scored_chars: 粗掃階段評分的字元總量上限 (長 pattern 時視窗數會再往下縮)
        refine_candidates: 進入精修階段的種子數量
        anchor_chunk_size: 大文件時用來定位的 pattern 切片長度
        max_anchor_chunks: 最多使用幾個切片
        max_anchor_occurrences: 每個切片最多採用幾個命中位置
        verbose: 是否開啟詳細日誌
        on_timing: 計時回呼函數 (operation: str, elapsed: float) -> None
    """

    minimum_fuzzy_pattern_length: int = 50
    similarity_threshold: float = 0.85
    window_size_tolerance: Union[int, float] = 0.1
    max_windows: int = 20000
    max_scored_chars: int = 2_000_000
    refine_candidates: int = 5
    anchor_chunk_size: int = 64
    max_anchor_chunks: int = 100
    max_anchor_occurrences: int = 100

    verbose: bool = False
    on_timing: Optional[Callable[[str, float], None]] = None

    def __post_init__(self):
        if self.minimum_fuzzy_pattern_length < 1:
            raise ValueError("minimum_fuzzy_pattern_length must be >= 1")
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be between 0.0 and 1.0")
        tolerance = self.window_size_tolerance
        if isinstance(tolerance, bool) or not isinstance(tolerance, (int, float)):
            raise ValueError("window_size_tolerance must be an int or a float")
        if isinstance(tolerance, float) and not 0.0 <= tolerance < 1.0:
            raise ValueError("window_size_tolerance as a fraction must be in [0.0, 1.0)")
        if isinstance(tolerance, int) and tolerance < 0:
            raise ValueError("window_size_tolerance must be >= 0")
        if self.max_windows < 1:
            raise ValueError("max_windows must be >= 1")
        if self.max_scored_chars < 1:
            raise ValueError("max_scored_chars must be >= 1")
        if self.refine_candidates < 1:
            raise ValueError("refine_candidates must be >= 1")
        if self.anchor_chunk_size < 10:
            raise ValueError("anchor_chunk_size must be >= 10")
        if self.max_anchor_chunks < 1 or self.max_anchor_occurrences < 1:
            raise ValueError("anchor limits must be >= 1")
        configure_logging(self.verbose)

    def tolerance_for(self, pattern_length: int) -> int:
        """把 window_size_tolerance 換算成字元數 (至少 1)"""
        tolerance = self.window_size_tolerance
        if isinstance(tolerance, float):
            return max(1, math.ceil(pattern_length * tolerance))
        return max(1, tolerance)

    def window_budget(self, pattern_length: int) -> int:
        """粗掃視窗數上限：max_windows 與字元總量上限取小者 (至少 1)"""
        return max(1, min(self.max_windows, self.max_scored_chars // max(1, pattern_length)))


# 預設配置實例 (靜默模式)
DEFAULT_CONFIG = ReplacerConfig()
