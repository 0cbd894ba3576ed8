"""
工具模組

提供日誌、計時與多模式字串搜尋等通用工具。
"""

from .aho_corasick import AhoCorasick
from .logger import (
    TimingContext,
    enable_debug_logging,
    enable_timing_logging,
    get_logger,
    log_timing,
    setup_logger,
)

__all__ = [
    # 日誌工具
    "get_logger",
    "setup_logger",
    "log_timing",
    "TimingContext",
    "enable_debug_logging",
    "enable_timing_logging",

    # 字串搜尋
    "AhoCorasick",
]
