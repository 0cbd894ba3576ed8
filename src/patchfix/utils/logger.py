"""
日誌與計時工具

所有 logger 都掛在 `patchfix` 命名空間之下，預設不輸出任何東西，
由使用者透過標準 logging 或 enable_debug_logging() 自行開啟。

使用方式:
    from patchfix.utils.logger import get_logger, TimingContext

    logger = get_logger("engine")
    with TimingContext("replace", logger):
        ...
"""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Callable, Optional

ROOT_LOGGER_NAME = "patchfix"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_root_logger = logging.getLogger(ROOT_LOGGER_NAME)
_root_logger.addHandler(logging.NullHandler())

_timing_enabled = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    取得 patchfix 命名空間下的 logger

    Args:
        name: 子模組名稱 (例如 "engine"、"matcher.fuzzy")，None 時回傳根 logger
    """
    if not name:
        return _root_logger
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger(level: int = logging.INFO, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """
    為根 logger 加上 StreamHandler 並設定等級

    重複呼叫只會調整等級，不會重複加 handler。
    """
    has_stream = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.NullHandler)
        for h in _root_logger.handlers
    )
    if not has_stream:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        _root_logger.addHandler(handler)
    _root_logger.setLevel(level)
    return _root_logger


def enable_debug_logging() -> None:
    """開啟 DEBUG 等級日誌 (含各階段決策細節)"""
    setup_logger(level=logging.DEBUG)


def enable_timing_logging() -> None:
    """開啟計時日誌，TimingContext 會以 INFO 等級輸出耗時"""
    global _timing_enabled
    _timing_enabled = True
    if _root_logger.level == logging.NOTSET or _root_logger.level > logging.INFO:
        setup_logger(level=logging.INFO)


def is_timing_enabled() -> bool:
    return _timing_enabled


class TimingContext:
    """
    計時 context manager

    Args:
        operation: 操作名稱 (會出現在日誌中)
        logger: 輸出用 logger
        level: 輸出等級 (開啟 timing logging 時提升為 INFO)
        callback: 計時回呼 (operation, elapsed_seconds) -> None
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        level: int = logging.DEBUG,
        callback: Optional[Callable[[str, float], None]] = None,
    ):
        self.operation = operation
        self.logger = logger or _root_logger
        self.level = level
        self.callback = callback
        self.elapsed = 0.0
        self._start = 0.0

    def __enter__(self) -> "TimingContext":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.elapsed = time.perf_counter() - self._start
        level = logging.INFO if _timing_enabled else self.level
        if self.logger.isEnabledFor(level):
            self.logger.log(level, f"[Timing] {self.operation}: {self.elapsed * 1000:.2f} ms")
        if self.callback is not None:
            try:
                self.callback(self.operation, self.elapsed)
            except Exception:
                self.logger.exception("on_timing 回呼執行失敗")
        return False


def log_timing(operation: Optional[str] = None, level: int = logging.DEBUG):
    """
    計時裝飾器

    範例:
        >>> @log_timing("normalize")
        ... def normalize(text): ...
    """

    def decorator(func: Callable) -> Callable:
        name = operation or func.__qualname__
        logger = get_logger(func.__module__.replace(f"{ROOT_LOGGER_NAME}.", "", 1))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with TimingContext(name, logger, level):
                return func(*args, **kwargs)

        return wrapper

    return decorator
