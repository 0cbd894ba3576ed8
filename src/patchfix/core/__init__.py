"""
核心抽象層

定義資料模型、事件模型與比對器介面。
"""

from .events import ReplacementEvent, ReplacementEventHandler
from .matcher_interface import BaseMatcher
from .types import (
    ERROR_MESSAGES,
    ErrorKind,
    InvalidRequestError,
    MatchCandidate,
    PatchfixError,
    ReplacementOutcome,
    ReplacementRequest,
)

__all__ = [
    "BaseMatcher",
    "ReplacementEvent",
    "ReplacementEventHandler",
    "ErrorKind",
    "ERROR_MESSAGES",
    "PatchfixError",
    "InvalidRequestError",
    "MatchCandidate",
    "ReplacementOutcome",
    "ReplacementRequest",
]
