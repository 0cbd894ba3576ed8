"""
patchfix - LLM 編輯的模糊套用引擎 (Fuzzy Patch Application)

核心概念：
- LLM 提出 (old_text, new_text) 編輯，但 old_text 不一定與文件逐字相同
- 先精確比對並全部替換；找不到時才以滑動視窗 + 編輯距離找出唯一最佳區間
- 失敗時內容絕不改動，成功時只動到命中區間

官方入口（穩定 API）：
- `patchfix.replace`
- `patchfix.ReplacementEngine`
- `patchfix.TextEditorTool`
"""

# =============================================================================
# Engine 層（官方入口）
# =============================================================================
from patchfix.engine import ReplacementEngine, get_default_engine, replace
from patchfix.config import DEFAULT_CONFIG, ReplacerConfig

# =============================================================================
# 資料模型與錯誤
# =============================================================================
from patchfix.core.types import (
    ErrorKind,
    InvalidRequestError,
    MatchCandidate,
    PatchfixError,
    ReplacementOutcome,
    ReplacementRequest,
)

# =============================================================================
# 日誌工具
# =============================================================================
from patchfix.utils.logger import enable_debug_logging, enable_timing_logging, get_logger

# =============================================================================
# 工具層（進階用途）
# =============================================================================
from patchfix.tools.text_editor import StrReplaceRecord, TextEditorTool, ToolResult

__all__ = [
    # Engine
    "replace",
    "ReplacementEngine",
    "get_default_engine",
    "ReplacerConfig",
    "DEFAULT_CONFIG",
    # Types
    "ReplacementRequest",
    "ReplacementOutcome",
    "MatchCandidate",
    "ErrorKind",
    "PatchfixError",
    "InvalidRequestError",
    # Logging
    "get_logger",
    "enable_debug_logging",
    "enable_timing_logging",
    # Tools (advanced)
    "TextEditorTool",
    "ToolResult",
    "StrReplaceRecord",
]

__version__ = "0.1.0"
