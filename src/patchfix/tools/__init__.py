"""
工具層

把 LLM 的 text editor 指令接到替換引擎。
"""

from .text_editor import (
    StrReplaceRecord,
    TextEditorTool,
    ToolResult,
    extract_context,
)

__all__ = [
    "TextEditorTool",
    "ToolResult",
    "StrReplaceRecord",
    "extract_context",
]
