"""
文字編輯工具層

把 LLM 發出的 text editor 指令 ({command, path, old_str, new_str}) 對應到替換引擎，
並把失敗轉成模型看得懂的回覆文字。檔案只存在記憶體中，不做持久化。

支援指令:
- view: 讀取檔案內容
- create: 建立新檔 (檔案已存在時拒絕)
- str_replace: 以 ReplacementEngine 替換內容

每次 str_replace 都會產生一筆 StrReplaceRecord，交給 on_record 回呼 (例如寫入資料庫)。
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from patchfix.engine import ReplacementEngine
from patchfix.utils.logger import get_logger

CONTEXT_BEFORE_MARKER = "###CONTEXT_BEFORE###"
CONTEXT_AFTER_MARKER = "###CONTEXT_AFTER###"

RESPONSE_FILE_MISSING = "Error: File does not exist. Use create instead."
RESPONSE_FILE_EXISTS = "Error: File already exists. Use view and str_replace instead."
RESPONSE_CREATED = "Created"
RESPONSE_REPLACED = "Content replaced successfully"
RESPONSE_NOT_FOUND = (
    "Error: String to replace not found in file. Please use smaller, more precise replacements."
)


@dataclass(frozen=True)
class StrReplaceRecord:
    """單次 str_replace 的紀錄 (不含時間戳，由接收端自行補上)"""

    trace_id: str
    file_path: str
    found: bool
    old_str: str
    new_str: str
    updated_content: str
    old_str_len: int
    new_str_len: int
    context_before: str = ""
    context_after: str = ""
    error_message: str = ""


@dataclass(frozen=True)
class ToolResult:
    response: str
    content: Optional[str] = None
    record: Optional[StrReplaceRecord] = None


def extract_context(old_str: str) -> Tuple[str, str]:
    """
    取出 old_str 中以標記包住的上下文

    格式: ...###CONTEXT_BEFORE###<before>###CONTEXT_AFTER###<after>
    """
    if CONTEXT_BEFORE_MARKER not in old_str or CONTEXT_AFTER_MARKER not in old_str:
        return "", ""
    _, _, rest = old_str.partition(CONTEXT_BEFORE_MARKER)
    before, sep, after = rest.partition(CONTEXT_AFTER_MARKER)
    if not sep:
        return "", ""
    return before, after.split(CONTEXT_AFTER_MARKER)[0]


class TextEditorTool:
    """
    LLM text editor 工具

    同一個 TextEditorTool 實例上的指令會被序列化 (一次套用一個編輯)，
    確保每個 str_replace 都作用在前一次的結果上。
    """

    def __init__(
        self,
        files: Optional[Mapping[str, str]] = None,
        *,
        engine: Optional[ReplacementEngine] = None,
        on_record: Optional[Callable[[StrReplaceRecord], None]] = None,
    ):
        self._files: Dict[str, str] = dict(files or {})
        self._engine = engine or ReplacementEngine()
        self._on_record = on_record
        self._lock = threading.Lock()
        self._logger = get_logger("tools.text_editor")

    def read(self, path: str) -> Optional[str]:
        with self._lock:
            return self._files.get(path)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._files)

    def execute(self, tool_input: Mapping[str, Any]) -> ToolResult:
        command = tool_input.get("command")
        path = tool_input.get("path") or ""
        old_str = tool_input.get("old_str") or ""
        new_str = tool_input.get("new_str") or ""

        self._logger.info(
            f"text_editor tool use: command={command} path={path} "
            f"old_str_len={len(old_str)} new_str_len={len(new_str)}"
        )

        with self._lock:
            if command == "view":
                return self._view(path)
            if command == "create":
                return self._create(path, new_str)
            if command == "str_replace":
                return self._str_replace(path, old_str, new_str)
        return ToolResult(response=f"Error: Unknown command: {command}")

    def _view(self, path: str) -> ToolResult:
        content = self._files.get(path, "")
        if content == "":
            return ToolResult(response=RESPONSE_FILE_MISSING)
        return ToolResult(response=content, content=content)

    def _create(self, path: str, new_str: str) -> ToolResult:
        if self._files.get(path, "") != "":
            return ToolResult(response=RESPONSE_FILE_EXISTS, content=self._files[path])
        self._files[path] = new_str
        return ToolResult(response=RESPONSE_CREATED, content=new_str)

    def _str_replace(self, path: str, old_str: str, new_str: str) -> ToolResult:
        current = self._files.get(path, "")
        trace_id = uuid.uuid4().hex
        outcome = self._engine.replace(current, old_str, new_str, trace_id=trace_id)

        context_before, context_after = extract_context(old_str)
        record = StrReplaceRecord(
            trace_id=trace_id,
            file_path=path,
            found=outcome.success,
            old_str=old_str,
            new_str=new_str,
            updated_content=outcome.content,
            old_str_len=len(old_str),
            new_str_len=len(new_str),
            context_before=context_before,
            context_after=context_after,
            error_message=outcome.message or "",
        )
        self._publish(record)

        if not outcome.success:
            self._logger.debug(f"str_replace failed on {path}: {outcome.message}")
            return ToolResult(response=RESPONSE_NOT_FOUND, content=current, record=record)

        self._files[path] = outcome.content
        return ToolResult(response=RESPONSE_REPLACED, content=outcome.content, record=record)

    def _publish(self, record: StrReplaceRecord) -> None:
        if self._on_record is None:
            return
        try:
            self._on_record(record)
        except Exception:
            self._logger.warning("str_replace record sink failed", exc_info=True)
