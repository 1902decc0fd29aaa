"""データモデル"""

from domain.models.records import FileOperationReport, PendingTaskRecord
from domain.models.transcript_events import (
    AssistantMessage,
    ToolInvocation,
    ToolResult,
    TranscriptEvent,
    TranscriptInfo,
    Unparsed,
)

__all__ = [
    "AssistantMessage",
    "FileOperationReport",
    "PendingTaskRecord",
    "ToolInvocation",
    "ToolResult",
    "TranscriptEvent",
    "TranscriptInfo",
    "Unparsed",
]
