"""トランスクリプトイベント型

.jsonlの各行は読み込み時に一度だけ以下の閉じた型のいずれかへ変換される。
下流の処理は生のdictを再検査せず、この型に対してのみ分岐する。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class ToolInvocation:
    """assistant行のtool_useブロック"""

    tool_name: str
    tool_use_id: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class ToolResult:
    """user行のtool_resultブロック

    agent_idはTask完了時のtoolUseResult.agentId（存在する場合のみ）。
    """

    tool_use_id: str
    payload: Any = None
    agent_id: Optional[str] = None
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class AssistantMessage:
    """assistant行のtextブロック"""

    text: str
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class Unparsed:
    """JSONとして解析できない、または既知の形に当てはまらない行"""

    raw: str


TranscriptEvent = Union[ToolInvocation, ToolResult, AssistantMessage, Unparsed]


@dataclass(frozen=True)
class TranscriptInfo:
    """トランスクリプト先頭から得られるメタデータ"""

    session_id: str = ""
    cwd: str = ""
    started_at: Optional[str] = None
    agent_id: Optional[str] = None
