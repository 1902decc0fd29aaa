"""TaskCallMatcher - 親トランスクリプト上のTask呼び出しとサブエージェントの対応付け"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from domain.models.transcript_events import ToolInvocation, ToolResult, TranscriptEvent
from shared.constants import MATCH_WINDOW_SECONDS, TASK_TOOL_NAMES


@dataclass(frozen=True)
class TaskCall:
    """親トランスクリプト上のTask tool_use"""

    tool_use_id: str
    subagent_type: str
    prompt: str
    timestamp: Optional[str] = None


def collect_task_calls(events: Iterable[TranscriptEvent]) -> List[TaskCall]:
    """Task tool_useをトランスクリプト順に抽出"""
    calls: List[TaskCall] = []
    for event in events:
        if not isinstance(event, ToolInvocation) or event.tool_name not in TASK_TOOL_NAMES:
            continue
        subagent_type = event.arguments.get("subagent_type")
        prompt = event.arguments.get("prompt")
        calls.append(TaskCall(
            tool_use_id=event.tool_use_id,
            subagent_type=subagent_type if isinstance(subagent_type, str) and subagent_type else "unknown",
            prompt=prompt if isinstance(prompt, str) else "",
            timestamp=event.timestamp,
        ))
    return calls


def find_pending_task_call(events: Iterable[TranscriptEvent], agent_type: str) -> Optional[TaskCall]:
    """agent_typeに一致する未完了のTask呼び出しのうち最新のものを返す

    SubagentStart時点では起動元のTaskにtool_resultがまだ無いことを利用する。

    Args:
        events: 親トランスクリプトのイベント列
        agent_type: サブエージェントタイプ

    Returns:
        TaskCall、該当なしの場合None
    """
    events = list(events)
    completed = {e.tool_use_id for e in events if isinstance(e, ToolResult)}
    pending = [
        call for call in collect_task_calls(events)
        if call.tool_use_id not in completed and call.subagent_type == agent_type
    ]
    # トランスクリプト順が時系列の基準
    return pending[-1] if pending else None


def find_task_call_for_agent(
    events: Iterable[TranscriptEvent],
    agent_id: str,
    tool_use_id: Optional[str] = None,
    subagent_type: Optional[str] = None,
    agent_started_at: Optional[str] = None,
    window_seconds: int = MATCH_WINDOW_SECONDS,
) -> Optional[TaskCall]:
    """サブエージェントを起動したTask呼び出しを特定する

    戦略（順に試行）:
    1. tool_use_idによる直接参照
    2. toolUseResult.agentIdがagent_idに一致するtool_resultのtool_use_id
    3. subagent_typeが一致し、エージェント開始時刻のwindow_seconds秒前以内に
       発行されたTaskのうち最新のもの

    Returns:
        TaskCall、特定できない場合None
    """
    events = list(events)
    calls: Dict[str, TaskCall] = {call.tool_use_id: call for call in collect_task_calls(events)}

    if tool_use_id and tool_use_id in calls:
        return calls[tool_use_id]

    for event in events:
        if isinstance(event, ToolResult) and event.agent_id == agent_id and event.tool_use_id in calls:
            return calls[event.tool_use_id]

    if not subagent_type or not agent_started_at:
        return None

    started = parse_timestamp(agent_started_at)
    if started is None:
        return None

    best: Optional[TaskCall] = None
    best_time: Optional[datetime] = None
    for call in calls.values():
        if call.subagent_type != subagent_type:
            continue
        call_time = parse_timestamp(call.timestamp)
        if call_time is None:
            continue
        delta = (started - call_time).total_seconds()
        if 0 <= delta <= window_seconds and (best_time is None or call_time >= best_time):
            best, best_time = call, call_time
    return best


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO8601文字列をaware datetimeに変換（末尾Z対応、失敗時None）"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
