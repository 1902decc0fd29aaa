"""TranscriptReader - .jsonlトランスクリプトの読み込み

トランスクリプトはホスト側プロセスが追記するベストエフォートの成果物。
ファイル不在・読み込み不可は空のイベント列として扱い、例外にしない。
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from domain.models.transcript_events import (
    AssistantMessage,
    ToolInvocation,
    ToolResult,
    TranscriptEvent,
    TranscriptInfo,
    Unparsed,
)

logger = logging.getLogger(__name__)

# サブエージェントのトランスクリプトファイル名接頭辞
_AGENT_TRANSCRIPT_PREFIX = "agent-"


class TranscriptReader:
    """.jsonlトランスクリプトを型付きイベント列に変換する。"""

    def read(self, path: Union[str, Path]) -> Iterator[TranscriptEvent]:
        """トランスクリプトを1行ずつ読み込み、イベントを順に返す

        呼び出し時点のファイルのスナップショットを一度だけ走査する遅延シーケンス。
        1行のassistant/userエントリが複数のブロックを持つ場合、ブロック順にイベントを返す。

        Args:
            path: .jsonlファイルパス

        Yields:
            TranscriptEvent（ToolInvocation / ToolResult / AssistantMessage / Unparsed）
        """
        try:
            f = open(path, "rb")
        except OSError as e:
            logger.info(f"トランスクリプト読み込み不可、空として扱う: {path} ({e})")
            return

        with f:
            for raw in f:
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    line = raw.decode("utf-8")
                except UnicodeDecodeError:
                    # 不正なUTF-8を含む行は置換せず行ごとUnparsed
                    yield Unparsed(raw=raw.decode("utf-8", errors="replace"))
                    continue
                yield from self.parse_line(line)

    def read_all(self, path: Union[str, Path]) -> List[TranscriptEvent]:
        """readの結果をリストで返す"""
        return list(self.read(path))

    def read_info(self, path: Union[str, Path]) -> TranscriptInfo:
        """トランスクリプトのメタデータ（session_id, cwd, 開始時刻, agent_id）を取得

        sessionIdを持つ最初のエントリから取得する。
        agent_idはファイル名（agent-<id>.jsonl）を優先し、なければエントリのagentId。
        """
        file_agent_id = _agent_id_from_filename(Path(path))

        try:
            f = open(path, "rb")
        except OSError:
            return TranscriptInfo(agent_id=file_agent_id)

        with f:
            for raw in f:
                try:
                    line = raw.decode("utf-8").strip()
                except UnicodeDecodeError:
                    continue
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if not isinstance(entry, dict) or not isinstance(entry.get("sessionId"), str):
                    continue

                entry_agent_id = entry.get("agentId")
                return TranscriptInfo(
                    session_id=entry["sessionId"],
                    cwd=_as_str(entry.get("cwd")),
                    started_at=entry.get("timestamp") if isinstance(entry.get("timestamp"), str) else None,
                    agent_id=file_agent_id or (entry_agent_id if isinstance(entry_agent_id, str) else None),
                )

        return TranscriptInfo(agent_id=file_agent_id)

    @staticmethod
    def parse_line(line: str) -> List[TranscriptEvent]:
        """1行を解析してイベントのリストを返す

        解析できない行、既知の形に当てはまらない行はUnparsed1件になる。
        """
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            return [Unparsed(raw=line)]

        if not isinstance(entry, dict):
            return [Unparsed(raw=line)]

        line_type = entry.get("type")
        if line_type == "assistant":
            events = _parse_assistant(entry)
        elif line_type == "user":
            events = _parse_user(entry)
        else:
            events = []

        return events or [Unparsed(raw=line)]


def _parse_assistant(entry: Dict[str, Any]) -> List[TranscriptEvent]:
    """assistant行からToolInvocation / AssistantMessageを抽出"""
    timestamp = entry.get("timestamp") if isinstance(entry.get("timestamp"), str) else None
    message = entry.get("message")
    if not isinstance(message, dict):
        return []

    content = message.get("content")
    if isinstance(content, str):
        return [AssistantMessage(text=content, timestamp=timestamp)]
    if not isinstance(content, list):
        return []

    events: List[TranscriptEvent] = []
    for block in content:
        if not isinstance(block, dict):
            continue
        block_type = block.get("type")
        if block_type == "tool_use":
            name = block.get("name")
            if not isinstance(name, str):
                continue
            arguments = block.get("input")
            events.append(ToolInvocation(
                tool_name=name,
                tool_use_id=_as_str(block.get("id")),
                arguments=arguments if isinstance(arguments, dict) else {},
                timestamp=timestamp,
            ))
        elif block_type == "text":
            events.append(AssistantMessage(text=_as_str(block.get("text")), timestamp=timestamp))
    return events


def _parse_user(entry: Dict[str, Any]) -> List[TranscriptEvent]:
    """user行からToolResultを抽出

    Task完了時のtoolUseResult.agentIdをToolResultに持たせる。
    """
    timestamp = entry.get("timestamp") if isinstance(entry.get("timestamp"), str) else None
    message = entry.get("message")
    if not isinstance(message, dict):
        return []

    content = message.get("content")
    if not isinstance(content, list):
        return []

    agent_id: Optional[str] = None
    tool_use_result = entry.get("toolUseResult")
    if isinstance(tool_use_result, dict) and isinstance(tool_use_result.get("agentId"), str):
        agent_id = tool_use_result["agentId"]

    events: List[TranscriptEvent] = []
    for block in content:
        if not isinstance(block, dict):
            continue
        tool_use_id = block.get("tool_use_id")
        if block.get("type") == "tool_result" and isinstance(tool_use_id, str):
            events.append(ToolResult(
                tool_use_id=tool_use_id,
                payload=block.get("content"),
                agent_id=agent_id,
                timestamp=timestamp,
            ))
    return events


def _agent_id_from_filename(path: Path) -> Optional[str]:
    """agent-<id>.jsonl からagent_idを取り出す"""
    name = path.name
    if not name.startswith(_AGENT_TRANSCRIPT_PREFIX):
        return None
    agent_id = name[len(_AGENT_TRANSCRIPT_PREFIX):]
    if agent_id.endswith(".jsonl"):
        agent_id = agent_id[: -len(".jsonl")]
    return agent_id or None


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""
