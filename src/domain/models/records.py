"""データモデル定義"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PendingTaskRecord:
    """保留中タスクレコード

    タスク開始時に生成され、対応する停止イベントで消費されるまでEvent Storeにのみ存在する。
    keyはtool_use_idまたはagent_id。
    """

    key: str
    agent_type: str = ""
    session_id: str = ""
    prompt: str = ""
    cwd: str = ""
    created_at: str = ""
    transcript_path: Optional[str] = None
    tool_use_id: Optional[str] = None
    agent_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Event Storeファイル形式（camelCase）へ変換"""
        data: Dict[str, Any] = {}
        if self.tool_use_id is not None:
            data["toolUseId"] = self.tool_use_id
        if self.agent_id is not None:
            data["agentId"] = self.agent_id
        data.update({
            "agentType": self.agent_type,
            "sessionId": self.session_id,
            "prompt": self.prompt,
            "cwd": self.cwd,
            "timestamp": self.created_at,
        })
        if self.transcript_path is not None:
            data["transcriptPath"] = self.transcript_path
        return data

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> "PendingTaskRecord":
        """Event Storeファイル形式から復元

        欠けたフィールドは空文字（任意項目はNone）で補う。
        """
        def _str(name: str) -> str:
            value = data.get(name)
            return value if isinstance(value, str) else ""

        def _opt(name: str) -> Optional[str]:
            value = data.get(name)
            return value if isinstance(value, str) else None

        return cls(
            key=key,
            agent_type=_str("agentType"),
            session_id=_str("sessionId"),
            prompt=_str("prompt"),
            cwd=_str("cwd"),
            created_at=_str("timestamp"),
            transcript_path=_opt("transcriptPath"),
            tool_use_id=_opt("toolUseId"),
            agent_id=_opt("agentId"),
        )


@dataclass
class FileOperationReport:
    """タスクのファイル操作レポート

    created / edited / deleted は互いに素で、初出順を保持した重複なしリスト。
    """

    created: List[str] = field(default_factory=list)
    edited: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    subagent_type: str = ""
    prompt: str = ""
    definition_file: Optional[str] = None
    preloaded_skill_files: List[str] = field(default_factory=list)
    session_id: str = ""
    agent_id: str = ""
    tool_use_id: str = ""
    transcript_path: str = ""
    parent_transcript_path: str = ""

    @property
    def has_file_operations(self) -> bool:
        return bool(self.created or self.edited or self.deleted)

    def to_dict(self) -> Dict[str, Any]:
        """下流フック向けのJSON形式（camelCase）"""
        return {
            "sessionId": self.session_id,
            "agentId": self.agent_id,
            "toolUseId": self.tool_use_id,
            "transcriptPath": self.transcript_path,
            "parentTranscriptPath": self.parent_transcript_path,
            "subagentType": self.subagent_type,
            "prompt": self.prompt,
            "definitionFile": self.definition_file,
            "preloadedSkillFiles": list(self.preloaded_skill_files),
            "created": list(self.created),
            "edited": list(self.edited),
            "deleted": list(self.deleted),
        }
