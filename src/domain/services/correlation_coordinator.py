"""CorrelationCoordinator - タスク開始/停止イベントの相関処理

フロー:
  1. 開始時（PreToolUse[Task] / SubagentStart）: PendingTaskRecordをEvent Storeへput
  2. 停止時（SubagentStop）: レコードをget → トランスクリプト解析 → レポートへマージ → remove

キーごとの状態遷移: absent → pending（on_task_start）→ absent（on_task_stop）。
開始イベントの無い停止イベントも正常系として扱い、メタデータ空のレポートを返す。
既定では内部エラーを呼び出し元へ伝播しない。strict=Trueの場合のみ再送出する。
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from domain.models.records import FileOperationReport, PendingTaskRecord
from domain.services.agent_definition import find_agent_definition, preloaded_skill_files
from domain.services.edit_classifier import EditClassifier
from domain.services.task_call_matcher import (
    TaskCall,
    find_pending_task_call,
    find_task_call_for_agent,
)
from infrastructure.diagnostics.hook_event_log import HookEventLog
from infrastructure.store.json_event_store import EventStore
from infrastructure.transcript.transcript_reader import TranscriptReader
from shared.constants import MATCH_WINDOW_SECONDS
from shared.structured_logging import get_logger

_logger = get_logger("CorrelationCoordinator")


class CorrelationCoordinator:
    """Event Store・TranscriptReader・EditClassifierを束ねる。"""

    def __init__(
        self,
        store: EventStore,
        reader: Optional[TranscriptReader] = None,
        event_log: Optional[HookEventLog] = None,
        strict: bool = False,
        match_window_seconds: int = MATCH_WINDOW_SECONDS,
    ):
        """
        初期化

        Args:
            store: Event Store
            reader: トランスクリプトリーダー
            event_log: 診断チャネル（任意）
            strict: Trueの場合、内部エラーを呼び出し元へ再送出する
            match_window_seconds: Task呼び出しとエージェント開始のあいまいマッチ許容幅
        """
        self.store = store
        self.reader = reader or TranscriptReader()
        self.event_log = event_log
        self.strict = strict
        self.match_window_seconds = match_window_seconds

    # === 開始 ===
    def on_task_start(self, key: str, metadata: Dict[str, Any]) -> None:
        """PendingTaskRecordを生成してputする

        Event Storeのエラーは診断チャネルへ記録して握りつぶす（strict時は再送出）。

        Args:
            key: 相関キー（tool_use_idまたはagent_id）
            metadata: agent_type, session_id, prompt, cwd, transcript_path,
                      tool_use_id, agent_id（いずれも任意）
        """
        record = PendingTaskRecord(
            key=key,
            agent_type=_meta(metadata, "agent_type", "agentType"),
            session_id=_meta(metadata, "session_id", "sessionId"),
            prompt=_meta(metadata, "prompt"),
            cwd=_meta(metadata, "cwd", "workingDirectory"),
            created_at=datetime.now(timezone.utc).isoformat(),
            transcript_path=_meta(metadata, "transcript_path", "transcriptPath") or None,
            tool_use_id=_meta(metadata, "tool_use_id", "toolUseId") or None,
            agent_id=_meta(metadata, "agent_id", "agentId") or None,
        )
        try:
            self.store.put(key, record)
            _logger.info(f"Task record stored: key={key}, agent_type={record.agent_type}")
        except Exception as e:
            self._report_error(f"Task record store failed: key={key}", e)
            if self.strict:
                raise

    def on_subagent_start(
        self,
        agent_id: str,
        agent_type: str,
        session_id: str,
        cwd: str,
        parent_transcript_path: Optional[str] = None,
    ) -> Optional[TaskCall]:
        """SubagentStart時の開始処理

        親トランスクリプトから起動元の未完了Task呼び出しを探し、prompt/tool_use_idを
        レコードに含める。PreToolUse[Task]で保存済みのレコードがあればそのpromptを優先する。

        Returns:
            特定できたTaskCall（なければNone）
        """
        task_call: Optional[TaskCall] = None
        prompt = ""
        try:
            if parent_transcript_path:
                task_call = find_pending_task_call(self.reader.read(parent_transcript_path), agent_type)
            if task_call:
                linked = self.store.get(task_call.tool_use_id)
                prompt = (linked.prompt if linked else "") or task_call.prompt
        except Exception as e:
            self._report_error(f"Pending task lookup failed: agent_id={agent_id}", e)
            if self.strict:
                raise

        self.on_task_start(agent_id, {
            "agent_id": agent_id,
            "agent_type": agent_type,
            "session_id": session_id,
            "cwd": cwd,
            "prompt": prompt,
            "tool_use_id": task_call.tool_use_id if task_call else None,
        })
        return task_call

    # === 参照 ===
    def lookup(self, key: str) -> Optional[PendingTaskRecord]:
        """レコードを削除せずに参照（PostToolUse[Task]のログ用）"""
        try:
            return self.store.get(key)
        except Exception as e:
            self._report_error(f"Task record lookup failed: key={key}", e)
            if self.strict:
                raise
            return None

    # === 停止 ===
    def on_task_stop(
        self,
        key: str,
        transcript_path: str,
        parent_transcript_path: Optional[str] = None,
        subagent_type: Optional[str] = None,
    ) -> FileOperationReport:
        """停止時の相関処理

        レコード取得 → トランスクリプト解析 → メタデータのマージを行い、
        成否に関わらずkey（および紐づくtool_use_idのレコード）をremoveする。

        Args:
            key: 相関キー
            transcript_path: タスク自身のトランスクリプト
            parent_transcript_path: 親セッションのトランスクリプト（tool_use_id未連携時のTask特定用）
            subagent_type: ホストが通知したエージェントタイプ（最後のフォールバック）

        Returns:
            FileOperationReport（レコード不在時はメタデータ空）
        """
        report = FileOperationReport(
            agent_id=key,
            transcript_path=transcript_path or "",
            parent_transcript_path=parent_transcript_path or "",
        )
        keys_to_remove: List[str] = [key]
        failure: Optional[Exception] = None

        try:
            record = self.store.get(key)
            info = self.reader.read_info(transcript_path) if transcript_path else None
            if info and info.agent_id:
                report.agent_id = info.agent_id

            linked: Optional[PendingTaskRecord] = None
            task_call: Optional[TaskCall] = None
            if record is not None and record.tool_use_id:
                report.tool_use_id = record.tool_use_id
            elif parent_transcript_path:
                # レコードがあってもtool_use_id未連携の場合は親トランスクリプトから特定する
                task_call = find_task_call_for_agent(
                    self.reader.read(parent_transcript_path),
                    agent_id=report.agent_id,
                    subagent_type=subagent_type or (record.agent_type if record else None),
                    agent_started_at=info.started_at if info else None,
                    window_seconds=self.match_window_seconds,
                )
                if task_call:
                    report.tool_use_id = task_call.tool_use_id
            if report.tool_use_id and report.tool_use_id != key:
                linked = self.store.get(report.tool_use_id)
            if linked is not None:
                keys_to_remove.append(linked.key)

            sources = [r for r in (record, linked) if r is not None]
            report.session_id = _first(
                [r.session_id for r in sources] + [info.session_id if info else ""]
            )
            report.subagent_type = _first(
                [r.agent_type for r in sources] + [task_call.subagent_type if task_call else ""]
            )
            report.prompt = _first(
                [r.prompt for r in sources] + [task_call.prompt if task_call else ""]
            )
            if record is None and not report.subagent_type and subagent_type:
                # レコード不在・Task特定不可でもホスト通知のタイプは残す
                report.subagent_type = subagent_type
            cwd = _first([r.cwd for r in sources] + [info.cwd if info else ""])

            classified = EditClassifier(cwd or None).classify(
                self.reader.read(transcript_path) if transcript_path else []
            )
            report.created = classified.created
            report.edited = classified.edited
            report.deleted = classified.deleted

            definition_file = classified.definition_file or find_agent_definition(cwd, report.subagent_type)
            report.definition_file = definition_file
            skill_files = preloaded_skill_files(definition_file, cwd) if definition_file and cwd else []
            for path in classified.preloaded_skill_files:
                if path not in skill_files:
                    skill_files.append(path)
            report.preloaded_skill_files = skill_files

            _logger.info(
                f"Task edits analyzed: key={key}, type={report.subagent_type}, "
                f"created={len(report.created)}, edited={len(report.edited)}, "
                f"deleted={len(report.deleted)}"
            )
        except Exception as e:
            failure = e
            self._report_error(f"Task stop analysis failed: key={key}", e)
        finally:
            for remove_key in keys_to_remove:
                try:
                    self.store.remove(remove_key)
                except Exception as e:
                    self._report_error(f"Task record cleanup failed: key={remove_key}", e)
                    failure = failure or e

        if failure is not None and self.strict:
            raise failure
        return report

    def _report_error(self, message: str, error: Exception) -> None:
        _logger.error(f"{message}: {error}")
        if self.event_log is not None:
            self.event_log.log_error(error)


def _meta(metadata: Dict[str, Any], *names: str) -> str:
    """snake_case / camelCase いずれのキーでも受け付ける"""
    for name in names:
        value = metadata.get(name)
        if isinstance(value, str) and value:
            return value
    return ""


def _first(values: List[str]) -> str:
    """最初の空でない値（なければ空文字）"""
    for value in values:
        if value:
            return value
    return ""
