"""SubagentStart/Stopイベントハンドラ

settings.jsonのSubagentStart/SubagentStopフックから呼び出される。
- SubagentStart: 親トランスクリプトから起動元のTaskを特定し、agent_idをキーに記録
- SubagentStop: サブエージェントのトランスクリプトを解析し、作成/編集/削除ファイルのレポートを生成

SubagentStartはleaderコンテキストで発火するため、入力のtranscript_pathは親セッションのもの。
SubagentStopではagent_transcript_pathがサブエージェント自身のトランスクリプト。
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

sys.path.append(str(Path(__file__).parent.parent.parent))

from domain.hooks.base_hook import BaseHook, passthrough_response
from domain.models.records import FileOperationReport

SUBAGENT_START = "SubagentStart"
SUBAGENT_STOP = "SubagentStop"


class SubagentEventHook(BaseHook):
    """SubagentStart/SubagentStop の相関フック"""

    hook_event_name = SUBAGENT_STOP

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # 直近のSubagentStopで生成したレポート
        self.last_report: Optional[FileOperationReport] = None

    def should_process(self, input_data: Dict[str, Any]) -> bool:
        event_name = input_data.get("hook_event_name", "")
        if event_name not in (SUBAGENT_START, SUBAGENT_STOP):
            self.log_info(f"Unknown event: {event_name}")
            return False
        if not input_data.get("agent_id"):
            self.log_info(f"Missing agent_id for {event_name}, skipping")
            return False
        return True

    def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        event_name = input_data["hook_event_name"]
        agent_id = input_data["agent_id"]
        agent_type = input_data.get("agent_type") or ""

        self.log_info(
            f"Event: {event_name}, session_id: {input_data.get('session_id', '')}, "
            f"agent_id: {agent_id}, agent_type: {agent_type}"
        )

        coordinator = self.create_coordinator()
        if event_name == SUBAGENT_START:
            task_call = coordinator.on_subagent_start(
                agent_id=agent_id,
                agent_type=agent_type,
                session_id=input_data.get("session_id") or "",
                cwd=input_data.get("cwd") or "",
                parent_transcript_path=input_data.get("transcript_path"),
            )
            if task_call:
                self.log_info(f"Task call matched: tool_use_id={task_call.tool_use_id}")
            else:
                self.log_info(f"No pending task call for agent_type={agent_type}")
        else:
            agent_transcript_path = input_data.get("agent_transcript_path") or ""
            if not agent_transcript_path:
                self.log_info("agent_transcript_path未提供、ファイル操作は空")

            report = coordinator.on_task_stop(
                agent_id,
                agent_transcript_path,
                parent_transcript_path=input_data.get("transcript_path"),
                subagent_type=agent_type or None,
            )
            self.last_report = report
            if self.event_log is not None:
                self.event_log.log("report", report.to_dict())
            self.log_info(
                f"Subagent report: agent={report.agent_id}, type={report.subagent_type}, "
                f"created={report.created}, edited={report.edited}, deleted={report.deleted}"
            )

        return passthrough_response(event_name)


def main():
    """メインエントリーポイント"""
    hook = SubagentEventHook()
    sys.exit(hook.run())


if __name__ == "__main__":
    main()
