"""Task完了ログフック

PostToolUse[Task] で保存済みのTaskレコードを（削除せずに）参照し、
エージェントタイプ・prompt・応答の要約を診断チャネルへ残す。
レコードの削除はSubagentStop側の責務。
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict

sys.path.append(str(Path(__file__).parent.parent.parent))

from domain.hooks.base_hook import BaseHook, passthrough_response
from shared.constants import SUMMARY_MAX_LEN, TASK_TOOL_NAMES


def summarize(value: Any, max_len: int = SUMMARY_MAX_LEN) -> str:
    """文字列化してmax_len文字に切り詰める"""
    if value is None:
        return ""
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


class TaskResultHook(BaseHook):
    """PostToolUse[Task] の完了ログフック"""

    hook_event_name = "PostToolUse"

    def should_process(self, input_data: Dict[str, Any]) -> bool:
        return input_data.get("tool_name", "") in TASK_TOOL_NAMES and bool(input_data.get("tool_use_id"))

    def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        tool_use_id = input_data["tool_use_id"]
        tool_input = input_data.get("tool_input") or {}
        record = self.create_coordinator().lookup(tool_use_id)

        if record is None:
            self.log_info(f"No task record for tool_use_id={tool_use_id}")

        summary = {
            "toolUseId": tool_use_id,
            "agentType": (record.agent_type if record else "") or tool_input.get("subagent_type", ""),
            "prompt": summarize((record.prompt if record else "") or tool_input.get("prompt")),
            "response": summarize(input_data.get("tool_response")),
            "recorded": record is not None,
        }
        if self.event_log is not None:
            self.event_log.log("task_result", summary)
        self.log_info(f"Task completed: tool_use_id={tool_use_id}, agent_type={summary['agentType']}")
        return passthrough_response(self.hook_event_name)


def main():
    """CLI エントリーポイント"""
    hook = TaskResultHook()
    sys.exit(hook.run())


if __name__ == "__main__":
    main()
