"""Task呼び出し記録フック

PreToolUse[Task] で起動内容（subagent_type, prompt等）をtool_use_idをキーに
Event Storeへ保存する。Task自体は常に許可する。
"""

import sys
from pathlib import Path
from typing import Any, Dict

sys.path.append(str(Path(__file__).parent.parent.parent))

from domain.hooks.base_hook import BaseHook, passthrough_response
from shared.constants import TASK_TOOL_NAMES


class TaskCallHook(BaseHook):
    """PreToolUse[Task] の開始記録フック"""

    hook_event_name = "PreToolUse"

    def should_process(self, input_data: Dict[str, Any]) -> bool:
        tool_name = input_data.get("tool_name", "")
        if tool_name not in TASK_TOOL_NAMES:
            self.log_debug(f"Not a task tool: {tool_name}")
            return False
        if not input_data.get("tool_use_id"):
            self.log_info("tool_use_id missing, skipping task record")
            return False
        return True

    def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        tool_input = input_data.get("tool_input") or {}
        tool_use_id = input_data["tool_use_id"]

        self.create_coordinator().on_task_start(tool_use_id, {
            "tool_use_id": tool_use_id,
            "agent_type": tool_input.get("subagent_type") or "",
            "prompt": tool_input.get("prompt") or "",
            "session_id": input_data.get("session_id") or "",
            "cwd": input_data.get("cwd") or "",
        })
        self.log_info(f"Task call recorded: tool_use_id={tool_use_id}")
        return passthrough_response(self.hook_event_name)


def main():
    """CLI エントリーポイント"""
    hook = TaskCallHook()
    sys.exit(hook.run())


if __name__ == "__main__":
    main()
