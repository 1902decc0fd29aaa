"""HookEventLog - フック入出力の診断チャネル

<cwd>/.claude/logs/hook-events.json に1行1イベントのJSONを追記する。
診断ログの書き込み失敗でフック本体を失敗させない。
"""

import json
import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from shared.constants import ENV_DEBUG, HOOK_EVENTS_LOG_PATH
from shared.structured_logging import get_logger

_logger = get_logger("HookEventLog")


def is_debug_env_enabled() -> bool:
    """DEBUG環境変数が '*' または 'task' を含む場合True"""
    value = os.environ.get(ENV_DEBUG, "")
    return value == "*" or "task" in value


class HookEventLog:
    """フックイベントのJSON Lines追記ロガー"""

    def __init__(self, cwd: str, event_name: str, enabled: bool, log_path: Optional[Path] = None):
        """初期化

        Args:
            cwd: ログを置くプロジェクトディレクトリ
            event_name: フックイベント名（SubagentStop等）
            enabled: Falseの場合は何も書かない
            log_path: ログファイルの明示パス（テスト用）
        """
        self.event_name = event_name
        self.enabled = enabled
        self.log_path = Path(log_path) if log_path else Path(cwd or ".") / HOOK_EVENTS_LOG_PATH

    def log_input(self, data: Any) -> None:
        self.log("input", data)

    def log_output(self, data: Any) -> None:
        self.log("output", data)

    def log_error(self, error: BaseException) -> None:
        self.log("error", {
            "name": type(error).__name__,
            "message": str(error),
            "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        })

    def log(self, entry_type: str, data: Any) -> None:
        """任意種別のエントリを追記（無効時は何もしない）"""
        if not self.enabled:
            return

        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": self.event_name,
            "type": entry_type,
            "data": data,
        }
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except Exception as e:
            _logger.warning(f"診断ログ書き込み失敗: {self.log_path} ({e})")
