"""フック処理の基底クラス"""

import json
import os
import sys
from abc import ABC, abstractmethod
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Optional

from domain.services.correlation_coordinator import CorrelationCoordinator
from infrastructure.config.config_manager import ConfigManager
from infrastructure.diagnostics.hook_event_log import HookEventLog, is_debug_env_enabled
from infrastructure.store.json_event_store import JsonEventStore
from shared.constants import ENV_PROJECT_DIR
from shared.structured_logging import DEFAULT_LOG_DIR, StructuredLogger


class ExitCode(IntEnum):
    """Claude Code Hooks API 終了コード

    終了コードの意味:
    - SUCCESS (0): 成功。stdoutのJSON出力が処理される
    - ERROR (1): ノンブロッキングエラー。stderr表示後も処理続行
    - BLOCK (2): ブロッキングエラー。stderrをClaudeへ表示し処理ブロック
    """
    SUCCESS = 0
    ERROR = 1
    BLOCK = 2


def passthrough_response(hook_event_name: str) -> Dict[str, Any]:
    """処理をそのまま通すレスポンス（通常時のエラーにも使用）"""
    if hook_event_name == "PreToolUse":
        return {
            "hookSpecificOutput": {
                "hookEventName": "PreToolUse",
                "permissionDecision": "allow",
            }
        }
    if hook_event_name == "SessionStart":
        return {
            "hookSpecificOutput": {
                "hookEventName": "SessionStart",
                "additionalContext": "",
            }
        }
    return {}


def blocking_response(hook_event_name: str, error: BaseException) -> Dict[str, Any]:
    """strictモードでエラーを開発者へ表面化するブロッキングレスポンス"""
    message = str(error) or type(error).__name__
    response: Dict[str, Any] = {
        "continue": False,
        "stopReason": f"Hook error: {message}",
        "systemMessage": f"Hook {hook_event_name} failed: {message}",
    }

    if hook_event_name == "PreToolUse":
        response["hookSpecificOutput"] = {
            "hookEventName": "PreToolUse",
            "permissionDecision": "deny",
            "permissionDecisionReason": f"Hook error: {message}",
        }
    elif hook_event_name == "PostToolUse":
        response["decision"] = "block"
        response["reason"] = f"Hook error: {message}"
        response["hookSpecificOutput"] = {
            "hookEventName": "PostToolUse",
            "additionalContext": f"Hook error: {message}",
        }
    elif hook_event_name == "UserPromptSubmit":
        response["decision"] = "block"
        response["reason"] = f"Hook error: {message}"
        response["hookSpecificOutput"] = {
            "hookEventName": "UserPromptSubmit",
            "additionalContext": f"Hook error: {message}",
        }
    elif hook_event_name in ("SubagentStop", "Stop"):
        response["decision"] = "block"
        response["reason"] = f"Hook error: {message}"
    return response


class BaseHook(ABC):
    """Claude Code Hook処理の基底クラス

    stdinから1つのJSONを読み、stdoutへ1つのJSONを書いて終了する。
    内部エラーは既定でpassthroughレスポンスに変換し、ホストの処理を止めない。
    """

    # 入力にhook_event_nameが無い場合に使うイベント名
    hook_event_name = ""

    def __init__(self, config: Optional[ConfigManager] = None, log_dir: Optional[Path] = None):
        """
        初期化

        Args:
            config: 設定（省略時は入力のcwdから解決）
            log_dir: 構造化ログの出力先（デフォルト: DEFAULT_LOG_DIR）
        """
        self.config = config
        self.logger = StructuredLogger(name=self.__class__.__name__, log_dir=log_dir or DEFAULT_LOG_DIR)
        self.event_log: Optional[HookEventLog] = None
        self.strict = False

    def log_debug(self, message: str):
        """デバッグログ出力"""
        self.logger.debug(message)

    def log_info(self, message: str):
        """情報ログ出力"""
        self.logger.info(message)

    def log_error(self, message: str):
        """エラーログ出力"""
        self.logger.error(message)

    def read_input(self) -> Optional[Dict[str, Any]]:
        """
        標準入力からJSON入力を読み取る

        Returns:
            入力データの辞書（空入力・不正JSONの場合None）
        """
        try:
            raw = sys.stdin.read()
        except Exception as e:
            self.log_error(f"Unexpected error reading input: {e}")
            return None

        self.log_debug(f"Input JSON length: {len(raw)}")
        if not raw.strip():
            self.log_error("No input data received")
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self.log_error(f"JSON decode error: {e}, raw: {raw[:200]}")
            return None

        if not isinstance(data, dict):
            self.log_error(f"Input is not a JSON object: {type(data).__name__}")
            return None
        return data

    def write_output(self, response: Dict[str, Any]) -> None:
        """レスポンスJSONを1行でstdoutへ出力"""
        json_output = json.dumps(response, ensure_ascii=False)
        self.log_debug(f"Output JSON: {json_output}")
        print(json_output, flush=True)

    def resolve_project_dir(self, input_data: Dict[str, Any]) -> Path:
        """CLAUDE_PROJECT_DIR > 入力のcwd > Path.cwd() の順で解決"""
        project_dir = os.environ.get(ENV_PROJECT_DIR)
        if project_dir:
            return Path(project_dir)
        cwd = input_data.get("cwd")
        if isinstance(cwd, str) and cwd:
            return Path(cwd)
        return Path.cwd()

    def create_coordinator(self) -> CorrelationCoordinator:
        """設定に従ってCorrelationCoordinatorを生成"""
        config = self.config or ConfigManager()
        return CorrelationCoordinator(
            store=JsonEventStore(config.store_path),
            event_log=self.event_log,
            strict=self.strict,
            match_window_seconds=config.match_window_seconds,
        )

    @abstractmethod
    def should_process(self, input_data: Dict[str, Any]) -> bool:
        """
        処理対象かどうかを判定

        Args:
            input_data: 入力データ

        Returns:
            処理対象の場合True
        """

    @abstractmethod
    def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        フック処理を実行

        Args:
            input_data: 入力データ

        Returns:
            stdoutへ出力するレスポンス
        """

    def run(self) -> int:
        """
        フックのメインエントリーポイント

        Returns:
            ExitCode（JSONレスポンスを出力した場合は常にSUCCESS）
        """
        self.log_info(f"{'='*10} {self.__class__.__name__} Started {'='*10}")
        try:
            input_data = self.read_input()
            if input_data is None:
                self.write_output(passthrough_response(self.hook_event_name))
                return ExitCode.SUCCESS

            event_name = input_data.get("hook_event_name") or self.hook_event_name
            input_debug = input_data.get("debug") is True

            try:
                if self.config is None:
                    self.config = ConfigManager(project_dir=self.resolve_project_dir(input_data))
                self.strict = self.config.strict or input_debug
                self.event_log = HookEventLog(
                    cwd=str(self.config.project_dir),
                    event_name=event_name,
                    enabled=input_debug or is_debug_env_enabled() or self.config.debug_logging_enabled,
                )
                self.event_log.log_input(input_data)

                if not self.should_process(input_data):
                    self.log_debug("Not a target for processing, skipping")
                    response = passthrough_response(event_name)
                else:
                    response = self.process(input_data)
                self.event_log.log_output(response)
            except Exception as e:
                self.logger.exception(f"Unexpected error in run: {e}")
                if self.event_log is not None:
                    self.event_log.log_error(e)
                response = blocking_response(event_name, e) if self.strict else passthrough_response(event_name)

            self.write_output(response)
            return ExitCode.SUCCESS
        finally:
            self.log_info(f"{'='*10} {self.__class__.__name__} Ended {'='*10}")
