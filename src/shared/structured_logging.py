"""構造化ログ - JSON Lines形式のファイルログ

フックはstdoutをレスポンスJSON専用に使うため、ログはすべてファイルへ出力する。
ログディレクトリが作成できない場合はNullHandlerに退避し、呼び出し元を失敗させない。
"""

import json
import logging
import os
import tempfile
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from shared.constants import ENV_LOG_DIR


def _resolve_default_log_dir() -> Path:
    """ログディレクトリを解決（環境変数 > 一時ディレクトリ）"""
    override = os.environ.get(ENV_LOG_DIR)
    if override:
        return Path(override)
    return Path(tempfile.gettempdir()) / "claude-task-ledger" / "logs"


DEFAULT_LOG_DIR = _resolve_default_log_dir()


class JsonLineFormatter(logging.Formatter):
    """1レコード1行のJSONフォーマッタ"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(entry, ensure_ascii=False)


class StructuredLogger:
    """名前付きJSON Linesロガー

    同名のロガーを複数回生成してもハンドラは一つだけ登録される。
    """

    def __init__(self, name: str, log_dir: Optional[Path] = None, level: int = logging.DEBUG):
        """初期化

        Args:
            name: ロガー名（ログファイル名にも使用）
            log_dir: ログ出力ディレクトリ（デフォルト: DEFAULT_LOG_DIR）
            level: ログレベル
        """
        self.name = name
        self.log_dir = Path(log_dir) if log_dir else DEFAULT_LOG_DIR
        self._logger = logging.getLogger(f"claude_task_ledger.{name}")
        self._logger.setLevel(level)
        # ルートロガー経由でstderr/stdoutへ漏れないようにする
        self._logger.propagate = False
        if not self._logger.handlers:
            self._logger.addHandler(self._create_handler())

    @property
    def log_file(self) -> Path:
        """ログファイルパス"""
        return self.log_dir / f"{self.name}.jsonl"

    def _create_handler(self) -> logging.Handler:
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = logging.FileHandler(self.log_file, encoding="utf-8")
        except OSError:
            return logging.NullHandler()
        handler.setFormatter(JsonLineFormatter())
        return handler

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)

    def exception(self, message: str) -> None:
        """例外情報付きでエラーログ出力（exceptブロック内で使用）"""
        self._logger.exception(message)


def get_logger(name: str) -> StructuredLogger:
    """DEFAULT_LOG_DIRに出力するStructuredLoggerを取得"""
    return StructuredLogger(name=name, log_dir=DEFAULT_LOG_DIR)
