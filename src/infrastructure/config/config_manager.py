"""設定管理 - .claude-task-ledger/config.yaml（またはconfig.json5）の読み込み"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import json5
import yaml

from shared.constants import (
    CONFIG_DIR_NAME,
    ENV_PROJECT_DIR,
    ENV_STRICT,
    MATCH_WINDOW_SECONDS,
    TASK_CALLS_STORE_PATH,
)
from shared.structured_logging import get_logger

_logger = get_logger("ConfigManager")

DEFAULT_CONFIG: Dict[str, Any] = {
    "task_tracking": {
        "store_path": TASK_CALLS_STORE_PATH,
        "match_window_seconds": MATCH_WINDOW_SECONDS,
    },
    "debug": {
        "enable_logging": False,
        "strict": False,
    },
}


class ConfigManager:
    """設定ファイルの探索・読み込み

    探索順序（config_path未指定時）:
    1. <project_dir>/.claude-task-ledger/config.yaml
    2. <project_dir>/.claude-task-ledger/config.json5
    project_dirはCLAUDE_PROJECT_DIR環境変数、なければPath.cwd()。
    """

    def __init__(self, config_path: Optional[Path] = None, project_dir: Optional[Path] = None):
        """
        初期化

        Args:
            config_path: 設定ファイルの明示パス
            project_dir: プロジェクトルート（省略時は環境変数/cwdから解決）
        """
        self.project_dir = Path(project_dir) if project_dir else self.resolve_project_dir()
        self.config_path = Path(config_path) if config_path else self._find_config_path()
        self.config = self._load()

    @staticmethod
    def resolve_project_dir() -> Path:
        """CLAUDE_PROJECT_DIR > cwd の順でプロジェクトルートを解決"""
        project_dir = os.environ.get(ENV_PROJECT_DIR)
        if project_dir:
            return Path(project_dir)
        return Path.cwd()

    def _find_config_path(self) -> Optional[Path]:
        config_dir = self.project_dir / CONFIG_DIR_NAME
        for name in ("config.yaml", "config.json5"):
            candidate = config_dir / name
            if candidate.exists():
                return candidate
        return None

    def _load(self) -> Dict[str, Any]:
        """設定を読み込みデフォルトにマージする（失敗時はデフォルトのみ）"""
        config = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_path is None or not self.config_path.exists():
            return config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                if self.config_path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json5.load(f)
        except Exception as e:
            # json5の構文エラーはValueError系、yamlはYAMLErrorで一律に扱えないため
            _logger.warning(f"設定ファイル読み込み失敗、デフォルトを使用: {self.config_path} ({e})")
            return config

        if not isinstance(data, dict):
            return config

        _logger.info(f"設定ファイル読み込み: {self.config_path}")
        return _deep_merge(config, data)

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """ドット区切りキーで設定値を取得（例: "debug.strict"）"""
        current: Any = self.config
        for part in dotted_key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    @property
    def store_path(self) -> Path:
        """Event Storeファイルの絶対パス"""
        path = Path(self.get("task_tracking.store_path", TASK_CALLS_STORE_PATH))
        return path if path.is_absolute() else self.project_dir / path

    @property
    def match_window_seconds(self) -> int:
        value = self.get("task_tracking.match_window_seconds", MATCH_WINDOW_SECONDS)
        return value if isinstance(value, int) and value >= 0 else MATCH_WINDOW_SECONDS

    @property
    def debug_logging_enabled(self) -> bool:
        return bool(self.get("debug.enable_logging", False))

    @property
    def strict(self) -> bool:
        """strictモード: 内部エラーをブロッキングレスポンスとして表面化する"""
        if os.environ.get(ENV_STRICT, "").lower() in ("1", "true", "yes"):
            return True
        return bool(self.get("debug.strict", False))


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = value
    return base
