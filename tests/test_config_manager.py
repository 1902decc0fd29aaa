"""ConfigManagerのテスト - 設定ファイルの探索とデフォルト値"""

from pathlib import Path

import pytest

from infrastructure.config.config_manager import DEFAULT_CONFIG, ConfigManager


@pytest.fixture
def config_dir(tmp_path):
    path = tmp_path / ".claude-task-ledger"
    path.mkdir()
    return path


class TestConfigLoading:
    """設定ファイル探索の優先順位"""

    def test_defaults_without_config_file(self, tmp_path):
        manager = ConfigManager(project_dir=tmp_path)

        assert manager.config_path is None
        assert manager.config == DEFAULT_CONFIG
        assert manager.store_path == tmp_path / ".claude" / "logs" / "task-calls.json"
        assert manager.match_window_seconds == 10
        assert manager.debug_logging_enabled is False
        assert manager.strict is False

    def test_yaml_config_is_merged_over_defaults(self, tmp_path, config_dir):
        (config_dir / "config.yaml").write_text(
            "task_tracking:\n  match_window_seconds: 30\ndebug:\n  enable_logging: true\n",
            encoding="utf-8",
        )

        manager = ConfigManager(project_dir=tmp_path)

        assert manager.match_window_seconds == 30
        assert manager.debug_logging_enabled is True
        # 指定の無いキーはデフォルトのまま
        assert manager.get("task_tracking.store_path") == ".claude/logs/task-calls.json"
        assert manager.strict is False

    def test_json5_config(self, tmp_path, config_dir):
        (config_dir / "config.json5").write_text(
            "{\n  // comment\n  debug: {strict: true,},\n}\n", encoding="utf-8"
        )
        manager = ConfigManager(project_dir=tmp_path)
        assert manager.config_path == config_dir / "config.json5"
        assert manager.strict is True

    def test_yaml_wins_over_json5(self, tmp_path, config_dir):
        (config_dir / "config.yaml").write_text("debug:\n  strict: false\n", encoding="utf-8")
        (config_dir / "config.json5").write_text("{debug: {strict: true}}", encoding="utf-8")

        manager = ConfigManager(project_dir=tmp_path)

        assert manager.config_path == config_dir / "config.yaml"
        assert manager.strict is False

    def test_explicit_config_path(self, tmp_path):
        explicit = tmp_path / "custom.yaml"
        explicit.write_text("task_tracking:\n  store_path: /var/tmp/store.json\n", encoding="utf-8")

        manager = ConfigManager(config_path=explicit, project_dir=tmp_path)

        assert manager.config_path == explicit
        assert manager.store_path == Path("/var/tmp/store.json")

    def test_project_dir_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CLAUDE_PROJECT_DIR", str(tmp_path))
        assert ConfigManager().project_dir == tmp_path

    def test_invalid_yaml_falls_back_to_defaults(self, tmp_path, config_dir):
        (config_dir / "config.yaml").write_text("debug: [unclosed\n", encoding="utf-8")
        assert ConfigManager(project_dir=tmp_path).config == DEFAULT_CONFIG

    def test_non_mapping_config_falls_back_to_defaults(self, tmp_path, config_dir):
        (config_dir / "config.yaml").write_text("- a\n- b\n", encoding="utf-8")
        assert ConfigManager(project_dir=tmp_path).config == DEFAULT_CONFIG

    def test_invalid_window_uses_default(self, tmp_path, config_dir):
        (config_dir / "config.yaml").write_text(
            "task_tracking:\n  match_window_seconds: soon\n", encoding="utf-8"
        )
        assert ConfigManager(project_dir=tmp_path).match_window_seconds == 10


class TestStrictMode:
    """strictモードの判定"""

    @pytest.mark.parametrize("value", ["1", "true", "YES"])
    def test_env_enables_strict(self, tmp_path, monkeypatch, value):
        monkeypatch.setenv("CLAUDE_TASK_LEDGER_STRICT", value)
        assert ConfigManager(project_dir=tmp_path).strict is True

    def test_env_other_value_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CLAUDE_TASK_LEDGER_STRICT", "0")
        assert ConfigManager(project_dir=tmp_path).strict is False


class TestGet:

    def test_missing_key_returns_default(self, tmp_path):
        manager = ConfigManager(project_dir=tmp_path)
        assert manager.get("nope.deeper", "fallback") == "fallback"
        assert manager.get("debug.strict.too_deep") is None
