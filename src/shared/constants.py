"""共通定数"""

# Event Store（保留中タスクレコード）の既定パス（プロジェクトディレクトリ相対）
TASK_CALLS_STORE_PATH = ".claude/logs/task-calls.json"

# 診断チャネル（hook-events.json）の既定パス
HOOK_EVENTS_LOG_PATH = ".claude/logs/hook-events.json"

# 設定ディレクトリ名
CONFIG_DIR_NAME = ".claude-task-ledger"

# エージェント定義・スキルファイルの配置
AGENTS_DIR = ".claude/agents"
SKILLS_DIR = ".claude/skills"
SKILL_FILE_NAME = "SKILL.md"

# サブエージェント起動ツール名
TASK_TOOL_NAMES = frozenset(["Task", "Agent"])

# ファイル全体を書き込むツール
WRITE_TOOL_NAMES = frozenset(["Write"])

# ファイルを部分編集するツール（ツール名 → パス引数名）
EDIT_TOOL_PATH_ARGS = {
    "Edit": "file_path",
    "MultiEdit": "file_path",
    "NotebookEdit": "notebook_path",
}

# コマンド実行ツール
COMMAND_TOOL_NAMES = frozenset(["Bash"])

# スキル読み込みツール
SKILL_TOOL_NAMES = frozenset(["Skill"])

# ファイル読み込みツール
READ_TOOL_NAMES = frozenset(["Read"])

# Task呼び出しとエージェント開始時刻のあいまいマッチ許容幅（秒）
MATCH_WINDOW_SECONDS = 10

# 診断チャネルに残すprompt/responseの最大長
SUMMARY_MAX_LEN = 200

# 環境変数
ENV_PROJECT_DIR = "CLAUDE_PROJECT_DIR"
ENV_DEBUG = "DEBUG"
ENV_STRICT = "CLAUDE_TASK_LEDGER_STRICT"
ENV_LOG_DIR = "CLAUDE_TASK_LEDGER_LOG_DIR"
