"""pytest設定 - テストモジュールのパス設定と共通フィクスチャ"""

import json
import sys
from pathlib import Path

import pytest

# プロジェクトルートとsrcディレクトリのパス
project_root = Path(__file__).parent.parent
src_dir = project_root / "src"

# 正しいパスを先頭に追加（既存の場合は一度削除してから先頭へ）
for path in [str(src_dir), str(project_root)]:
    if path in sys.path:
        sys.path.remove(path)
    sys.path.insert(0, path)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """ホスト環境の設定がテストへ漏れないようにする"""
    for name in ("CLAUDE_PROJECT_DIR", "DEBUG", "CLAUDE_TASK_LEDGER_STRICT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def write_transcript(tmp_path):
    """dictのリスト（または生の文字列）を.jsonlへ書き出すファクトリ"""
    def _write(lines, name="transcript.jsonl"):
        path = tmp_path / name
        with open(path, "w", encoding="utf-8") as f:
            for line in lines:
                f.write((line if isinstance(line, str) else json.dumps(line)) + "\n")
        return path
    return _write


def tool_use(name, tool_use_id, tool_input, timestamp="2025-01-01T00:00:00Z", session_id="sess-1", cwd="/project"):
    """assistantのtool_use行"""
    return {
        "type": "assistant",
        "sessionId": session_id,
        "cwd": cwd,
        "timestamp": timestamp,
        "message": {
            "role": "assistant",
            "content": [{"type": "tool_use", "id": tool_use_id, "name": name, "input": tool_input}],
        },
    }


def tool_result(tool_use_id, content="ok", agent_id=None, timestamp="2025-01-01T00:00:05Z", session_id="sess-1"):
    """userのtool_result行"""
    line = {
        "type": "user",
        "sessionId": session_id,
        "timestamp": timestamp,
        "message": {
            "role": "user",
            "content": [{"type": "tool_result", "tool_use_id": tool_use_id, "content": content}],
        },
    }
    if agent_id:
        line["toolUseResult"] = {"agentId": agent_id, "status": "completed"}
    return line
