"""EditClassifier - トランスクリプトからファイル操作を分類する

ファイルシステムの前後比較ではなく、トランスクリプト上のツール呼び出しに基づく近似。
タスク開始前から存在したファイルへの初回Writeも「作成」と判定される。
"""

import os
import re
import shlex
from typing import Dict, Iterable, List, Optional

from domain.models.records import FileOperationReport
from domain.models.transcript_events import ToolInvocation, TranscriptEvent
from shared.constants import (
    COMMAND_TOOL_NAMES,
    EDIT_TOOL_PATH_ARGS,
    READ_TOOL_NAMES,
    SKILL_FILE_NAME,
    SKILL_TOOL_NAMES,
    SKILLS_DIR,
    WRITE_TOOL_NAMES,
)

CREATED = "created"
EDITED = "edited"
DELETED = "deleted"

# コマンド区切り（||は|より先に評価する）
_COMMAND_SEPARATOR = re.compile(r"\s*(?:&&|\|\||;|\||\n)\s*")

# グロブ・シェル展開を含むトークンは対象外
_UNSAFE_PATH_CHARS = set("*?[]$`{}")

_SKILL_FILE_PATTERN = re.compile(r"(?:^|/)\.claude/skills/[^/]+/SKILL\.md$")
_AGENT_FILE_PATTERN = re.compile(r"(?:^|/)\.claude/agents/[^/]+\.md$")


class EditClassifier:
    """ツール呼び出し列からcreated/edited/deletedを判定する。

    判定規則（単一パス、path → status の作業マップ）:
    - Write: 未登場パスのみcreated。既にcreated/editedなら据え置き
    - Edit系: 未登場パスのみedited（未登場パスへのEditは既存ファイルの変更とみなす）
    - Bashの削除コマンド: 以前の状態に関わらずdeleted
    """

    def __init__(self, cwd: Optional[str] = None):
        """
        初期化

        Args:
            cwd: 相対パス解決用の作業ディレクトリ
        """
        self.cwd = cwd

    def classify(self, events: Iterable[TranscriptEvent]) -> FileOperationReport:
        """イベント列を分類してFileOperationReportを返す

        メタデータ（subagent_type, prompt等）は空のまま。呼び出し側でマージする。
        """
        statuses: Dict[str, str] = {}
        skill_files: List[str] = []
        definition_file: Optional[str] = None

        for event in events:
            if not isinstance(event, ToolInvocation):
                continue

            name = event.tool_name
            args = event.arguments

            if name in WRITE_TOOL_NAMES:
                path = self._resolve(args.get("file_path"))
                if path and path not in statuses:
                    statuses[path] = CREATED

            elif name in EDIT_TOOL_PATH_ARGS:
                path = self._resolve(args.get(EDIT_TOOL_PATH_ARGS[name]))
                if path and path not in statuses:
                    statuses[path] = EDITED

            elif name in COMMAND_TOOL_NAMES:
                command = args.get("command")
                if isinstance(command, str):
                    for raw_path in extract_deleted_paths(command):
                        path = self._resolve(raw_path)
                        if path:
                            statuses[path] = DELETED

            elif name in SKILL_TOOL_NAMES:
                skill_name = args.get("skill") or args.get("command")
                if isinstance(skill_name, str) and skill_name.strip():
                    _append_unique(skill_files, self._skill_file(skill_name.strip()))

            elif name in READ_TOOL_NAMES:
                path = self._resolve(args.get("file_path"))
                if not path:
                    continue
                if _SKILL_FILE_PATTERN.search(path):
                    _append_unique(skill_files, path)
                elif _AGENT_FILE_PATTERN.search(path) and definition_file is None:
                    definition_file = path

        return FileOperationReport(
            created=[p for p, s in statuses.items() if s == CREATED],
            edited=[p for p, s in statuses.items() if s == EDITED],
            deleted=[p for p, s in statuses.items() if s == DELETED],
            definition_file=definition_file,
            preloaded_skill_files=skill_files,
        )

    def _resolve(self, path: object) -> Optional[str]:
        """相対パスをcwd基準の絶対パスにする（cwd不明時はそのまま）"""
        if not isinstance(path, str) or not path:
            return None
        if os.path.isabs(path) or not self.cwd:
            return path
        return os.path.normpath(os.path.join(self.cwd, path))

    def _skill_file(self, skill_name: str) -> str:
        relative = os.path.join(SKILLS_DIR, skill_name, SKILL_FILE_NAME)
        return os.path.join(self.cwd, relative) if self.cwd else relative


def extract_deleted_paths(command: str) -> List[str]:
    """コマンド文字列から削除対象パスを保守的に抽出する

    対象: rm / git rm / unlink（sudo前置を許容）。
    オプション、グロブ・変数展開を含むトークン、~始まりのトークンは無視する。
    git rm --cached はディスク上のファイルを消さないため対象外。
    """
    paths: List[str] = []
    for segment in _COMMAND_SEPARATOR.split(command):
        if not segment:
            continue
        try:
            tokens = shlex.split(segment)
        except ValueError:
            # 閉じていないクォート等
            continue

        if tokens and tokens[0] == "sudo":
            tokens = tokens[1:]
        if not tokens:
            continue

        if tokens[0] in ("rm", "unlink"):
            args = tokens[1:]
        elif tokens[0] == "git" and len(tokens) > 1 and tokens[1] == "rm":
            args = tokens[2:]
            if "--cached" in args:
                continue
        else:
            continue

        end_of_options = False
        for token in args:
            if not end_of_options and token == "--":
                end_of_options = True
                continue
            if not end_of_options and token.startswith("-"):
                continue
            if token.startswith("~") or _UNSAFE_PATH_CHARS.intersection(token):
                continue
            _append_unique(paths, token)
    return paths


def _append_unique(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)
