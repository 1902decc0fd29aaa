"""エージェント定義ファイル（.claude/agents/<type>.md）とプリロードスキルの解決"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import frontmatter
import yaml

from shared.constants import AGENTS_DIR, SKILL_FILE_NAME, SKILLS_DIR
from shared.structured_logging import get_logger

_logger = get_logger("AgentDefinition")


def find_agent_definition(cwd: str, subagent_type: str) -> Optional[str]:
    """<cwd>/.claude/agents/<subagent_type>.md が存在すればそのパスを返す

    Args:
        cwd: プロジェクトディレクトリ
        subagent_type: サブエージェントタイプ

    Returns:
        定義ファイルの絶対パス、存在しない場合None
    """
    if not cwd or not subagent_type or "/" in subagent_type or subagent_type in (".", ".."):
        return None
    path = Path(cwd) / AGENTS_DIR / f"{subagent_type}.md"
    return str(path) if path.is_file() else None


def parse_frontmatter(path: str) -> Dict[str, Any]:
    """Markdownファイル先頭のYAMLフロントマターを読み込む

    フロントマターが無い、または解析できない場合は空dict。
    """
    try:
        # utf-8-sig: BOM付きの定義ファイルも先頭の --- を認識させる
        with open(path, "r", encoding="utf-8-sig") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        _logger.warning(f"定義ファイル読み込み失敗: {path} ({e})")
        return {}

    try:
        post = frontmatter.loads(content)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        _logger.warning(f"フロントマター解析失敗: {path} ({e})")
        return {}
    return post.metadata if isinstance(post.metadata, dict) else {}


def preloaded_skill_files(definition_file: str, cwd: str) -> List[str]:
    """定義ファイルのskills指定を <cwd>/.claude/skills/<skill>/SKILL.md に変換

    skillsはリスト、またはカンマ区切り文字列を受け付ける。
    """
    skills = parse_frontmatter(definition_file).get("skills")
    if isinstance(skills, str):
        names = [s.strip() for s in skills.split(",")]
    elif isinstance(skills, list):
        names = [s.strip() for s in skills if isinstance(s, str)]
    else:
        return []

    files: List[str] = []
    for name in names:
        if not name:
            continue
        path = os.path.join(cwd, SKILLS_DIR, name, SKILL_FILE_NAME)
        if path not in files:
            files.append(path)
    return files
