"""ドメインサービス"""

from .agent_definition import find_agent_definition, parse_frontmatter, preloaded_skill_files
from .correlation_coordinator import CorrelationCoordinator
from .edit_classifier import EditClassifier, extract_deleted_paths
from .task_call_matcher import TaskCall, find_pending_task_call, find_task_call_for_agent

__all__ = [
    'CorrelationCoordinator',
    'EditClassifier',
    'TaskCall',
    'extract_deleted_paths',
    'find_agent_definition',
    'find_pending_task_call',
    'find_task_call_for_agent',
    'parse_frontmatter',
    'preloaded_skill_files',
]
