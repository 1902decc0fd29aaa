"""診断チャネルインフラストラクチャ"""

from infrastructure.diagnostics.hook_event_log import HookEventLog, is_debug_env_enabled

__all__ = [
    "HookEventLog",
    "is_debug_env_enabled",
]
