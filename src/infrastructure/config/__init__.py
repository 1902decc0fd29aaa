"""設定インフラストラクチャ"""

from infrastructure.config.config_manager import DEFAULT_CONFIG, ConfigManager

__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG",
]
