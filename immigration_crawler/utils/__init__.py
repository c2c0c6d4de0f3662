"""
Utility modules for the immigration crawler.
"""

from .config import Config, ConfigError, ConfigManager, build_config, load_config

__all__ = ['Config', 'ConfigError', 'ConfigManager', 'build_config', 'load_config']
