"""
Managers for configuration
"""

from .config_manager import ConfigManager, ConfigError
from .feature_list import FeatureList

__all__ = ['ConfigManager', 'ConfigError', 'FeatureList']
