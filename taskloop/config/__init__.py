"""
Configuration module - Application settings and loop config persistence
"""

from .config_properties import ConfigProperties
from .settings import AppSettings, DEFAULT_CONFIG_FILE
from .config_store import ConfigStore

__all__ = [
    'ConfigProperties',
    'AppSettings',
    'DEFAULT_CONFIG_FILE',
    'ConfigStore',
]
