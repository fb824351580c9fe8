"""
Providers module - Agent capabilities invoked by the loop engine
"""

from .base import Provider
from .cli_provider import CliProvider, ClaudeProvider, OpenCodeProvider, KimiProvider
from .registry import ProviderRegistry, default_registry

__all__ = [
    'Provider',
    'CliProvider',
    'ClaudeProvider',
    'OpenCodeProvider',
    'KimiProvider',
    'ProviderRegistry',
    'default_registry',
]
