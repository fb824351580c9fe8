"""
Utilities module - Logging, prompts and the exception hierarchy
"""

from .logger import get_logger
from .comprehensive_logger import ComprehensiveLogger, TaskLogger
from .prompt_builder import PromptBuilder
from .exceptions import (
    TaskLoopError,
    ConfigurationError,
    ConfigStoreError,
    ValidationError,
    TaskNotFoundError,
    ConflictError,
    ProviderError,
    GateExecutionError,
)

__all__ = [
    'get_logger',
    'ComprehensiveLogger',
    'TaskLogger',
    'PromptBuilder',
    'TaskLoopError',
    'ConfigurationError',
    'ConfigStoreError',
    'ValidationError',
    'TaskNotFoundError',
    'ConflictError',
    'ProviderError',
    'GateExecutionError',
]
