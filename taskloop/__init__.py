"""
taskloop - Autonomous coding loop orchestrator

Runs an external coding agent ("provider") against each pending task of a
project, verifies the result with shell "gates", and retries with the
failure output until the gates pass or the iteration budget is spent.
Progress can be followed on the console or live through the dashboard
server.

Configuration:
    Tasks and loop settings live in taskloop.json (created by
    ``taskloop init``). Server and logging settings come from an optional
    config.properties file and TASKLOOP_* environment variables.

Example:
    >>> import asyncio
    >>> from taskloop import ConfigStore, StdoutLogger, default_registry, run_loop
    >>>
    >>> store = ConfigStore("taskloop.json")
    >>> summary = asyncio.run(run_loop(
    ...     store, "claude", default_registry(), ".", StdoutLogger()
    ... ))
    >>> print(summary)
"""

__version__ = "1.0.0"

from taskloop.config import AppSettings, ConfigStore
from taskloop.core import (
    EventHub,
    EventLogger,
    GateRunner,
    LoopController,
    LoopEngine,
    StdoutLogger,
    TaskService,
    run_loop,
)
from taskloop.models import Event, EventType, LoopConfig, LoopState, Task, TaskStatus
from taskloop.providers import Provider, ProviderRegistry, default_registry

__all__ = [
    "AppSettings",
    "ConfigStore",
    "EventHub",
    "EventLogger",
    "GateRunner",
    "LoopController",
    "LoopEngine",
    "StdoutLogger",
    "TaskService",
    "run_loop",
    "Event",
    "EventType",
    "LoopConfig",
    "LoopState",
    "Task",
    "TaskStatus",
    "Provider",
    "ProviderRegistry",
    "default_registry",
]
