"""
Shared fixtures and fakes for the taskloop test suite.

Providers and gate runners are replaced by in-process fakes so tests never
depend on an installed agent CLI.
"""

import asyncio
import time
from typing import Callable, Iterable, List, Optional

import pytest

from taskloop.config import ConfigStore
from taskloop.core.gates import GateResult
from taskloop.models import LoopConfig, Task
from taskloop.providers import Provider, ProviderRegistry
from taskloop.utils.exceptions import ProviderError


class FakeProvider(Provider):
    """
    Records every prompt. Fails the first ``fail_times`` calls and blocks
    forever (until cancelled) on tasks whose title is in ``block_titles``.
    """

    def __init__(self, name: str = "fake", fail_times: int = 0, block_titles: Iterable[str] = ()):
        self._name = name
        self.fail_times = fail_times
        self.block_titles = set(block_titles)
        self.calls: List[str] = []
        self.cancelled = 0

    @property
    def name(self) -> str:
        return self._name

    async def run(self, prompt, work_dir):
        self.calls.append(prompt)
        if any(f"## Task: {title}\n" in prompt for title in self.block_titles):
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if len(self.calls) <= self.fail_times:
            raise ProviderError(self.name, "boom", "partial output")
        return "done"


class FakeGateRunner:
    """Passes every command for which ``passes(command)`` is true."""

    def __init__(self, passes: Optional[Callable[[str], bool]] = None, error: Optional[Exception] = None):
        self.passes = passes or (lambda command: True)
        self.error = error
        self.calls = 0

    async def run(self, commands, work_dir):
        self.calls += 1
        if self.error is not None:
            raise self.error
        results = []
        for command in commands:
            passed = self.passes(command)
            results.append(GateResult(command, passed, "" if passed else f"{command}: failed"))
        return results


class RecordingLogger:
    """Progress sink that keeps every message."""

    def __init__(self):
        self.messages: List[str] = []

    def log(self, message: str) -> None:
        self.messages.append(message)


def make_registry(*providers: Provider) -> ProviderRegistry:
    registry = ProviderRegistry()
    for provider in providers:
        registry.register(provider)
    return registry


def write_config(path, tasks=None, gates=None, max_iterations=3, provider="fake") -> ConfigStore:
    store = ConfigStore(path)
    store.save(LoopConfig(
        name="test-project",
        provider=provider,
        branch="main",
        gates=list(gates or []),
        max_iterations=max_iterations,
        tasks=list(tasks or []),
    ))
    return store


def pending(task_id: str, title: Optional[str] = None, **kwargs) -> Task:
    return Task(id=task_id, title=title or f"T{task_id}", **kwargs)


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "taskloop.json"
