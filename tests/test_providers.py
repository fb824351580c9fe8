"""
Test suite for providers and the provider registry.
"""

import asyncio
import sys

import pytest

from taskloop.providers import (
    ClaudeProvider,
    CliProvider,
    KimiProvider,
    OpenCodeProvider,
    ProviderRegistry,
    default_registry,
)
from taskloop.utils.exceptions import ProviderError


class TestProviderRegistry:
    """Test name-based provider lookup."""

    def setup_method(self):
        self.registry = default_registry()

    def test_default_registry_lists_builtins_sorted(self):
        assert self.registry.list() == ["claude", "kimi", "opencode"]

    def test_get_and_contains(self):
        assert isinstance(self.registry.get("claude"), ClaudeProvider)
        assert "kimi" in self.registry
        assert "gpt" not in self.registry
        assert self.registry.get("gpt") is None

    def test_register_replaces_same_name(self):
        registry = ProviderRegistry()
        registry.register(CliProvider("x", "a", []))
        registry.register(CliProvider("x", "b", []))
        assert len(registry) == 1
        assert registry.get("x").executable == "b"

    def test_format_models_marks_configured(self):
        assert self.registry.format_models("kimi") == (
            "  - claude\n"
            "  * kimi (configured)\n"
            "  - opencode"
        )

    def test_format_models_without_configured(self):
        assert "(configured)" not in self.registry.format_models("")


class TestCliProviderCommands:
    """Test the argument templates of the built-in providers."""

    @pytest.mark.parametrize("provider,expected", [
        (ClaudeProvider(), ["claude", "-p", "PROMPT", "--output-format", "text"]),
        (OpenCodeProvider(), ["opencode", "-p", "PROMPT", "-q", "-f", "text"]),
        (KimiProvider(), ["kimi", "--print", "-p", "PROMPT", "--final-message-only"]),
    ])
    def test_build_command(self, provider, expected):
        assert provider.build_command("PROMPT") == expected


class TestCliProviderRun:
    """Run real subprocesses through CliProvider (uses the current interpreter)."""

    def _provider(self, code, timeout=0):
        return CliProvider("py", sys.executable, ["-c", code, "{prompt}"], timeout)

    def test_returns_output(self, tmp_path):
        provider = self._provider("import sys; print('got ' + sys.argv[1])")
        output = asyncio.run(provider.run("hello", tmp_path))
        assert output.strip() == "got hello"

    def test_runs_in_work_dir(self, tmp_path):
        provider = self._provider("import os; print(os.getcwd())")
        output = asyncio.run(provider.run("x", tmp_path))
        assert output.strip() == str(tmp_path.resolve())

    def test_non_zero_exit_raises_with_output(self, tmp_path):
        provider = self._provider("import sys; print('bad'); sys.exit(3)")
        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(provider.run("x", tmp_path))
        assert "exit status 3" in str(exc_info.value)
        assert "bad" in exc_info.value.output

    def test_missing_executable_raises(self, tmp_path):
        provider = CliProvider("ghost", "taskloop-no-such-binary", ["{prompt}"])
        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(provider.run("x", tmp_path))
        assert "executable not found" in str(exc_info.value)

    def test_timeout_raises(self, tmp_path):
        provider = self._provider("import time; time.sleep(30)", timeout=0.3)
        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(provider.run("x", tmp_path))
        assert "timed out" in str(exc_info.value)

    def test_cancellation_kills_process(self, tmp_path):
        marker = tmp_path / "finished"
        provider = self._provider(
            f"import time; time.sleep(5); open({str(marker)!r}, 'w').close()"
        )

        async def scenario():
            task = asyncio.create_task(provider.run("x", tmp_path))
            await asyncio.sleep(0.3)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert not marker.exists()
