"""
CLI providers - coding agents invoked as external command-line programs
"""

from pathlib import Path
from typing import List, Union

from taskloop.providers.base import Provider
from taskloop.utils.exceptions import ProviderError
from taskloop.utils.logger import get_logger
from taskloop.utils.process import run_command

logger = get_logger(__name__)


class CliProvider(Provider):
    """
    Runs a CLI agent once per iteration.

    ``args`` is the argument template; the literal ``{prompt}`` entry is
    replaced by the iteration prompt. Combined stdout/stderr is returned.
    """

    def __init__(self, name: str, executable: str, args: List[str], timeout_seconds: float = 0):
        self._name = name
        self.executable = executable
        self.args = list(args)
        self.timeout_seconds = timeout_seconds

    @property
    def name(self) -> str:
        return self._name

    def build_command(self, prompt: str) -> List[str]:
        return [self.executable] + [prompt if arg == "{prompt}" else arg for arg in self.args]

    async def run(self, prompt: str, work_dir: Union[str, Path]) -> str:
        argv = self.build_command(prompt)
        logger.debug(f"Running provider {self.name}", extra={"cwd": str(work_dir)})

        try:
            result = await run_command(argv, work_dir, self.timeout_seconds)
        except FileNotFoundError as e:
            raise ProviderError(self.name, f"executable not found: {self.executable}") from e
        except OSError as e:
            raise ProviderError(self.name, str(e)) from e

        if result.timed_out:
            raise ProviderError(
                self.name, f"timed out after {self.timeout_seconds:g}s", result.output
            )
        if result.returncode != 0:
            raise ProviderError(
                self.name, f"exit status {result.returncode}", result.output
            )
        return result.output


class ClaudeProvider(CliProvider):
    def __init__(self, timeout_seconds: float = 0):
        super().__init__(
            "claude", "claude", ["-p", "{prompt}", "--output-format", "text"], timeout_seconds
        )


class OpenCodeProvider(CliProvider):
    def __init__(self, timeout_seconds: float = 0):
        super().__init__(
            "opencode", "opencode", ["-p", "{prompt}", "-q", "-f", "text"], timeout_seconds
        )


class KimiProvider(CliProvider):
    def __init__(self, timeout_seconds: float = 0):
        super().__init__(
            "kimi", "kimi", ["--print", "-p", "{prompt}", "--final-message-only"], timeout_seconds
        )
