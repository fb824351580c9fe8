"""
Gates - ordered verification commands run after each provider attempt
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from taskloop.utils.exceptions import GateExecutionError
from taskloop.utils.logger import get_logger
from taskloop.utils.process import run_shell

logger = get_logger(__name__)


@dataclass
class GateResult:
    command: str
    passed: bool
    output: str = ""


class GateRunner:
    """
    Runs gate commands through the shell, one after another.

    A command passes when it exits with status 0. A command that exceeds
    ``timeout_seconds`` is killed and reported as failed. Only an inability
    to run the commands at all raises ``GateExecutionError``.
    """

    def __init__(self, timeout_seconds: float = 0):
        self.timeout_seconds = timeout_seconds

    async def run(self, commands: List[str], work_dir: Union[str, Path]) -> List[GateResult]:
        if not Path(work_dir).is_dir():
            raise GateExecutionError(
                commands[0] if commands else "", f"working directory does not exist: {work_dir}"
            )

        results = []
        for command in commands:
            started = time.monotonic()
            try:
                outcome = await run_shell(command, work_dir, self.timeout_seconds)
            except OSError as e:
                raise GateExecutionError(command, str(e), e) from e

            if outcome.timed_out:
                result = GateResult(
                    command, False, f"gate timed out after {self.timeout_seconds:g}s"
                )
            else:
                result = GateResult(command, outcome.returncode == 0, outcome.output)

            logger.log_performance(
                f"gate '{command}'", time.monotonic() - started, result.passed
            )
            results.append(result)
        return results


def all_passed(results: List[GateResult]) -> bool:
    return all(r.passed for r in results)


def gate_failure_summary(results: List[GateResult]) -> str:
    """Concatenate every failing gate's command and output for the next prompt."""
    parts = []
    for result in results:
        if not result.passed:
            parts.append(f"FAIL: {result.command}\n{result.output}\n")
    return "".join(parts)
