"""
Process helpers - run an external command with captured output.

Both helpers are cancellation points: if the awaiting task is cancelled the
child process group is terminated and reaped before CancelledError
propagates. A timeout terminates the process the same way and is reported
through ``ProcessResult.timed_out``.
"""

import asyncio
import os
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

PathLike = Union[str, Path]

_TERMINATE_GRACE_SECONDS = 2.0


@dataclass
class ProcessResult:
    """Outcome of one external command."""
    returncode: Optional[int]
    output: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


async def run_command(argv: List[str], cwd: PathLike, timeout_seconds: float = 0) -> ProcessResult:
    """Run *argv* in *cwd*, capturing stdout and stderr together."""
    process = await asyncio.create_subprocess_exec(
        *argv,
        cwd=str(cwd),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
        start_new_session=True,
    )
    return await _communicate(process, timeout_seconds)


async def run_shell(command: str, cwd: PathLike, timeout_seconds: float = 0) -> ProcessResult:
    """Run *command* through the shell in *cwd*, capturing combined output."""
    process = await asyncio.create_subprocess_shell(
        command,
        cwd=str(cwd),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
        start_new_session=True,
    )
    return await _communicate(process, timeout_seconds)


async def _communicate(process: asyncio.subprocess.Process, timeout_seconds: float) -> ProcessResult:
    try:
        if timeout_seconds and timeout_seconds > 0:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout_seconds)
        else:
            stdout, _ = await process.communicate()
    except asyncio.TimeoutError:
        await _terminate_process(process)
        return ProcessResult(returncode=process.returncode, output="", timed_out=True)
    except asyncio.CancelledError:
        await _terminate_process(process)
        raise

    return ProcessResult(
        returncode=process.returncode,
        output=(stdout or b"").decode("utf-8", errors="replace"),
    )


def _signal_group(process: asyncio.subprocess.Process, sig: int) -> None:
    try:
        os.killpg(process.pid, sig)
    except (ProcessLookupError, PermissionError):
        pass


async def _terminate_process(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    _signal_group(process, signal.SIGTERM)
    try:
        await asyncio.wait_for(process.wait(), _TERMINATE_GRACE_SECONDS)
    except asyncio.TimeoutError:
        _signal_group(process, signal.SIGKILL)
        await process.wait()
