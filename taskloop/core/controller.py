"""
Loop Controller - the single owner of the background loop run

start/stop/skip/status are the only way to drive the engine. At most one
run exists at a time. Run state changes happen under the store lock, the
same lock that guards every config read-modify-write, so a control request
can never interleave with an engine status transition.

State machine::

    IDLE --start()--> RUNNING --run finishes--> IDLE
                         |
                   stop() / skip()
                         v
                     STOPPING --run unwound--> IDLE
                                        (skip may immediately restart)

A run is retired (state back to IDLE) only once its task has finished;
stop and skip stop waiting after the stop timeout but leave the state at
STOPPING, so a new start cannot overlap a run that is still unwinding.
Terminal events (loop_completed / loop_error) of a cancelled run are never
broadcast, so an observer that saw loop_stopped does not see a late
completion.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, TextIO, Union

from taskloop.config.config_store import ConfigStore
from taskloop.core import messages
from taskloop.core.engine import LoopEngine
from taskloop.core.event_bus import EventHub
from taskloop.core.event_logger import EventLogger
from taskloop.core.gates import GateRunner
from taskloop.models import EventType, LoopState, TaskStatus, create_event
from taskloop.providers.registry import ProviderRegistry
from taskloop.utils.exceptions import ConflictError, ValidationError
from taskloop.utils.logger import get_logger

logger = get_logger(__name__)

CANCEL_STOP = "stop"
CANCEL_SKIP = "skip"


@dataclass
class _Run:
    provider: str
    task: Optional["asyncio.Task"] = None
    cancel_reason: Optional[str] = None


class LoopController:
    """
    Starts, stops and skips the background loop run.

    Args:
        store: Config store; its lock is the process-wide mutual exclusion
        registry: Providers available to the engine
        hub: Event hub receiving control and progress events
        work_dir: Directory providers and gates run in
        gate_runner: Gate capability handed to each engine run
        stop_timeout_seconds: How long stop/skip wait for a cancelled run
            to unwind (0 waits indefinitely)
        transcript: Stream for the console transcript (stdout by default)
    """

    def __init__(
        self,
        store: ConfigStore,
        registry: ProviderRegistry,
        hub: EventHub,
        work_dir: Union[str, Path],
        gate_runner: Optional[GateRunner] = None,
        stop_timeout_seconds: float = 10.0,
        transcript: Optional[TextIO] = None,
    ):
        self.store = store
        self.registry = registry
        self.hub = hub
        self.work_dir = Path(work_dir)
        self.gate_runner = gate_runner
        self.stop_timeout_seconds = stop_timeout_seconds
        self.transcript = transcript

        self.state = LoopState.IDLE
        self._run: Optional[_Run] = None

    @property
    def running(self) -> bool:
        return self.state == LoopState.RUNNING

    def status(self) -> Dict[str, bool]:
        return {"running": self.running}

    async def start(self) -> Dict[str, str]:
        async with self.store.lock:
            if self.state != LoopState.IDLE:
                raise ConflictError("loop already running")
            return self._start_locked()

    async def stop(self) -> Dict[str, str]:
        """Cancel the active run (if any) and wait for it to unwind."""
        await self._cancel_and_wait()
        self.hub.broadcast(create_event(EventType.LOOP_STOPPED))
        return {"status": "stopped"}

    async def shutdown(self) -> None:
        """Stop silently; used when the server goes away."""
        await self._cancel_and_wait()

    async def skip(self) -> Dict[str, str]:
        """
        Fail the in-progress task, cancel the run, and start a fresh run
        over whatever is still pending.
        """
        async with self.store.lock:
            if self.state != LoopState.RUNNING or self._run is None:
                raise ConflictError("no loop running")
            run = self._run

            config = self.store.load()
            task = config.in_progress_task()
            if task is not None:
                task.status = TaskStatus.FAILED
                task.append_learning(messages.LEARNING_SKIPPED)
                self.store.save(config)
                self.hub.broadcast(create_event(EventType.TASK_FAILED, task.id, reason="skipped"))
                logger.info(f"Task #{task.id} skipped by user")

            self._cancel_locked(run, CANCEL_SKIP)

        await self._wait_for(run)

        async with self.store.lock:
            restart = run.cancel_reason == CANCEL_SKIP
            if run.task.done():
                self._retire_locked(run)
            if restart and self.state == LoopState.IDLE:
                try:
                    outcome = self._start_locked()
                    logger.info(f"Restart after skip: {outcome['status']}")
                except ValidationError as e:
                    logger.warning(f"Not restarting after skip: {e}")

        return {"status": "skipped"}

    # ------------------------------------------------------------------
    # Internals (names ending in _locked expect the store lock to be held)
    # ------------------------------------------------------------------

    def _start_locked(self) -> Dict[str, str]:
        config = self.store.load()
        if config.next_pending_task() is None:
            return {"status": "completed", "message": "no pending tasks"}
        if config.max_iterations < 1:
            raise ValidationError("maxIterations must be >= 1", "maxIterations")

        run = _Run(provider=config.provider)
        run.task = asyncio.create_task(self._execute(run))
        # callbacks run between coroutine steps, never inside a locked section
        run.task.add_done_callback(lambda _: self._retire_locked(run))
        self._run = run
        self.state = LoopState.RUNNING

        self.hub.broadcast(create_event(EventType.LOOP_STARTED, provider=config.provider))
        logger.info("Loop started", extra={"provider": config.provider})
        return {"status": "started"}

    def _cancel_locked(self, run: _Run, reason: str) -> None:
        run.cancel_reason = reason
        run.task.cancel()
        self.state = LoopState.STOPPING

    def _retire_locked(self, run: _Run) -> None:
        if self._run is run:
            self._run = None
            self.state = LoopState.IDLE

    async def _cancel_and_wait(self) -> None:
        async with self.store.lock:
            run = self._run
            if run is None:
                return
            self._cancel_locked(run, CANCEL_STOP)

        await self._wait_for(run)

        async with self.store.lock:
            if run.task.done():
                self._retire_locked(run)
        logger.info("Loop stopped")

    async def _wait_for(self, run: _Run) -> None:
        timeout = self.stop_timeout_seconds or None
        done, _ = await asyncio.wait({run.task}, timeout=timeout)
        if not done:
            logger.warning(f"Loop run did not stop within {self.stop_timeout_seconds:g}s")

    async def _execute(self, run: _Run) -> None:
        """Background body of one run."""
        engine = LoopEngine(
            self.store,
            self.registry,
            self.work_dir,
            EventLogger(self.hub, self.transcript),
            self.gate_runner,
        )
        error: Optional[BaseException] = None
        try:
            await engine.run(run.provider)
        except asyncio.CancelledError:
            if run.cancel_reason is None:
                async with self.store.lock:
                    self._retire_locked(run)
            raise
        except Exception as e:
            logger.log_exception("Loop run failed", e)
            error = e

        async with self.store.lock:
            if run.cancel_reason is not None:
                return
            self._retire_locked(run)

        if error is not None:
            self.hub.broadcast(create_event(EventType.LOOP_ERROR, error=str(error)))
        else:
            self.hub.broadcast(create_event(EventType.LOOP_COMPLETED))
