"""
Loop Engine - one sequential pass over every pending task

For each pending task (in list order) the engine:
1. Claims it (InProgress, persisted immediately)
2. Resolves the provider (task override, else the run default)
3. Iterates up to maxIterations: prompt -> provider -> gates
4. Persists the terminal outcome (Done or Failed)

Provider failures and failing gates are retried within the iteration
budget. An unknown provider fails only that task. A gate runner that cannot
execute at all aborts the run with ``GateExecutionError``.

Every status transition reloads the config under the store lock and changes
only the task it owns, so concurrent edits to other tasks are never lost.
"""

import asyncio
import dataclasses
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from taskloop.config.config_store import ConfigStore
from taskloop.core import messages
from taskloop.core.gates import GateRunner, all_passed, gate_failure_summary
from taskloop.models import Task, TaskStatus
from taskloop.providers.base import Provider
from taskloop.providers.registry import ProviderRegistry
from taskloop.utils.exceptions import ConfigStoreError, GateExecutionError, ValidationError
from taskloop.utils.logger import get_logger
from taskloop.utils.prompt_builder import PromptBuilder

logger = get_logger(__name__)


class LoopEngine:
    """
    Drives the retry/iteration state machine for one run.

    Args:
        store: Config store (its lock guards every transition)
        registry: Providers available by name
        work_dir: Directory providers and gates run in
        progress: Progress sink with a ``log(message)`` method
        gate_runner: Gate capability; a shell-based ``GateRunner`` by default
    """

    def __init__(
        self,
        store: ConfigStore,
        registry: ProviderRegistry,
        work_dir: Union[str, Path],
        progress,
        gate_runner: Optional[GateRunner] = None,
    ):
        self.store = store
        self.registry = registry
        self.work_dir = Path(work_dir)
        self.progress = progress
        self.gate_runner = gate_runner or GateRunner()

    async def run(self, provider_name: str) -> Dict[str, int]:
        """
        Run every pending task to a terminal state.

        Returns:
            Summary counts across all tasks: ``{"done", "failed", "total"}``
        """
        self._log(messages.LOOP_STARTED, provider=provider_name)

        while True:
            claimed = await self._claim_next()
            if claimed is None:
                break
            task, gates, max_iterations = claimed

            try:
                await self._run_task(task, gates, max_iterations, provider_name)
            except (asyncio.CancelledError, GateExecutionError):
                await self._release(task.id)
                raise

        async with self.store.lock:
            summary = self.store.load().summary()

        self._log(messages.SUMMARY_HEADER)
        self._log(messages.SUMMARY, **summary)
        logger.info("Loop pass finished", extra=summary)
        return summary

    # ------------------------------------------------------------------
    # Per-task state machine
    # ------------------------------------------------------------------

    async def _run_task(
        self, task: Task, gates: List[str], max_iterations: int, default_provider: str
    ) -> None:
        self._log(messages.TASK_STARTED, task_id=task.id, title=task.title)

        provider_name = task.effective_provider(default_provider)
        provider = self.registry.get(provider_name)
        if provider is None:
            logger.warning(f"Task #{task.id}: unknown provider '{provider_name}'")
            await self._finish(
                task.id,
                TaskStatus.FAILED,
                messages.LEARNING_UNKNOWN_PROVIDER.format(provider=provider_name),
            )
            self._log(messages.TASK_FAILED_UNKNOWN_PROVIDER, task_id=task.id, provider=provider_name)
            return

        feedback = ""
        for iteration in range(1, max_iterations + 1):
            self._log(
                messages.ITERATION_STARTED,
                iteration=iteration,
                max_iterations=max_iterations,
                task_id=task.id,
                title=task.title,
            )
            prompt = PromptBuilder.build_task_prompt(task, gates, feedback)
            last_attempt = iteration >= max_iterations

            self._log(messages.PROVIDER_INVOKED, provider=provider.name)
            ok, error, output = await self._invoke(provider, prompt)
            if not ok:
                self._log(messages.PROVIDER_ERROR, error=error)
                if last_attempt:
                    await self._finish(
                        task.id,
                        TaskStatus.FAILED,
                        messages.LEARNING_PROVIDER_EXHAUSTED.format(iterations=iteration, error=error),
                    )
                    self._log(messages.TASK_FAILED_MAX_ITERATIONS, task_id=task.id)
                    return
                feedback = messages.FEEDBACK_PROVIDER_ERROR.format(error=error, output=output)
                continue

            self._log(messages.PROVIDER_FINISHED)

            results = await self.gate_runner.run(gates, self.work_dir)
            for result in results:
                mark = messages.GATE_PASSED_MARK if result.passed else messages.GATE_FAILED_MARK
                self._log(messages.GATE_RESULT, command=result.command, mark=mark)

            if all_passed(results):
                await self._finish(task.id, TaskStatus.DONE)
                self._log(messages.TASK_DONE, task_id=task.id)
                return

            if last_attempt:
                await self._finish(
                    task.id,
                    TaskStatus.FAILED,
                    messages.LEARNING_GATES_EXHAUSTED.format(iterations=iteration),
                )
                self._log(messages.TASK_FAILED_MAX_ITERATIONS, task_id=task.id)
                return

            feedback = gate_failure_summary(results)

    async def _invoke(self, provider: Provider, prompt: str) -> Tuple[bool, str, str]:
        """Run the provider once; returns (ok, error text, output)."""
        started = time.monotonic()
        try:
            output = await provider.run(prompt, self.work_dir)
        except Exception as e:
            logger.log_performance(f"provider {provider.name}", time.monotonic() - started, False)
            return False, str(e), getattr(e, "output", "")
        logger.log_performance(f"provider {provider.name}", time.monotonic() - started, True)
        return True, "", output

    # ------------------------------------------------------------------
    # Persisted transitions (each one holds the store lock)
    # ------------------------------------------------------------------

    async def _claim_next(self) -> Optional[Tuple[Task, List[str], int]]:
        async with self.store.lock:
            config = self.store.load()
            task = config.next_pending_task()
            if task is None:
                return None
            if config.max_iterations < 1:
                raise ValidationError("maxIterations must be >= 1", "maxIterations")

            task.status = TaskStatus.IN_PROGRESS
            self.store.save(config)
            logger.info(f"Task #{task.id} claimed", extra={"task_id": task.id, "title": task.title})
            return dataclasses.replace(task), list(config.gates), config.max_iterations

    async def _finish(self, task_id: str, status: TaskStatus, learning: str = "") -> bool:
        async with self.store.lock:
            config = self.store.load()
            task = config.find_task(task_id)
            if task is None or task.status != TaskStatus.IN_PROGRESS:
                logger.warning(f"Task #{task_id} changed outside the loop, not marking {status.value}")
                return False
            task.status = status
            if learning:
                task.append_learning(learning)
            self.store.save(config)
            return True

    async def _release(self, task_id: str) -> None:
        """Return an interrupted task to Pending, unless something else already settled it."""
        try:
            async with self.store.lock:
                config = self.store.load()
                task = config.find_task(task_id)
                if task is None or task.status != TaskStatus.IN_PROGRESS:
                    return
                task.status = TaskStatus.PENDING
                self.store.save(config)
                logger.info(f"Task #{task_id} returned to pending")
        except ConfigStoreError as e:
            logger.error(f"Could not release task #{task_id}: {e}")

    def _log(self, template: str, **fields) -> None:
        self.progress.log(template.format(**fields))


async def run_loop(
    store: ConfigStore,
    provider_name: str,
    registry: ProviderRegistry,
    work_dir: Union[str, Path],
    progress,
    gate_runner: Optional[GateRunner] = None,
) -> Dict[str, int]:
    """Convenience wrapper: build a ``LoopEngine`` and run one pass."""
    engine = LoopEngine(store, registry, work_dir, progress, gate_runner)
    return await engine.run(provider_name)
