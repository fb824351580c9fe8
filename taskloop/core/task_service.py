"""
Task Service - validated mutations of the loop config

Every operation is a full read-modify-write of the config file performed
while holding the store lock, so it serializes with engine transitions and
with the controller.
"""

from typing import List, Optional

from taskloop.config.config_store import ConfigStore
from taskloop.models import LoopConfig, Task, TaskStatus, next_task_id
from taskloop.providers.registry import ProviderRegistry
from taskloop.utils.exceptions import ConflictError, TaskNotFoundError, ValidationError
from taskloop.utils.logger import get_logger

logger = get_logger(__name__)


class TaskService:
    """CRUD over tasks and partial updates of loop settings."""

    def __init__(self, store: ConfigStore, registry: ProviderRegistry):
        self.store = store
        self.registry = registry

    async def get_config(self) -> LoopConfig:
        async with self.store.lock:
            return self.store.load()

    async def update_config(
        self,
        provider: Optional[str] = None,
        branch: Optional[str] = None,
        gates: Optional[List[str]] = None,
        max_iterations: Optional[int] = None,
    ) -> LoopConfig:
        """Apply the given fields; ``None`` leaves a field unchanged."""
        if provider:
            self._check_provider(provider)
        if max_iterations is not None and max_iterations < 1:
            raise ValidationError("maxIterations must be >= 1", "maxIterations")

        async with self.store.lock:
            config = self.store.load()
            if provider is not None:
                config.provider = provider
            if branch is not None:
                config.branch = branch
            if gates is not None:
                config.gates = list(gates)
            if max_iterations is not None:
                config.max_iterations = max_iterations
            self.store.save(config)

        logger.info("Config updated", extra={"provider": config.provider, "gates": len(config.gates)})
        return config

    async def create_task(self, title: str, description: str = "", provider: str = "") -> Task:
        if not title:
            raise ValidationError("title is required", "title")
        if provider:
            self._check_provider(provider)

        async with self.store.lock:
            config = self.store.load()
            task = Task(
                id=next_task_id(config.tasks),
                title=title,
                description=description,
                provider=provider,
            )
            config.tasks.append(task)
            self.store.save(config)

        logger.info(f"Task #{task.id} created", extra={"task_id": task.id, "title": title})
        return task

    async def update_task(
        self, task_id: str, title: str = "", description: str = "", provider: str = ""
    ) -> Task:
        """Update a task; empty strings leave the corresponding field unchanged."""
        if provider:
            self._check_provider(provider)

        async with self.store.lock:
            config = self.store.load()
            task = config.find_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            if task.status == TaskStatus.IN_PROGRESS:
                raise ConflictError("cannot modify in_progress task", task_id)

            if title:
                task.title = title
            if description:
                task.description = description
            if provider:
                task.provider = provider
            self.store.save(config)

        logger.info(f"Task #{task_id} updated")
        return task

    async def delete_task(self, task_id: str) -> None:
        async with self.store.lock:
            config = self.store.load()
            task = config.find_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            if task.status == TaskStatus.IN_PROGRESS:
                raise ConflictError("cannot delete in_progress task", task_id)
            config.tasks.remove(task)
            self.store.save(config)

        logger.info(f"Task #{task_id} deleted")

    def _check_provider(self, name: str) -> None:
        if name not in self.registry:
            raise ValidationError(f"unknown provider: {name}", "provider")
