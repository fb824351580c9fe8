"""
Task module - Task and loop configuration data structures

The loop configuration is the single persisted aggregate: project settings
plus the ordered task list. It is always read and written as a whole.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .enums import TaskStatus


@dataclass
class Task:
    """A unit of work with a lifecycle status and accumulated learnings."""
    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    learnings: str = ""
    provider: str = ""  # empty means "use the run default"

    def effective_provider(self, fallback: str) -> str:
        """Return the task's own provider override, or *fallback* when unset."""
        return self.provider or fallback

    def append_learning(self, note: str) -> None:
        """Append a retrospective note; earlier learnings are never overwritten."""
        if self.learnings:
            self.learnings = f"{self.learnings}\n{note}"
        else:
            self.learnings = note

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "learnings": self.learnings,
        }
        if self.provider:
            data["provider"] = self.provider
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=TaskStatus(data.get("status", TaskStatus.PENDING.value)),
            learnings=data.get("learnings", ""),
            provider=data.get("provider", ""),
        )


@dataclass
class LoopConfig:
    """Project settings and the ordered task list."""
    name: str = ""
    provider: str = ""
    branch: str = ""
    gates: List[str] = field(default_factory=list)
    max_iterations: int = 10
    tasks: List[Task] = field(default_factory=list)

    def next_pending_task(self) -> Optional[Task]:
        """Return the first pending task in list order."""
        for task in self.tasks:
            if task.status == TaskStatus.PENDING:
                return task
        return None

    def in_progress_task(self) -> Optional[Task]:
        for task in self.tasks:
            if task.status == TaskStatus.IN_PROGRESS:
                return task
        return None

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def summary(self) -> Dict[str, int]:
        """Count done/failed/total across every task."""
        return {
            "done": sum(1 for t in self.tasks if t.status == TaskStatus.DONE),
            "failed": sum(1 for t in self.tasks if t.status == TaskStatus.FAILED),
            "total": len(self.tasks),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "provider": self.provider,
            "branch": self.branch,
            "gates": list(self.gates),
            "maxIterations": self.max_iterations,
            "tasks": [t.to_dict() for t in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LoopConfig":
        return cls(
            name=data.get("name", ""),
            provider=data.get("provider", ""),
            branch=data.get("branch", ""),
            gates=list(data.get("gates") or []),
            max_iterations=int(data.get("maxIterations", 0)),
            tasks=[Task.from_dict(t) for t in data.get("tasks") or []],
        )

    @classmethod
    def template(cls, name: str) -> "LoopConfig":
        """Starter configuration written by ``taskloop init``."""
        return cls(
            name=name,
            provider="claude",
            branch="feat/taskloop",
            gates=[],
            max_iterations=10,
            tasks=[
                Task(
                    id="1",
                    title="Example task",
                    description="Describe what needs to be done",
                ),
            ],
        )


def next_task_id(tasks: List[Task]) -> str:
    """
    Allocate a fresh task id.

    Takes the largest purely numeric id and adds one; non-numeric ids are
    ignored. Returns "1" when there are no numeric ids.
    """
    max_id = 0
    for task in tasks:
        if task.id.isdecimal():
            max_id = max(max_id, int(task.id))
    return str(max_id + 1)
