"""
Models module - Data structures and enums for taskloop
"""

from .enums import TaskStatus, EventType, LoopState
from .task import Task, LoopConfig, next_task_id
from .events import Event, create_event

__all__ = [
    'TaskStatus',
    'EventType',
    'LoopState',
    'Task',
    'LoopConfig',
    'next_task_id',
    'Event',
    'create_event',
]
