"""
Enums module - Task status and event type enumerations
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Enumeration of possible task statuses"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    FAILED = "failed"


class EventType(str, Enum):
    """Event types pushed to live subscribers"""
    LOOP_STARTED = "loop_started"
    LOOP_COMPLETED = "loop_completed"
    LOOP_ERROR = "loop_error"
    LOOP_STOPPED = "loop_stopped"
    TASK_STARTED = "task_started"
    ITERATION_STARTED = "iteration_started"
    PROVIDER_INVOKED = "provider_invoked"
    PROVIDER_FINISHED = "provider_finished"
    GATE_RESULT = "gate_result"
    TASK_DONE = "task_done"
    TASK_FAILED = "task_failed"
    LOG_MESSAGE = "log_message"


class LoopState(str, Enum):
    """Lifecycle of the background run owned by the controller"""
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
