"""
Core module - Loop engine, controller, gates and the event plane
"""

from .gates import GateResult, GateRunner, gate_failure_summary
from .engine import LoopEngine, run_loop
from .event_bus import EventHub, Subscription
from .event_logger import EventLogger, StdoutLogger, parse_log_message
from .task_service import TaskService
from .controller import LoopController

__all__ = [
    'GateResult',
    'GateRunner',
    'gate_failure_summary',
    'LoopEngine',
    'run_loop',
    'EventHub',
    'Subscription',
    'EventLogger',
    'StdoutLogger',
    'parse_log_message',
    'TaskService',
    'LoopController',
]
