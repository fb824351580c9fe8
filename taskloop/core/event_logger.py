"""
Event Translator - turns engine progress lines into typed events

The engine reports progress through a ``log(message)`` sink. ``EventLogger``
is such a sink: it echoes each line to the console transcript and
broadcasts the typed event recognized from it. ``StdoutLogger`` only echoes
(used by the CLI ``run`` command).

Recognition is purely textual and stateless. Lines that match no known
shape become ``log_message`` events carrying the raw text.
"""

import re
import string
import sys
from typing import Callable, Dict, List, Optional, Pattern, TextIO, Tuple

from taskloop.core import messages
from taskloop.core.event_bus import EventHub
from taskloop.models import Event, EventType, create_event

_FIELD_PATTERNS = {
    "iteration": r"\d+",
    "max_iterations": r"\d+",
    "task_id": r"\S+?",
    "mark": "[" + messages.GATE_PASSED_MARK + messages.GATE_FAILED_MARK + "]",
}


def _compile(template: str) -> Pattern:
    """Build an anchored regex from a ``str.format`` template."""
    parts = []
    for literal, field, _, _ in string.Formatter().parse(template):
        parts.append(re.escape(literal))
        if field:
            parts.append(f"(?P<{field}>{_FIELD_PATTERNS.get(field, '.*?')})")
    return re.compile("".join(parts))


def _iteration_started(m) -> Event:
    return create_event(
        EventType.ITERATION_STARTED,
        m["task_id"],
        iteration=int(m["iteration"]),
        maxIterations=int(m["max_iterations"]),
        title=m["title"],
    )


def _gate_result(m) -> Event:
    return create_event(
        EventType.GATE_RESULT,
        command=m["command"],
        passed=m["mark"] == messages.GATE_PASSED_MARK,
    )


_SHAPES: List[Tuple[Pattern, Callable[[Dict[str, str]], Event]]] = [
    (_compile(messages.ITERATION_STARTED), _iteration_started),
    (_compile(messages.PROVIDER_INVOKED),
     lambda m: create_event(EventType.PROVIDER_INVOKED, provider=m["provider"])),
    (_compile(messages.PROVIDER_FINISHED),
     lambda m: create_event(EventType.PROVIDER_FINISHED)),
    (_compile(messages.GATE_RESULT), _gate_result),
    (_compile(messages.TASK_DONE),
     lambda m: create_event(EventType.TASK_DONE, m["task_id"])),
    (_compile(messages.TASK_FAILED_MAX_ITERATIONS),
     lambda m: create_event(EventType.TASK_FAILED, m["task_id"], reason="max_iterations")),
    (_compile(messages.TASK_FAILED_UNKNOWN_PROVIDER),
     lambda m: create_event(
         EventType.TASK_FAILED, m["task_id"], reason="unknown_provider", provider=m["provider"]
     )),
    (_compile(messages.TASK_STARTED),
     lambda m: create_event(EventType.TASK_STARTED, m["task_id"], title=m["title"])),
    (_compile(messages.LOOP_STARTED),
     lambda m: create_event(EventType.LOOP_STARTED, provider=m["provider"])),
    (_compile(messages.LOOP_STARTED_SHORT),
     lambda m: create_event(EventType.LOOP_STARTED, provider=m["provider"])),
]


def parse_log_message(message: str) -> Event:
    """Classify one progress line; unknown shapes become ``log_message`` events."""
    for pattern, build in _SHAPES:
        match = pattern.fullmatch(message)
        if match:
            return build(match.groupdict())
    return create_event(EventType.LOG_MESSAGE, message=message)


class StdoutLogger:
    """Progress sink that writes the ``[taskloop]`` transcript."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def log(self, message: str) -> None:
        out = self.stream or sys.stdout
        out.write(f"{messages.LOG_PREFIX} {message}\n")
        out.flush()


class EventLogger(StdoutLogger):
    """Progress sink that echoes the transcript and broadcasts typed events."""

    def __init__(self, hub: EventHub, stream: Optional[TextIO] = None):
        super().__init__(stream)
        self.hub = hub

    def log(self, message: str) -> None:
        super().log(message)
        self.hub.broadcast(parse_log_message(message))
