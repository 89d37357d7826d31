"""Explicit listener registration table built at startup."""

from __future__ import annotations

from collections import defaultdict
from enum import StrEnum

import structlog

from flow_platform.workflow.events import ProcessEvent, TaskEvent
from flow_platform.workflow.listener import Listener

logger = structlog.get_logger()


class Scope(StrEnum):
    PROCESS = "process"
    TASK = "task"


def _scope_of(event: ProcessEvent | TaskEvent) -> Scope:
    # ProcessEvent.CREATE == TaskEvent.CREATE as strings, so keys carry a scope.
    return Scope.TASK if isinstance(event, TaskEvent) else Scope.PROCESS


class ListenerRegistry:
    """Maps (scope, owner, event) to listeners in registration order.

    The owner is a process definition name for process events and a task
    name for task events.
    """

    def __init__(self) -> None:
        self._listeners: dict[tuple[Scope, str, str], list[Listener]] = defaultdict(
            list
        )

    def register(self, owner: str, listener: Listener) -> None:
        if not isinstance(listener, Listener):
            msg = f"{listener!r} does not implement the Listener protocol"
            raise TypeError(msg)
        scope = _scope_of(listener.event)
        key = (scope, owner, str(listener.event))
        if any(existing.name == listener.name for existing in self._listeners[key]):
            msg = f"Listener '{listener.name}' already registered for {owner}.{listener.event}"
            raise ValueError(msg)
        self._listeners[key].append(listener)
        logger.debug(
            "workflow.listener_registered",
            scope=scope.value,
            owner=owner,
            listener_event=str(listener.event),
            listener=listener.name,
            run_async=listener.run_async,
        )

    def process_listeners(self, process_name: str, event: ProcessEvent) -> list[Listener]:
        return list(self._listeners.get((Scope.PROCESS, process_name, str(event)), []))

    def task_listeners(self, task_name: str, event: TaskEvent) -> list[Listener]:
        return list(self._listeners.get((Scope.TASK, task_name, str(event)), []))
