"""Process and task events, statuses and the process transition table."""

from __future__ import annotations

from enum import StrEnum


class ProcessEvent(StrEnum):
    """Events a process reacts to."""

    CREATE = "CREATE"
    COMPLETE = "COMPLETE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    TERMINATE = "TERMINATE"
    # An automatic task failed
    FAIL = "FAIL"


class TaskEvent(StrEnum):
    """Events a task's listeners can bind to."""

    CREATE = "CREATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    TRANSFER = "TRANSFER"
    CANCEL = "CANCEL"
    COMPLETE = "COMPLETE"
    FAIL = "FAIL"
    TERMINATE = "TERMINATE"


class ProcessStatus(StrEnum):
    NEW = "NEW"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    TERMINATED = "TERMINATED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self not in (ProcessStatus.NEW, ProcessStatus.RUNNING)


class TaskStatus(StrEnum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


TARGET_STATUS: dict[ProcessEvent, ProcessStatus] = {
    ProcessEvent.CREATE: ProcessStatus.RUNNING,
    ProcessEvent.COMPLETE: ProcessStatus.COMPLETED,
    ProcessEvent.REJECT: ProcessStatus.REJECTED,
    ProcessEvent.CANCEL: ProcessStatus.CANCELLED,
    ProcessEvent.TERMINATE: ProcessStatus.TERMINATED,
    ProcessEvent.FAIL: ProcessStatus.FAILED,
}

ALLOWED_EVENTS: dict[ProcessStatus, frozenset[ProcessEvent]] = {
    ProcessStatus.NEW: frozenset(
        {
            ProcessEvent.CREATE,
            ProcessEvent.CANCEL,
            ProcessEvent.TERMINATE,
            ProcessEvent.FAIL,
        }
    ),
    ProcessStatus.RUNNING: frozenset(
        {
            ProcessEvent.COMPLETE,
            ProcessEvent.REJECT,
            ProcessEvent.CANCEL,
            ProcessEvent.TERMINATE,
            ProcessEvent.FAIL,
        }
    ),
}


def is_allowed(status: ProcessStatus, event: ProcessEvent) -> bool:
    return event in ALLOWED_EVENTS.get(status, frozenset())
