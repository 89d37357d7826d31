"""Runtime state of processes and tasks, and the results of dispatching."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from flow_platform.workflow.events import (
    ProcessEvent,
    ProcessStatus,
    TaskEvent,
    TaskStatus,
)
from flow_platform.workflow.forms import ProcessForm


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class ListenerResult:
    """Outcome of one listener invocation."""

    succeeded: bool
    reason: str | None = None

    @classmethod
    def success(cls) -> ListenerResult:
        return cls(succeeded=True)

    @classmethod
    def fail(cls, reason: str) -> ListenerResult:
        return cls(succeeded=False, reason=reason)


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """One line of a process's audit trail."""

    kind: str  # "transition" | "listener" | "async_listener" | "task"
    event: str
    succeeded: bool
    listener: str | None = None
    task: str | None = None
    reason: str | None = None
    at: datetime = field(default_factory=_now)


@dataclass(slots=True)
class Task:
    name: str
    process_id: str
    event: TaskEvent = TaskEvent.CREATE
    status: TaskStatus = TaskStatus.PENDING
    reason: str | None = None
    task_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=_now)


@dataclass(slots=True)
class Process:
    """A workflow instance. Only the engine mutates it."""

    process_id: str
    name: str
    form: ProcessForm
    status: ProcessStatus = ProcessStatus.NEW
    history: list[ProcessEvent] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    audit: list[AuditEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @property
    def last_event(self) -> ProcessEvent | None:
        return self.history[-1] if self.history else None


@dataclass(frozen=True, slots=True)
class TransitionOutcome:
    """What the caller of ``submit`` gets back."""

    process_id: str
    event: ProcessEvent
    succeeded: bool
    status: ProcessStatus
    reason: str | None = None
    noop: bool = False
    results: tuple[tuple[str, ListenerResult], ...] = ()
