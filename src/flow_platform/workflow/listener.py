"""Listener protocol: one handler bound to one process or task event."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from flow_platform.workflow.context import WorkflowContext
from flow_platform.workflow.events import ProcessEvent, TaskEvent
from flow_platform.workflow.models import ListenerResult


@runtime_checkable
class Listener(Protocol):
    """Protocol every workflow listener must satisfy.

    A listener declares the single event it handles and whether it runs
    asynchronously. Synchronous listeners block the transition and can veto
    it by failing; asynchronous ones run after the transition commits.
    Listeners must not touch process state; they may mutate ``context.form``.
    """

    @property
    def name(self) -> str:
        """Name used in logs and the audit trail."""
        ...

    @property
    def event(self) -> ProcessEvent | TaskEvent:
        """The event this listener is triggered by."""
        ...

    @property
    def run_async(self) -> bool:
        """Whether the engine dispatches this listener without waiting."""
        ...

    async def listen(self, context: WorkflowContext) -> ListenerResult:
        """Handle the event."""
        ...
