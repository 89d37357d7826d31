"""Per-transition context handed to every listener."""

from __future__ import annotations

from dataclasses import dataclass, replace

from flow_platform.workflow.events import ProcessEvent, ProcessStatus, TaskEvent
from flow_platform.workflow.forms import ProcessForm


@dataclass(slots=True)
class TaskRef:
    name: str
    event: TaskEvent


@dataclass(slots=True)
class WorkflowContext:
    """Owned by a single transition; never shared across transitions.

    ``form`` is a private copy of the process form. Listeners may mutate it
    and later listeners in the same chain see the change; the engine adopts
    it as the process form only if the transition commits.
    """

    process_id: str
    process_name: str
    status: ProcessStatus
    event: ProcessEvent
    form: ProcessForm
    task: TaskRef | None = None

    def for_task(self, name: str, event: TaskEvent) -> WorkflowContext:
        """Same transition, scoped to a task; shares the form."""
        return replace(self, task=TaskRef(name=name, event=event))

    def snapshot(self) -> WorkflowContext:
        """Independent copy for work that outlives the transition."""
        return replace(self, form=self.form.model_copy(deep=True))
