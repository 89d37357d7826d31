"""Process definitions: which tasks a process opens at which stage."""

from __future__ import annotations

from dataclasses import dataclass

from flow_platform.workflow.events import ProcessEvent

CREATE_GROUP_RESOURCE = "CREATE_GROUP_RESOURCE"
UPDATE_GROUP_RESOURCE = "UPDATE_GROUP_RESOURCE"
INIT_SORT_TASK = "initSort"


@dataclass(frozen=True)
class TaskDefinition:
    """A service task opened when its process receives ``stage``."""

    name: str
    stage: ProcessEvent = ProcessEvent.CREATE


@dataclass(frozen=True)
class ProcessDefinition:
    name: str
    tasks: tuple[TaskDefinition, ...] = ()

    def __post_init__(self) -> None:
        names = [t.name for t in self.tasks]
        if len(names) != len(set(names)):
            msg = f"Duplicate task names in process definition '{self.name}': {names}"
            raise ValueError(msg)

    def tasks_for(self, event: ProcessEvent) -> tuple[TaskDefinition, ...]:
        return tuple(t for t in self.tasks if t.stage == event)


def group_resource_process() -> ProcessDefinition:
    """Provision resources for a newly approved group."""
    return ProcessDefinition(
        name=CREATE_GROUP_RESOURCE,
        tasks=(TaskDefinition(INIT_SORT_TASK),),
    )


def update_group_process() -> ProcessDefinition:
    """Re-provision an existing group (restart, suspend, delete)."""
    return ProcessDefinition(
        name=UPDATE_GROUP_RESOURCE,
        tasks=(TaskDefinition(INIT_SORT_TASK),),
    )
