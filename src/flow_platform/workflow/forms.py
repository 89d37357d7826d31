"""Process forms, the request payload a process is started with."""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar, Protocol, runtime_checkable

from pydantic import BaseModel

from flow_platform.resources.models import GroupRequest


class ProcessForm(BaseModel):
    """Base class of every form; subclasses set ``form_name``."""

    form_name: ClassVar[str] = "ProcessForm"


@runtime_checkable
class GroupRequestView(Protocol):
    """Forms that carry a group request."""

    def group_request(self) -> GroupRequest: ...


class GroupResourceForm(ProcessForm):
    """Form of the process that provisions resources for a new group."""

    form_name: ClassVar[str] = "GroupResourceForm"

    group_info: GroupRequest
    stream_ids: list[str] | None = None

    def group_request(self) -> GroupRequest:
        return self.group_info


class GroupOperateType(StrEnum):
    SUSPEND = "SUSPEND"
    RESTART = "RESTART"
    DELETE = "DELETE"


class UpdateGroupForm(ProcessForm):
    """Form of the process that suspends, restarts or deletes a group."""

    form_name: ClassVar[str] = "UpdateGroupForm"

    group_info: GroupRequest
    operate_type: GroupOperateType = GroupOperateType.RESTART

    def group_request(self) -> GroupRequest:
        return self.group_info


class NewConsumptionForm(ProcessForm):
    """Form of a consumption approval process; carries no group request."""

    form_name: ClassVar[str] = "NewConsumptionForm"

    consumption_id: int
    group_id: str
    topic: str
    consumer_group: str
