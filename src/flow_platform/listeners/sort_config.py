"""Task listener that compiles a group's sort data flows."""

from __future__ import annotations

import asyncio

import structlog

from flow_platform.errors import UnsupportedForm
from flow_platform.resources.models import GroupExtInfo, GroupRequest
from flow_platform.sort.compiler import DataFlowCompiler
from flow_platform.sort.protocol import dump_data_flows
from flow_platform.workflow.context import WorkflowContext
from flow_platform.workflow.events import TaskEvent
from flow_platform.workflow.forms import GroupRequestView, ProcessForm
from flow_platform.workflow.models import ListenerResult

logger = structlog.get_logger()

# Extension key the compiled data flows are stored under
DATA_FLOW_KEY = "dataFlow"


def get_group_request(form: ProcessForm) -> GroupRequest:
    """Return the group request carried by *form*."""
    if not isinstance(form, GroupRequestView):
        logger.error("sort.unsupported_form", form=form.form_name)
        raise UnsupportedForm(form.form_name)
    return form.group_request()


class CreateSortConfigListener:
    """Builds sort data flows on task CREATE and attaches them to the group.

    The serialized stream-id → data flow mapping is stored as the
    ``dataFlow`` extension of the group request in the context's form, where
    later listeners and the sort engine's config loader pick it up.
    """

    def __init__(self, compiler: DataFlowCompiler) -> None:
        self._compiler = compiler

    @property
    def name(self) -> str:
        return "CreateSortConfigListener"

    @property
    def event(self) -> TaskEvent:
        return TaskEvent.CREATE

    @property
    def run_async(self) -> bool:
        return False

    async def listen(self, context: WorkflowContext) -> ListenerResult:
        logger.info(
            "sort.create_config",
            process_id=context.process_id,
            process_name=context.process_name,
        )
        group = get_group_request(context.form)
        if not group.group_id:
            logger.warning("sort.group_id_missing", process_id=context.process_id)
            return ListenerResult.success()

        # Service lookups block; keep them off the loop so timeouts apply.
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, self._compiler.compile, group)
        if result.empty:
            return ListenerResult.success()

        group.put_ext(
            GroupExtInfo(
                group_id=group.group_id,
                key_name=DATA_FLOW_KEY,
                key_value=dump_data_flows(result.flows),
            )
        )
        return ListenerResult.success()
