"""Startup wiring of process definitions and their listeners."""

from __future__ import annotations

from flow_platform.config.models import PlatformConfig
from flow_platform.listeners.sort_config import CreateSortConfigListener
from flow_platform.resources.base import SinkService, StreamService
from flow_platform.sort.compiler import DataFlowCompiler
from flow_platform.workflow.definitions import (
    INIT_SORT_TASK,
    group_resource_process,
    update_group_process,
)
from flow_platform.workflow.engine import WorkflowEngine
from flow_platform.workflow.registry import ListenerRegistry


def build_registry(
    platform: PlatformConfig,
    stream_service: StreamService,
    sink_service: SinkService,
) -> ListenerRegistry:
    """Register every built-in listener against its owner."""
    registry = ListenerRegistry()
    compiler = DataFlowCompiler(platform.cluster, stream_service, sink_service)
    registry.register(INIT_SORT_TASK, CreateSortConfigListener(compiler))
    return registry


def build_engine(
    platform: PlatformConfig,
    stream_service: StreamService,
    sink_service: SinkService,
    registry: ListenerRegistry | None = None,
) -> WorkflowEngine:
    """Create an engine with the group resource processes registered."""
    if registry is None:
        registry = build_registry(platform, stream_service, sink_service)
    return WorkflowEngine(
        registry,
        platform.workflow,
        definitions=(group_resource_process(), update_group_process()),
    )
