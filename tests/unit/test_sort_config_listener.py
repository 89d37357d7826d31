"""Unit tests for CreateSortConfigListener and its wiring into the engine."""

from __future__ import annotations

import json
import time

import pytest

from flow_platform.config.models import ClusterConfig, PlatformConfig, WorkflowConfig
from flow_platform.errors import UnsupportedForm
from flow_platform.listeners.sort_config import (
    DATA_FLOW_KEY,
    CreateSortConfigListener,
    get_group_request,
)
from flow_platform.resources.memory import InMemoryStreamService
from flow_platform.resources.models import GroupExtInfo, StreamBrief
from flow_platform.sort.compiler import DataFlowCompiler
from flow_platform.sort.protocol import parse_data_flows
from flow_platform.workflow.context import WorkflowContext
from flow_platform.workflow.definitions import CREATE_GROUP_RESOURCE
from flow_platform.workflow.events import ProcessEvent, ProcessStatus, TaskEvent
from flow_platform.workflow.factory import build_engine
from flow_platform.workflow.forms import (
    GroupResourceForm,
    NewConsumptionForm,
    ProcessForm,
    UpdateGroupForm,
)
from flow_platform.workflow.listener import Listener
from tests.unit.helpers import (
    make_group,
    make_hive_sink,
    make_kafka_sink,
    make_services,
    make_stream,
)


class SlowStreamService(InMemoryStreamService):
    """Stream service whose lookups block the calling thread."""

    def __init__(self, *args, delay: float, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.delay = delay

    def list_briefs(self, group_id: str) -> list[StreamBrief]:
        time.sleep(self.delay)
        return super().list_briefs(group_id)


def _listener(cluster: ClusterConfig, streams, sinks) -> CreateSortConfigListener:
    stream_service, sink_service = make_services(streams, sinks)
    return CreateSortConfigListener(
        DataFlowCompiler(cluster, stream_service, sink_service)
    )


def _context(form: ProcessForm) -> WorkflowContext:
    return WorkflowContext(
        process_id="p1",
        process_name=CREATE_GROUP_RESOURCE,
        status=ProcessStatus.NEW,
        event=ProcessEvent.CREATE,
        form=form,
    ).for_task("initSort", TaskEvent.CREATE)


class TestGetGroupRequest:
    def test_group_forms(self):
        group = make_group()
        assert get_group_request(GroupResourceForm(group_info=group)) is group
        assert get_group_request(UpdateGroupForm(group_info=group)) is group

    def test_other_form_raises(self):
        form = NewConsumptionForm(
            consumption_id=1, group_id="g1", topic="t", consumer_group="cg"
        )
        with pytest.raises(UnsupportedForm, match="NewConsumptionForm"):
            get_group_request(form)


class TestListenerDeclaration:
    def test_declares_task_create(self, cluster):
        listener = _listener(cluster, [], [])
        assert isinstance(listener, Listener)
        assert listener.event == TaskEvent.CREATE
        assert listener.run_async is False


@pytest.mark.asyncio
class TestCreateSortConfigListener:
    async def test_attaches_data_flows(self, cluster):
        listener = _listener(
            cluster,
            [make_stream("s1"), make_stream("s2")],
            [make_kafka_sink(1, "s1"), make_hive_sink(2, "s2")],
        )
        form = GroupResourceForm(group_info=make_group())

        result = await listener.listen(_context(form))

        assert result.succeeded
        ext = form.group_info.get_ext(DATA_FLOW_KEY)
        assert ext is not None
        assert ext.group_id == "g1"
        flows = parse_data_flows(ext.key_value)
        assert list(flows) == ["s1", "s2"]
        assert flows["s2"].sink_info.type == "hive"

    async def test_payload_is_camel_case(self, cluster):
        listener = _listener(cluster, [make_stream("s1")], [make_kafka_sink(1, "s1")])
        form = GroupResourceForm(group_info=make_group())
        await listener.listen(_context(form))

        payload = json.loads(form.group_info.get_ext(DATA_FLOW_KEY).key_value)  # type: ignore[union-attr]
        assert set(payload["s1"]) == {"id", "sourceInfo", "sinkInfo", "properties"}
        assert payload["s1"]["sourceInfo"]["subscriptionName"] == "app_s1_topic_consumer_group"

    async def test_no_streams_leaves_group_untouched(self, cluster):
        listener = _listener(cluster, [], [])
        form = GroupResourceForm(group_info=make_group())

        result = await listener.listen(_context(form))

        assert result.succeeded
        assert form.group_info.ext_list is None

    async def test_missing_group_id_is_success(self, cluster):
        listener = _listener(cluster, [make_stream("s1")], [make_kafka_sink(1, "s1")])
        form = GroupResourceForm(group_info=make_group(group_id=None))

        result = await listener.listen(_context(form))

        assert result.succeeded
        assert form.group_info.ext_list is None

    async def test_all_streams_dropped_attaches_empty_mapping(self, cluster):
        listener = _listener(cluster, [make_stream("s1")], [])
        form = GroupResourceForm(group_info=make_group())

        await listener.listen(_context(form))

        ext = form.group_info.get_ext(DATA_FLOW_KEY)
        assert ext is not None
        assert ext.key_value == "{}"

    async def test_replaces_previous_data_flow(self, cluster):
        listener = _listener(cluster, [make_stream("s1")], [make_kafka_sink(1, "s1")])
        group = make_group()
        group.put_ext(GroupExtInfo(key_name=DATA_FLOW_KEY, key_value="stale"))
        group.put_ext(GroupExtInfo(key_name="owner", key_value="alice"))
        form = GroupResourceForm(group_info=group)

        await listener.listen(_context(form))

        keys = [e.key_name for e in form.group_info.ext_list or []]
        assert keys == ["owner", DATA_FLOW_KEY]
        assert form.group_info.get_ext(DATA_FLOW_KEY).key_value != "stale"  # type: ignore[union-attr]

    async def test_unsupported_form_raises(self, cluster):
        listener = _listener(cluster, [], [])
        form = NewConsumptionForm(
            consumption_id=1, group_id="g1", topic="t", consumer_group="cg"
        )
        with pytest.raises(UnsupportedForm):
            await listener.listen(_context(form))


@pytest.mark.asyncio
class TestGroupResourceProcess:
    async def test_create_process_compiles_data_flows(self, cluster):
        stream_service, sink_service = make_services(
            [make_stream("s1")], [make_kafka_sink(1, "s1")]
        )
        engine = build_engine(
            PlatformConfig(cluster=cluster), stream_service, sink_service
        )
        outcome = await engine.start(
            CREATE_GROUP_RESOURCE, GroupResourceForm(group_info=make_group())
        )

        assert outcome.succeeded
        process = engine.get(outcome.process_id)
        assert process.status == ProcessStatus.RUNNING
        group = get_group_request(process.form)
        assert list(parse_data_flows(group.get_ext(DATA_FLOW_KEY).key_value)) == ["s1"]  # type: ignore[union-attr]

    async def test_batch_failure_aborts_process(self):
        stream_service, sink_service = make_services(
            [make_stream("s1")], [make_kafka_sink(1, "s1")]
        )
        engine = build_engine(PlatformConfig(), stream_service, sink_service)
        outcome = await engine.start(
            CREATE_GROUP_RESOURCE,
            GroupResourceForm(group_info=make_group(middleware="TUBE")),
        )

        assert not outcome.succeeded
        assert "tube_master" in (outcome.reason or "")
        process = engine.get(outcome.process_id)
        assert process.status == ProcessStatus.NEW
        assert get_group_request(process.form).ext_list is None

    async def test_blocking_lookup_times_out(self, cluster):
        _, sink_service = make_services([], [make_kafka_sink(1, "s1")])
        stream_service = SlowStreamService(
            sink_service, [make_stream("s1")], delay=0.5
        )
        config = PlatformConfig(
            cluster=cluster, workflow=WorkflowConfig(listener_timeout_seconds=0.05)
        )
        engine = build_engine(config, stream_service, sink_service)

        started = time.monotonic()
        outcome = await engine.start(
            CREATE_GROUP_RESOURCE, GroupResourceForm(group_info=make_group())
        )

        assert time.monotonic() - started < 0.4
        assert not outcome.succeeded
        assert "timed out" in (outcome.reason or "")
        process = engine.get(outcome.process_id)
        assert process.status == ProcessStatus.NEW
        assert get_group_request(process.form).ext_list is None
