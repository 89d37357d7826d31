"""Unit tests for the group → data flow compiler."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from flow_platform.config.models import ClusterConfig, MiddlewareType
from flow_platform.errors import (
    MissingClusterConfig,
    MissingGroupTopic,
    UnsupportedMiddleware,
)
from flow_platform.resources.models import SinkRecord
from flow_platform.sort.compiler import DataFlowCompiler
from flow_platform.sort.protocol import KafkaSinkInfo, PulsarSourceInfo, TubeSourceInfo
from tests.unit.helpers import (
    GROUP_ID,
    make_group,
    make_hive_sink,
    make_kafka_sink,
    make_services,
    make_stream,
)


def _compiler(cluster: ClusterConfig, streams, sinks) -> DataFlowCompiler:
    stream_service, sink_service = make_services(streams, sinks)
    return DataFlowCompiler(cluster, stream_service, sink_service)


class TestCompile:
    def test_one_flow_per_stream(self, cluster):
        compiler = _compiler(
            cluster,
            [make_stream("s1"), make_stream("s2")],
            [make_kafka_sink(1, "s1"), make_hive_sink(2, "s2")],
        )
        result = compiler.compile(make_group())

        assert list(result.flows) == ["s1", "s2"]
        assert result.skipped == {}
        assert result.flows["s1"].id == 1
        assert result.flows["s2"].id == 2
        assert isinstance(result.flows["s1"].sink_info, KafkaSinkInfo)

    def test_stream_without_sink_is_skipped(self, cluster):
        compiler = _compiler(
            cluster,
            [make_stream("s1"), make_stream("s2")],
            [make_kafka_sink(1, "s1")],
        )
        result = compiler.compile(make_group())

        assert list(result.flows) == ["s1"]
        assert "s2" in result.skipped
        assert not result.empty

    def test_first_sink_wins(self, cluster):
        compiler = _compiler(
            cluster,
            [make_stream("s1")],
            [make_kafka_sink(7, "s1"), make_hive_sink(8, "s1")],
        )
        result = compiler.compile(make_group())
        assert result.flows["s1"].id == 7

    def test_only_first_sink_is_fetched(self, cluster):
        stream_service, sink_service = make_services(
            [make_stream("s1")],
            [make_kafka_sink(7, "s1"), make_hive_sink(8, "s1")],
        )
        spy = MagicMock(wraps=sink_service)
        DataFlowCompiler(cluster, stream_service, spy).compile(make_group())
        spy.get.assert_called_once_with(7, "KAFKA")

    def test_unknown_field_type_drops_only_that_stream(self, cluster):
        compiler = _compiler(
            cluster,
            [
                make_stream("s1", fields=[("id", "geometry")]),
                make_stream("s2"),
            ],
            [make_kafka_sink(1, "s1"), make_kafka_sink(2, "s2")],
        )
        result = compiler.compile(make_group())

        assert list(result.flows) == ["s2"]
        assert "geometry" in result.skipped["s1"]

    def test_bad_separator_drops_stream(self, cluster):
        compiler = _compiler(
            cluster,
            [make_stream("s1", separator="||")],
            [make_kafka_sink(1, "s1")],
        )
        result = compiler.compile(make_group())
        assert result.flows == {}
        assert "s1" in result.skipped

    def test_unsupported_sink_type_drops_stream(self, cluster):
        odd = SinkRecord(id=1, group_id=GROUP_ID, stream_id="s1", sink_type="ORACLE")
        compiler = _compiler(cluster, [make_stream("s1")], [odd])
        result = compiler.compile(make_group())
        assert "ORACLE" in result.skipped["s1"]

    def test_stream_without_topic_is_skipped(self, cluster):
        bare = make_stream("s1").model_copy(update={"mq_resource_obj": None})
        compiler = _compiler(
            cluster,
            [bare, make_stream("s2")],
            [make_kafka_sink(1, "s1"), make_kafka_sink(2, "s2")],
        )
        result = compiler.compile(make_group())

        assert list(result.flows) == ["s2"]
        assert "no topic" in result.skipped["s1"]

    def test_mismatched_sink_record_is_skipped(self, cluster):
        plain = SinkRecord(id=1, group_id=GROUP_ID, stream_id="s1", sink_type="KAFKA")
        compiler = _compiler(
            cluster,
            [make_stream("s1"), make_stream("s2")],
            [plain, make_kafka_sink(2, "s2")],
        )
        result = compiler.compile(make_group())

        assert list(result.flows) == ["s2"]
        assert "record is a SinkRecord" in result.skipped["s1"]

    def test_missing_sink_record_is_skipped(self, cluster):
        stream_service, sink_service = make_services(
            [make_stream("s1")], [make_kafka_sink(1, "s1")]
        )
        spy = MagicMock(wraps=sink_service)
        spy.get.side_effect = KeyError("gone")
        result = DataFlowCompiler(cluster, stream_service, spy).compile(make_group())

        assert result.flows == {}
        assert "Sink 1 (KAFKA): record not found" in result.skipped["s1"]

    def test_missing_stream_record_is_skipped(self, cluster):
        stream_service, sink_service = make_services(
            [make_stream("s1")], [make_kafka_sink(1, "s1")]
        )
        spy = MagicMock(wraps=stream_service)
        spy.get.side_effect = KeyError("gone")
        result = DataFlowCompiler(cluster, spy, sink_service).compile(make_group())

        assert result.flows == {}
        assert "Stream not found: g1/s1" in result.skipped["s1"]

    def test_no_streams_is_empty(self, cluster):
        compiler = _compiler(cluster, [], [])
        result = compiler.compile(make_group())
        assert result.empty

    def test_missing_group_id_is_empty(self, cluster):
        compiler = _compiler(cluster, [make_stream("s1")], [make_kafka_sink(1, "s1")])
        result = compiler.compile(make_group(group_id=None))
        assert result.empty

    def test_fields_follow_stream_order(self, cluster):
        compiler = _compiler(
            cluster,
            [make_stream("s1", fields=[("b", "bigint"), ("a", "varchar(10)")])],
            [make_kafka_sink(1, "s1")],
        )
        source = compiler.compile(make_group()).flows["s1"].source_info
        assert [f.name for f in source.fields] == ["b", "a"]
        assert [f.format_info.type for f in source.fields] == ["long", "string"]


class TestSourceSelection:
    def test_pulsar_source(self, cluster):
        compiler = _compiler(
            cluster, [make_stream("s1", topic="orders")], [make_kafka_sink(1, "s1")]
        )
        source = compiler.compile(make_group()).flows["s1"].source_info

        assert isinstance(source, PulsarSourceInfo)
        assert source.topic == "orders"
        assert source.namespace == "ns1"
        assert source.subscription_name == "app_orders_consumer_group"

    def test_tube_source(self, cluster):
        compiler = _compiler(cluster, [make_stream("s1")], [make_kafka_sink(1, "s1")])
        group = make_group(middleware=MiddlewareType.TUBE)
        source = compiler.compile(group).flows["s1"].source_info

        assert isinstance(source, TubeSourceInfo)
        assert source.topic == "ns1"
        assert source.master_address == "tube:8715"
        assert source.consumer_group == "app_ns1_consumer_group"


class TestBatchFailures:
    def test_unsupported_middleware_fails_whole_group(self, cluster):
        compiler = _compiler(cluster, [make_stream("s1")], [make_kafka_sink(1, "s1")])
        with pytest.raises(UnsupportedMiddleware, match="KAFKA"):
            compiler.compile(make_group(middleware="KAFKA"))

    def test_tube_without_master_fails(self):
        compiler = _compiler(
            ClusterConfig(), [make_stream("s1")], [make_kafka_sink(1, "s1")]
        )
        with pytest.raises(MissingClusterConfig, match="tube_master"):
            compiler.compile(make_group(middleware=MiddlewareType.TUBE))

    def test_batch_check_skipped_without_streams(self):
        compiler = _compiler(ClusterConfig(), [], [])
        result = compiler.compile(make_group(middleware="KAFKA"))
        assert result.empty

    def test_tube_without_group_topic_fails(self, cluster):
        compiler = _compiler(cluster, [make_stream("s1")], [make_kafka_sink(1, "s1")])
        group = make_group(middleware=MiddlewareType.TUBE, mq_resource_obj=None)
        with pytest.raises(MissingGroupTopic):
            compiler.compile(group)
