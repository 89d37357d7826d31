"""Builders for group/stream/sink read models used across unit tests."""

from __future__ import annotations

from flow_platform.config.models import MiddlewareType
from flow_platform.resources.memory import InMemorySinkService, InMemoryStreamService
from flow_platform.resources.models import (
    GroupRequest,
    HiveSinkRecord,
    KafkaSinkRecord,
    SinkField,
    StreamField,
    StreamInfo,
)

GROUP_ID = "g1"


def make_group(
    middleware: str = MiddlewareType.PULSAR,
    group_id: str | None = GROUP_ID,
    mq_resource_obj: str | None = "ns1",
) -> GroupRequest:
    return GroupRequest(
        group_id=group_id,
        middleware_type=middleware,
        mq_resource_obj=mq_resource_obj,
    )


def make_stream(
    stream_id: str,
    *,
    topic: str | None = None,
    separator: str | None = None,
    fields: list[tuple[str, str]] | None = None,
) -> StreamInfo:
    return StreamInfo(
        group_id=GROUP_ID,
        stream_id=stream_id,
        mq_resource_obj=topic or f"{stream_id}_topic",
        data_separator=separator,
        fields=[
            StreamField(field_name=name, field_type=ftype)
            for name, ftype in (fields or [("id", "int"), ("name", "string")])
        ],
    )


def make_kafka_sink(sink_id: int, stream_id: str) -> KafkaSinkRecord:
    return KafkaSinkRecord(
        id=sink_id,
        group_id=GROUP_ID,
        stream_id=stream_id,
        bootstrap_servers="kafka:9092",
        topic_name=f"{stream_id}_out",
        fields=[SinkField(field_name="id", field_type="int")],
    )


def make_hive_sink(sink_id: int, stream_id: str) -> HiveSinkRecord:
    return HiveSinkRecord(
        id=sink_id,
        group_id=GROUP_ID,
        stream_id=stream_id,
        jdbc_url="jdbc:hive2://hive:10000",
        db_name="db",
        table_name=stream_id,
        password="secret",
        hdfs_default_fs="hdfs://nn:9000/",
        primary_partition="dt",
        fields=[
            SinkField(field_name="id", field_type="int"),
            SinkField(field_name="name", field_type="string"),
        ],
    )


def make_services(
    streams: list[StreamInfo], sinks: list
) -> tuple[InMemoryStreamService, InMemorySinkService]:
    sink_service = InMemorySinkService(sinks)
    return InMemoryStreamService(sink_service, streams), sink_service

