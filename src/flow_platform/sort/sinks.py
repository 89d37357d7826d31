"""Sink descriptor builders mapping a sink record type to its sort sink.

Adding a sink type = one builder + one dict entry in ``_SINK_BUILDERS``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from flow_platform.errors import SinkLookupError, UnsupportedSinkType
from flow_platform.resources.models import (
    ClickHouseSinkRecord,
    HiveSinkRecord,
    KafkaSinkRecord,
    SinkRecord,
    SinkType,
)
from flow_platform.sort.formats import convert_field_format
from flow_platform.sort.protocol import (
    ClickHouseSinkInfo,
    FieldInfo,
    HivePartitionInfo,
    HiveSinkInfo,
    KafkaSinkInfo,
    SinkInfo,
)
from flow_platform.sort.sources import parse_separator


def sink_fields(sink: SinkRecord) -> list[FieldInfo]:
    """Field descriptors of the sink's columns."""
    return [
        FieldInfo(name=f.field_name, format_info=convert_field_format(f.field_type))
        for f in sink.fields
    ]


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def create_hive_sink_info(sink: HiveSinkRecord) -> HiveSinkInfo:
    data_path = (
        f"{sink.hdfs_default_fs.rstrip('/')}{sink.warehouse_dir.rstrip('/')}"
        f"/{sink.db_name}.db/{sink.table_name}"
    )
    partitions = [
        HivePartitionInfo(field_name=name)
        for name in (sink.primary_partition, sink.secondary_partition)
        if name
    ]
    return HiveSinkInfo(
        fields=sink_fields(sink),
        hive_server_jdbc_url=sink.jdbc_url,
        database_name=sink.db_name,
        table_name=sink.table_name,
        username=sink.username,
        password=sink.password.get_secret_value() if sink.password else None,
        data_path=data_path,
        partitions=partitions,
        file_format=sink.file_format,
        field_delimiter=(
            parse_separator(sink.data_separator) if sink.data_separator else None
        ),
    )


def create_kafka_sink_info(sink: KafkaSinkRecord) -> KafkaSinkInfo:
    return KafkaSinkInfo(
        fields=sink_fields(sink),
        address=sink.bootstrap_servers,
        topic=sink.topic_name,
        serialization_type=sink.serialization_type,
    )


def create_clickhouse_sink_info(sink: ClickHouseSinkRecord) -> ClickHouseSinkInfo:
    partition_fields = _split(sink.partition_fields)
    return ClickHouseSinkInfo(
        fields=sink_fields(sink),
        url=sink.jdbc_url,
        database_name=sink.db_name,
        table_name=sink.table_name,
        username=sink.username,
        password=sink.password.get_secret_value() if sink.password else None,
        distributed_table=sink.is_distributed,
        partition_strategy=sink.partition_strategy,
        partition_key=partition_fields[0] if partition_fields else None,
        key_field_names=_split(sink.key_field_names),
        flush_interval=sink.flush_interval,
        flush_record_number=sink.package_size,
        write_max_retry_times=sink.retry_times,
    )


_SINK_BUILDERS: dict[str, tuple[type[SinkRecord], Callable[[Any], SinkInfo]]] = {
    SinkType.HIVE: (HiveSinkRecord, create_hive_sink_info),
    SinkType.KAFKA: (KafkaSinkRecord, create_kafka_sink_info),
    SinkType.CLICKHOUSE: (ClickHouseSinkRecord, create_clickhouse_sink_info),
}


def create_sink_info(sink: SinkRecord) -> SinkInfo:
    """Create the sort sink descriptor for a sink record."""
    entry = _SINK_BUILDERS.get(sink.sink_type)
    if entry is None:
        raise UnsupportedSinkType(sink.sink_type)
    record_cls, builder = entry
    if not isinstance(sink, record_cls):
        raise SinkLookupError(
            sink.id, sink.sink_type, f"record is a {type(sink).__name__}"
        )
    return builder(sink)
