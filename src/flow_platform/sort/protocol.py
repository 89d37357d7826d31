"""Data-flow descriptors handed to the sort (stream processing) engine.

Every descriptor serializes to camelCase JSON. Source, sink and
deserialization variants carry a ``type`` tag so the engine's config
loader can pick the concrete class.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from flow_platform.sort.formats import FormatInfo


class SortModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldInfo(SortModel):
    name: str
    format_info: FormatInfo


# -- Deserialization ----------------------------------------------------------


class CsvDeserializationInfo(SortModel):
    """Delimiter-separated payload carried inside the middleware message."""

    type: Literal["csv"] = "csv"
    stream_id: str
    delimiter: str = Field(min_length=1, max_length=1)


DeserializationInfo = CsvDeserializationInfo


# -- Sources ------------------------------------------------------------------


class PulsarSourceInfo(SortModel):
    type: Literal["pulsar"] = "pulsar"
    admin_url: str
    service_url: str
    tenant: str
    namespace: str | None = None
    topic: str
    subscription_name: str
    deserialization_info: DeserializationInfo | None = None
    fields: list[FieldInfo] = Field(default_factory=list)

    @property
    def full_topic_name(self) -> str:
        if self.namespace:
            return f"persistent://{self.tenant}/{self.namespace}/{self.topic}"
        return self.topic


class TubeSourceInfo(SortModel):
    type: Literal["tubemq"] = "tubemq"
    topic: str
    master_address: str
    consumer_group: str
    deserialization_info: DeserializationInfo | None = None
    fields: list[FieldInfo] = Field(default_factory=list)


SourceInfo = Annotated[
    PulsarSourceInfo | TubeSourceInfo, Field(discriminator="type")
]


# -- Sinks --------------------------------------------------------------------


class HivePartitionInfo(SortModel):
    field_name: str


class HiveSinkInfo(SortModel):
    type: Literal["hive"] = "hive"
    fields: list[FieldInfo] = Field(default_factory=list)
    hive_server_jdbc_url: str
    database_name: str
    table_name: str
    username: str | None = None
    password: str | None = None
    data_path: str
    partitions: list[HivePartitionInfo] = Field(default_factory=list)
    file_format: str
    field_delimiter: str | None = None


class KafkaSinkInfo(SortModel):
    type: Literal["kafka"] = "kafka"
    fields: list[FieldInfo] = Field(default_factory=list)
    address: str
    topic: str
    serialization_type: str


class ClickHouseSinkInfo(SortModel):
    type: Literal["clickhouse"] = "clickhouse"
    fields: list[FieldInfo] = Field(default_factory=list)
    url: str
    database_name: str
    table_name: str
    username: str | None = None
    password: str | None = None
    distributed_table: bool = False
    partition_strategy: str
    partition_key: str | None = None
    key_field_names: list[str] = Field(default_factory=list)
    flush_interval: int
    flush_record_number: int
    write_max_retry_times: int


SinkInfo = Annotated[
    HiveSinkInfo | KafkaSinkInfo | ClickHouseSinkInfo, Field(discriminator="type")
]


# -- Data flow ----------------------------------------------------------------


class DataFlowInfo(SortModel):
    """One stream's source/sink pairing, identified by its sink id."""

    id: int
    source_info: SourceInfo
    sink_info: SinkInfo
    properties: dict[str, Any] = Field(default_factory=dict)


_DATA_FLOWS = TypeAdapter(dict[str, DataFlowInfo])


def dump_data_flows(flows: dict[str, DataFlowInfo]) -> str:
    """Serialize a stream-id → DataFlowInfo mapping, preserving key order."""
    return _DATA_FLOWS.dump_json(flows, by_alias=True).decode()


def parse_data_flows(payload: str) -> dict[str, DataFlowInfo]:
    """Parse a payload produced by :func:`dump_data_flows`."""
    return _DATA_FLOWS.validate_json(payload)
