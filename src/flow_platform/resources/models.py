"""Read models for groups, streams and sinks.

These mirror what the group/stream/sink services hand to the workflow.
The engine only reads them; the one exception is the extension list on
:class:`GroupRequest`, which listeners append compiled artifacts to.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, SecretStr

from flow_platform.config.models import MiddlewareType


class GroupExtInfo(BaseModel):
    """A key/value extension entry attached to a group."""

    id: int | None = None
    group_id: str | None = None
    key_name: str
    key_value: str


class GroupRequest(BaseModel):
    """Group-level request as carried inside a process form."""

    group_id: str | None = None
    name: str | None = None
    middleware_type: str = MiddlewareType.PULSAR
    # Pulsar: namespace of the group's topics. Tube: the group's topic.
    mq_resource_obj: str | None = None
    ext_list: list[GroupExtInfo] | None = None

    def get_ext(self, key_name: str) -> GroupExtInfo | None:
        """Return the extension entry named *key_name*, if present."""
        for ext in self.ext_list or []:
            if ext.key_name == key_name:
                return ext
        return None

    def put_ext(self, ext: GroupExtInfo) -> None:
        """Add *ext*, replacing any existing entry with the same key."""
        if self.ext_list is None:
            self.ext_list = []
        self.ext_list = [e for e in self.ext_list if e.key_name != ext.key_name]
        self.ext_list.append(ext)


class StreamField(BaseModel):
    field_name: str
    field_type: str
    field_comment: str | None = None


class StreamInfo(BaseModel):
    """Full stream record."""

    group_id: str
    stream_id: str
    name: str | None = None
    # Pulsar topic the stream is bound to.
    mq_resource_obj: str | None = None
    # Either a character code ("124") or the character itself ("|").
    data_separator: str | None = None
    fields: list[StreamField] = Field(default_factory=list)


class SinkType(StrEnum):
    """Sink types the sort compiler knows how to describe."""

    HIVE = "HIVE"
    KAFKA = "KAFKA"
    CLICKHOUSE = "CLICKHOUSE"


class SinkBrief(BaseModel):
    id: int
    group_id: str
    stream_id: str
    sink_type: str
    sink_name: str | None = None


class StreamBrief(BaseModel):
    """Stream summary with the briefs of its sinks, in creation order."""

    group_id: str
    stream_id: str
    sinks: list[SinkBrief] = Field(default_factory=list)


class SinkField(BaseModel):
    field_name: str
    field_type: str
    source_field_name: str | None = None
    source_field_type: str | None = None
    field_comment: str | None = None


class SinkRecord(BaseModel):
    """Common sink attributes; concrete sink types extend this."""

    id: int
    group_id: str
    stream_id: str
    sink_type: str
    sink_name: str | None = None
    fields: list[SinkField] = Field(default_factory=list)

    def brief(self) -> SinkBrief:
        return SinkBrief(
            id=self.id,
            group_id=self.group_id,
            stream_id=self.stream_id,
            sink_type=self.sink_type,
            sink_name=self.sink_name,
        )


class HiveSinkRecord(SinkRecord):
    sink_type: Literal["HIVE"] = "HIVE"
    jdbc_url: str
    db_name: str
    table_name: str
    username: str | None = None
    password: SecretStr | None = None
    hdfs_default_fs: str
    warehouse_dir: str = "/user/hive/warehouse"
    file_format: str = "TextFile"
    data_separator: str | None = None
    primary_partition: str | None = None
    secondary_partition: str | None = None


class KafkaSinkRecord(SinkRecord):
    sink_type: Literal["KAFKA"] = "KAFKA"
    bootstrap_servers: str
    topic_name: str
    serialization_type: str = "json"


class ClickHouseSinkRecord(SinkRecord):
    sink_type: Literal["CLICKHOUSE"] = "CLICKHOUSE"
    jdbc_url: str
    db_name: str
    table_name: str
    username: str | None = None
    password: SecretStr | None = None
    flush_interval: int = Field(default=1, ge=0)
    package_size: int = Field(default=1000, ge=1)
    retry_times: int = Field(default=3, ge=0)
    is_distributed: bool = False
    partition_strategy: str = "BALANCE"
    partition_fields: str | None = None
    key_field_names: str | None = None


AnySinkRecord = Annotated[
    HiveSinkRecord | KafkaSinkRecord | ClickHouseSinkRecord,
    Field(discriminator="sink_type"),
]


class GroupBundle(BaseModel, extra="forbid"):
    """A group with its streams and sinks, as loaded from a YAML bundle."""

    group: GroupRequest
    streams: list[StreamInfo] = Field(default_factory=list)
    sinks: list[AnySinkRecord] = Field(default_factory=list)
