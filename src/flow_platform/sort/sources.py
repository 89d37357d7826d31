"""Build sort source descriptors for the group's transport middleware."""

from __future__ import annotations

from flow_platform.config.models import ClusterConfig, MiddlewareType
from flow_platform.errors import (
    MissingClusterConfig,
    MissingGroupTopic,
    MissingStreamTopic,
    UnsupportedMiddleware,
)
from flow_platform.resources.models import GroupRequest, StreamInfo
from flow_platform.sort.protocol import (
    CsvDeserializationInfo,
    DeserializationInfo,
    FieldInfo,
    PulsarSourceInfo,
    SourceInfo,
    TubeSourceInfo,
)


def consumer_group_name(app_name: str, topic: str) -> str:
    """Consumer group the sort job subscribes with: ``<app>_<topic>_consumer_group``."""
    return f"{app_name}_{topic}_consumer_group"


def parse_separator(separator: str) -> str:
    """Turn a stored separator into the character it denotes.

    Separators are stored as character codes ("124" for ``|``); a value that
    is not a number is taken to be the character itself.
    """
    if separator.isdigit():
        return chr(int(separator))
    if len(separator) != 1:
        msg = f"Separator must be a character code or a single character: {separator!r}"
        raise ValueError(msg)
    return separator


def create_deserialization_info(stream: StreamInfo) -> DeserializationInfo | None:
    """Delimiter-based deserialization when the stream declares a separator."""
    if not stream.data_separator:
        return None
    return CsvDeserializationInfo(
        stream_id=stream.stream_id,
        delimiter=parse_separator(stream.data_separator),
    )


def check_source_requirements(group: GroupRequest, cluster: ClusterConfig) -> None:
    """Fail fast on group-wide problems before any stream is compiled."""
    if group.middleware_type == MiddlewareType.PULSAR:
        return
    if group.middleware_type == MiddlewareType.TUBE:
        if not cluster.tube_master:
            raise MissingClusterConfig("tube_master")
        if not group.mq_resource_obj:
            raise MissingGroupTopic(group.group_id)
        return
    raise UnsupportedMiddleware(group.middleware_type)


def create_source_info(
    group: GroupRequest,
    stream: StreamInfo,
    fields: list[FieldInfo],
    cluster: ClusterConfig,
) -> SourceInfo:
    """Create the source descriptor for *stream* on the group's middleware."""
    deserialization = create_deserialization_info(stream)

    if group.middleware_type == MiddlewareType.PULSAR:
        return create_pulsar_source_info(group, stream, deserialization, fields, cluster)

    if group.middleware_type == MiddlewareType.TUBE:
        return create_tube_source_info(group, deserialization, fields, cluster)

    raise UnsupportedMiddleware(group.middleware_type)


def create_pulsar_source_info(
    group: GroupRequest,
    stream: StreamInfo,
    deserialization: DeserializationInfo | None,
    fields: list[FieldInfo],
    cluster: ClusterConfig,
) -> PulsarSourceInfo:
    """Pulsar source bound to the stream's own topic in the group's namespace."""
    topic = stream.mq_resource_obj
    if not topic:
        raise MissingStreamTopic(stream.group_id, stream.stream_id)
    return PulsarSourceInfo(
        admin_url=cluster.pulsar_admin_url,
        service_url=cluster.pulsar_service_url,
        tenant=cluster.pulsar_tenant,
        namespace=group.mq_resource_obj,
        topic=topic,
        subscription_name=consumer_group_name(cluster.app_name, topic),
        deserialization_info=deserialization,
        fields=fields,
    )


def create_tube_source_info(
    group: GroupRequest,
    deserialization: DeserializationInfo | None,
    fields: list[FieldInfo],
    cluster: ClusterConfig,
) -> TubeSourceInfo:
    """TubeMQ source on the group topic, consumed through the cluster master."""
    if not cluster.tube_master:
        raise MissingClusterConfig("tube_master")
    topic = group.mq_resource_obj
    if not topic:
        raise MissingGroupTopic(group.group_id)
    return TubeSourceInfo(
        topic=topic,
        master_address=cluster.tube_master,
        consumer_group=consumer_group_name(cluster.app_name, topic),
        deserialization_info=deserialization,
        fields=fields,
    )
