"""Compile a group's streams and sinks into sort data flows."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from flow_platform.config.models import ClusterConfig
from flow_platform.errors import (
    NoSinkFound,
    SinkLookupError,
    StreamCompileError,
    StreamNotFound,
)
from flow_platform.resources.base import SinkService, StreamService
from flow_platform.resources.models import GroupRequest, StreamBrief
from flow_platform.sort.formats import convert_field_format
from flow_platform.sort.protocol import DataFlowInfo, FieldInfo
from flow_platform.sort.sinks import create_sink_info
from flow_platform.sort.sources import check_source_requirements, create_source_info

logger = structlog.get_logger()


@dataclass
class CompileResult:
    flows: dict[str, DataFlowInfo] = field(default_factory=dict)
    # stream id → reason it was left out
    skipped: dict[str, str] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        """True when the group had no streams to compile at all."""
        return not self.flows and not self.skipped


class DataFlowCompiler:
    """Builds one :class:`DataFlowInfo` per stream of a group.

    Failures fall in two classes. Group-wide problems (unsupported middleware,
    missing cluster settings) raise and nothing is produced. Problems local to
    one stream (no sink, a missing stream or sink record, unknown field type,
    bad separator) drop that stream
    with a warning and the rest still compile.
    """

    def __init__(
        self,
        cluster: ClusterConfig,
        stream_service: StreamService,
        sink_service: SinkService,
    ) -> None:
        self._cluster = cluster
        self._streams = stream_service
        self._sinks = sink_service

    def compile(self, group: GroupRequest) -> CompileResult:
        """Compile every stream of *group*."""
        result = CompileResult()
        if not group.group_id:
            return result
        briefs = self._streams.list_briefs(group.group_id)
        if not briefs:
            logger.warning("sort.streams_not_found", group_id=group.group_id)
            return result

        check_source_requirements(group, self._cluster)

        for brief in briefs:
            try:
                result.flows[brief.stream_id] = self.compile_stream(group, brief)
            except (StreamCompileError, ValueError) as exc:
                result.skipped[brief.stream_id] = str(exc)
                logger.warning(
                    "sort.stream_skipped",
                    group_id=group.group_id,
                    stream_id=brief.stream_id,
                    error=str(exc),
                )
        logger.info(
            "sort.compiled",
            group_id=group.group_id,
            data_flows=list(result.flows),
            skipped=list(result.skipped),
        )
        return result

    def compile_stream(self, group: GroupRequest, brief: StreamBrief) -> DataFlowInfo:
        """Compile a single stream using the first of its sinks."""
        if not brief.sinks:
            raise NoSinkFound(brief.group_id, brief.stream_id)
        sink_brief = brief.sinks[0]
        if len(brief.sinks) > 1:
            logger.debug(
                "sort.extra_sinks_ignored",
                stream_id=brief.stream_id,
                used=sink_brief.id,
                ignored=[s.id for s in brief.sinks[1:]],
            )
        try:
            sink = self._sinks.get(sink_brief.id, sink_brief.sink_type)
        except KeyError as exc:
            raise SinkLookupError(
                sink_brief.id, sink_brief.sink_type, "record not found"
            ) from exc
        try:
            stream = self._streams.get(brief.group_id, brief.stream_id)
        except KeyError as exc:
            raise StreamNotFound(brief.group_id, brief.stream_id) from exc

        fields = [
            FieldInfo(
                name=f.field_name, format_info=convert_field_format(f.field_type)
            )
            for f in stream.fields
        ]
        source_info = create_source_info(group, stream, fields, self._cluster)
        sink_info = create_sink_info(sink)
        return DataFlowInfo(id=sink.id, source_info=source_info, sink_info=sink_info)
