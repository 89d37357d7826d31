"""In-memory stream and sink services backing the CLI and tests."""

from __future__ import annotations

from flow_platform.resources.models import (
    GroupBundle,
    SinkRecord,
    StreamBrief,
    StreamInfo,
)


class InMemorySinkService:
    """SinkService over a dict of sink records keyed by id."""

    def __init__(self, sinks: list[SinkRecord] | None = None) -> None:
        self._sinks: dict[int, SinkRecord] = {}
        for sink in sinks or []:
            self.add(sink)

    def add(self, sink: SinkRecord) -> None:
        self._sinks[sink.id] = sink

    def list_for_stream(self, group_id: str, stream_id: str) -> list[SinkRecord]:
        return [
            s
            for s in self._sinks.values()
            if s.group_id == group_id and s.stream_id == stream_id
        ]

    def get(self, sink_id: int, sink_type: str) -> SinkRecord:
        sink = self._sinks.get(sink_id)
        if sink is None or sink.sink_type != sink_type:
            msg = f"Sink not found: id={sink_id} type={sink_type}"
            raise KeyError(msg)
        return sink


class InMemoryStreamService:
    """StreamService whose sink briefs come from an InMemorySinkService."""

    def __init__(
        self,
        sink_service: InMemorySinkService,
        streams: list[StreamInfo] | None = None,
    ) -> None:
        self._sink_service = sink_service
        self._streams: dict[tuple[str, str], StreamInfo] = {}
        for stream in streams or []:
            self.add(stream)

    def add(self, stream: StreamInfo) -> None:
        self._streams[(stream.group_id, stream.stream_id)] = stream

    def list_briefs(self, group_id: str) -> list[StreamBrief]:
        return [
            StreamBrief(
                group_id=gid,
                stream_id=sid,
                sinks=[
                    s.brief() for s in self._sink_service.list_for_stream(gid, sid)
                ],
            )
            for gid, sid in self._streams
            if gid == group_id
        ]

    def get(self, group_id: str, stream_id: str) -> StreamInfo:
        stream = self._streams.get((group_id, stream_id))
        if stream is None:
            msg = f"Stream not found: {group_id}/{stream_id}"
            raise KeyError(msg)
        return stream


def services_from_bundle(
    bundle: GroupBundle,
) -> tuple[InMemoryStreamService, InMemorySinkService]:
    """Build stream and sink services holding everything in *bundle*."""
    sinks = InMemorySinkService(list(bundle.sinks))
    streams = InMemoryStreamService(sinks, bundle.streams)
    return streams, sinks
