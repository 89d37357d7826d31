"""Read-only service protocols the sort compiler consumes.

Storage of groups, streams and sinks lives elsewhere; any backend that
satisfies these protocols can feed the compiler.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from flow_platform.resources.models import SinkRecord, StreamBrief, StreamInfo


@runtime_checkable
class StreamService(Protocol):
    """Lookup of streams belonging to a group."""

    def list_briefs(self, group_id: str) -> list[StreamBrief]:
        """Return the briefs of every stream in *group_id*, with their sinks."""
        ...

    def get(self, group_id: str, stream_id: str) -> StreamInfo:
        """Return the full stream record."""
        ...


@runtime_checkable
class SinkService(Protocol):
    """Lookup of sink records by identity and type."""

    def get(self, sink_id: int, sink_type: str) -> SinkRecord:
        """Return the full sink record."""
        ...
