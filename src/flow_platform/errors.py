"""Exception hierarchy for the workflow engine and the sort config compiler."""

from __future__ import annotations


class FlowPlatformError(Exception):
    """Base class for all flow platform errors."""


# -- Workflow -----------------------------------------------------------------


class WorkflowError(FlowPlatformError):
    """Raised by the process/task state machine."""


class ProcessNotFound(WorkflowError):
    def __init__(self, process_id: str) -> None:
        self.process_id = process_id
        super().__init__(f"Process not found: {process_id}")


class DuplicateProcess(WorkflowError):
    def __init__(self, process_id: str) -> None:
        self.process_id = process_id
        super().__init__(f"Process already exists: {process_id}")


class UnknownProcessDefinition(WorkflowError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No process definition registered for '{name}'")


class ProcessTerminated(WorkflowError):
    """The process is in a terminal state and accepts no further events."""

    def __init__(self, process_id: str, status: str, event: str) -> None:
        self.process_id = process_id
        self.status = status
        self.event = event
        super().__init__(
            f"Process {process_id} is already {status}; event {event} rejected"
        )


class InvalidTransition(WorkflowError):
    def __init__(self, process_id: str, status: str, event: str) -> None:
        self.process_id = process_id
        self.status = status
        self.event = event
        super().__init__(
            f"Event {event} is not allowed for process {process_id} in state {status}"
        )


class ListenerTimeout(WorkflowError):
    def __init__(self, listener: str, timeout: float) -> None:
        self.listener = listener
        self.timeout = timeout
        super().__init__(f"Listener {listener} timed out after {timeout}s")


# -- Sort config compilation --------------------------------------------------


class CompileError(FlowPlatformError):
    """Raised while compiling sort data flows."""


class BatchCompileError(CompileError):
    """Aborts compilation of the whole group."""


class StreamCompileError(CompileError):
    """Drops a single stream from the compiled output."""


class UnsupportedForm(BatchCompileError):
    def __init__(self, form_name: str) -> None:
        self.form_name = form_name
        super().__init__(f"Unsupported process form '{form_name}' for sort config")


class UnsupportedMiddleware(BatchCompileError):
    def __init__(self, middleware_type: str | None) -> None:
        self.middleware_type = middleware_type
        super().__init__(f"Middleware '{middleware_type}' is not supported for sort")


class MissingClusterConfig(BatchCompileError):
    def __init__(self, setting: str) -> None:
        self.setting = setting
        super().__init__(f"Cluster setting '{setting}' cannot be empty")


class NoSinkFound(StreamCompileError):
    def __init__(self, group_id: str, stream_id: str) -> None:
        self.group_id = group_id
        self.stream_id = stream_id
        super().__init__(f"No sink found for stream {group_id}/{stream_id}")


class UnknownFieldFormat(StreamCompileError):
    def __init__(self, field_type: str) -> None:
        self.field_type = field_type
        super().__init__(f"Unknown field type '{field_type}'")


class UnsupportedSinkType(StreamCompileError):
    def __init__(self, sink_type: str) -> None:
        self.sink_type = sink_type
        super().__init__(f"Unsupported sink type '{sink_type}'")


class MissingGroupTopic(BatchCompileError):
    def __init__(self, group_id: str | None) -> None:
        self.group_id = group_id
        super().__init__(f"Group {group_id} has no topic bound (mq_resource_obj)")


class MissingStreamTopic(StreamCompileError):
    def __init__(self, group_id: str, stream_id: str) -> None:
        self.group_id = group_id
        self.stream_id = stream_id
        super().__init__(
            f"Stream {group_id}/{stream_id} has no topic bound (mq_resource_obj)"
        )


class StreamNotFound(StreamCompileError):
    def __init__(self, group_id: str, stream_id: str) -> None:
        self.group_id = group_id
        self.stream_id = stream_id
        super().__init__(f"Stream not found: {group_id}/{stream_id}")


class SinkLookupError(StreamCompileError):
    """The sink record is missing or does not match its brief."""

    def __init__(self, sink_id: int, sink_type: str, reason: str) -> None:
        self.sink_id = sink_id
        self.sink_type = sink_type
        super().__init__(f"Sink {sink_id} ({sink_type}): {reason}")
