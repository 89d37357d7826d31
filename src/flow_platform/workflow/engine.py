"""Process/task state machine with ordered listener dispatch."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential_jitter,
)

from flow_platform.config.models import WorkflowConfig
from flow_platform.errors import (
    DuplicateProcess,
    InvalidTransition,
    ListenerTimeout,
    ProcessNotFound,
    ProcessTerminated,
    UnknownProcessDefinition,
    WorkflowError,
)
from flow_platform.workflow.context import WorkflowContext
from flow_platform.workflow.definitions import ProcessDefinition
from flow_platform.workflow.events import (
    TARGET_STATUS,
    ProcessEvent,
    TaskEvent,
    TaskStatus,
    is_allowed,
)
from flow_platform.workflow.forms import ProcessForm
from flow_platform.workflow.listener import Listener
from flow_platform.workflow.models import (
    AuditEntry,
    ListenerResult,
    Process,
    Task,
    TransitionOutcome,
)
from flow_platform.workflow.registry import ListenerRegistry

logger = structlog.get_logger()


class _Dispatch:
    """Accumulates what one transition's listener chain produced."""

    def __init__(self) -> None:
        self.results: list[tuple[str, ListenerResult]] = []
        self.audit: list[AuditEntry] = []
        self.deferred: list[tuple[Listener, WorkflowContext]] = []


def _last_result(state: RetryCallState) -> ListenerResult:
    assert state.outcome is not None
    return state.outcome.result()  # type: ignore[no-any-return]


class WorkflowEngine:
    """Applies events to processes and dispatches their listeners.

    A transition opens the tasks its process definition binds to the event,
    runs each task's CREATE then COMPLETE listeners, then the process
    listeners for the event. Synchronous listeners run in registration order
    and the first failure aborts the transition with the process state left
    as it was. Asynchronous listeners are started only once the transition
    has committed; their outcomes land in the process audit trail.

    Transitions on one process are serialized by a per-process lock.
    """

    def __init__(
        self,
        registry: ListenerRegistry,
        config: WorkflowConfig | None = None,
        definitions: Iterable[ProcessDefinition] = (),
    ) -> None:
        self._registry = registry
        self._config = config or WorkflowConfig()
        self._definitions: dict[str, ProcessDefinition] = {}
        self._processes: dict[str, Process] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._workers = asyncio.Semaphore(self._config.async_workers)
        self._background: set[asyncio.Task[None]] = set()
        for definition in definitions:
            self.register_definition(definition)

    # -- Processes ------------------------------------------------------------

    def register_definition(self, definition: ProcessDefinition) -> None:
        self._definitions[definition.name] = definition

    def create_process(
        self,
        name: str,
        form: ProcessForm,
        *,
        process_id: str | None = None,
    ) -> Process:
        """Create a process in the NEW state; nothing is dispatched yet."""
        if name not in self._definitions:
            raise UnknownProcessDefinition(name)
        pid = process_id or uuid.uuid4().hex
        if pid in self._processes:
            raise DuplicateProcess(pid)
        process = Process(process_id=pid, name=name, form=form)
        self._processes[pid] = process
        logger.info(
            "workflow.process_created",
            process_id=pid,
            process_name=name,
            form=form.form_name,
        )
        return process

    async def start(
        self,
        name: str,
        form: ProcessForm,
        *,
        process_id: str | None = None,
    ) -> TransitionOutcome:
        """Create a process and submit its CREATE event."""
        process = self.create_process(name, form, process_id=process_id)
        return await self.submit(process.process_id, ProcessEvent.CREATE)

    def get(self, process_id: str) -> Process:
        process = self._processes.get(process_id)
        if process is None:
            raise ProcessNotFound(process_id)
        return process

    def archive(self, process_id: str) -> Process:
        """Remove a terminal process from the engine and return it."""
        process = self.get(process_id)
        if not process.status.is_terminal:
            msg = f"Process {process_id} is {process.status} and cannot be archived"
            raise WorkflowError(msg)
        del self._processes[process_id]
        self._locks.pop(process_id, None)
        logger.info("workflow.process_archived", process_id=process_id)
        return process

    # -- Transitions ----------------------------------------------------------

    async def submit(
        self, process_id: str, event: ProcessEvent | str
    ) -> TransitionOutcome:
        """Apply *event* to the process.

        Raises :class:`ProcessTerminated` for a terminal process and
        :class:`InvalidTransition` for an event the current state does not
        accept. Listener failures are reported in the returned outcome.
        """
        event = ProcessEvent(event)
        process = self.get(process_id)
        lock = self._locks.setdefault(process_id, asyncio.Lock())
        async with lock:
            return await self._transition(process, event)

    async def _transition(
        self, process: Process, event: ProcessEvent
    ) -> TransitionOutcome:
        pid = process.process_id
        if process.status.is_terminal:
            logger.warning(
                "workflow.event_rejected",
                process_id=pid,
                status=process.status.value,
                process_event=event.value,
            )
            raise ProcessTerminated(pid, process.status.value, event.value)

        target = TARGET_STATUS[event]
        if process.status == target:
            logger.info(
                "workflow.transition_noop",
                process_id=pid,
                status=target.value,
                process_event=event.value,
            )
            return TransitionOutcome(
                process_id=pid,
                event=event,
                succeeded=True,
                status=process.status,
                noop=True,
            )
        if not is_allowed(process.status, event):
            raise InvalidTransition(pid, process.status.value, event.value)

        definition = self._definitions[process.name]
        context = WorkflowContext(
            process_id=pid,
            process_name=process.name,
            status=process.status,
            event=event,
            form=process.form.model_copy(deep=True),
        )
        dispatch = _Dispatch()
        failure: str | None = None

        tasks = [
            Task(name=task_def.name, process_id=pid)
            for task_def in definition.tasks_for(event)
        ]
        process.tasks.extend(tasks)
        for task in tasks:
            failure = await self._run_task(task, context, dispatch)
            if failure is not None:
                break
        for task in tasks:
            if task.status == TaskStatus.PENDING:
                task.status = TaskStatus.CANCELLED

        if failure is None:
            failure = await self._dispatch(
                self._registry.process_listeners(process.name, event),
                context,
                dispatch,
            )

        process.audit.extend(dispatch.audit)
        process.updated_at = datetime.now(UTC)

        if failure is not None:
            process.audit.append(
                AuditEntry(
                    kind="transition",
                    event=event.value,
                    succeeded=False,
                    reason=failure,
                )
            )
            logger.warning(
                "workflow.transition_aborted",
                process_id=pid,
                status=process.status.value,
                process_event=event.value,
                reason=failure,
            )
            return TransitionOutcome(
                process_id=pid,
                event=event,
                succeeded=False,
                status=process.status,
                reason=failure,
                results=tuple(dispatch.results),
            )

        previous = process.status
        process.status = target
        process.form = context.form
        process.history.append(event)
        process.audit.append(
            AuditEntry(kind="transition", event=event.value, succeeded=True)
        )
        logger.info(
            "workflow.transition_committed",
            process_id=pid,
            process_event=event.value,
            previous=previous.value,
            status=target.value,
        )

        for listener, listener_ctx in dispatch.deferred:
            self._launch_async(pid, listener, listener_ctx.snapshot())

        return TransitionOutcome(
            process_id=pid,
            event=event,
            succeeded=True,
            status=process.status,
            results=tuple(dispatch.results),
        )

    async def _run_task(
        self, task: Task, context: WorkflowContext, dispatch: _Dispatch
    ) -> str | None:
        for task_event in (TaskEvent.CREATE, TaskEvent.COMPLETE):
            failure = await self._dispatch(
                self._registry.task_listeners(task.name, task_event),
                context.for_task(task.name, task_event),
                dispatch,
            )
            if failure is not None:
                task.status = TaskStatus.FAILED
                task.reason = failure
                dispatch.audit.append(
                    AuditEntry(
                        kind="task",
                        event=task_event.value,
                        task=task.name,
                        succeeded=False,
                        reason=failure,
                    )
                )
                return failure
        task.status = TaskStatus.COMPLETED
        dispatch.audit.append(
            AuditEntry(
                kind="task",
                event=TaskEvent.COMPLETE.value,
                task=task.name,
                succeeded=True,
            )
        )
        return None

    async def _dispatch(
        self,
        listeners: list[Listener],
        context: WorkflowContext,
        dispatch: _Dispatch,
    ) -> str | None:
        """Run synchronous listeners in order; defer asynchronous ones."""
        task_name = context.task.name if context.task else None
        event = context.task.event if context.task else context.event
        for listener in listeners:
            if listener.run_async:
                dispatch.deferred.append((listener, context))
                continue
            result = await self._invoke(listener, context)
            dispatch.results.append((listener.name, result))
            dispatch.audit.append(
                AuditEntry(
                    kind="listener",
                    event=event.value,
                    listener=listener.name,
                    task=task_name,
                    succeeded=result.succeeded,
                    reason=result.reason,
                )
            )
            if not result.succeeded:
                return f"{listener.name}: {result.reason}"
        return None

    async def _invoke(
        self, listener: Listener, context: WorkflowContext
    ) -> ListenerResult:
        timeout = self._config.listener_timeout_seconds
        try:
            return await asyncio.wait_for(listener.listen(context), timeout=timeout)
        except TimeoutError:
            err = ListenerTimeout(listener.name, timeout)
            logger.error(
                "workflow.listener_timeout",
                process_id=context.process_id,
                listener=listener.name,
                timeout=timeout,
            )
            return ListenerResult.fail(str(err))
        except Exception as exc:
            logger.error(
                "workflow.listener_error",
                process_id=context.process_id,
                listener=listener.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ListenerResult.fail(str(exc))

    # -- Asynchronous listeners -----------------------------------------------

    def _launch_async(
        self, process_id: str, listener: Listener, context: WorkflowContext
    ) -> None:
        task = asyncio.create_task(
            self._run_async_listener(process_id, listener, context),
            name=f"{process_id}:{listener.name}",
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run_async_listener(
        self, process_id: str, listener: Listener, context: WorkflowContext
    ) -> None:
        wait = self._config.async_retry_wait_seconds
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._config.async_max_attempts),
            wait=wait_exponential_jitter(initial=wait, jitter=wait),
            retry=retry_if_result(lambda r: not r.succeeded),
            retry_error_callback=_last_result,
        )
        async with self._workers:
            result: ListenerResult = await retrying(self._invoke, listener, context)

        process = self._processes.get(process_id)
        if process is None:
            logger.warning(
                "workflow.async_result_dropped",
                process_id=process_id,
                listener=listener.name,
                succeeded=result.succeeded,
            )
            return

        # Recorded only; an async outcome never moves the process by itself.
        process.audit.append(
            AuditEntry(
                kind="async_listener",
                event=(context.task.event if context.task else context.event).value,
                listener=listener.name,
                task=context.task.name if context.task else None,
                succeeded=result.succeeded,
                reason=result.reason,
            )
        )
        if result.succeeded:
            logger.info(
                "workflow.async_listener_succeeded",
                process_id=process_id,
                listener=listener.name,
            )
            return

        logger.warning(
            "workflow.async_listener_failed",
            process_id=process_id,
            listener=listener.name,
            status=process.status.value,
            reason=result.reason,
        )
        if self._config.compensate_async_failures and not process.status.is_terminal:
            try:
                await self.submit(process_id, ProcessEvent.FAIL)
            except WorkflowError as exc:
                logger.warning(
                    "workflow.compensation_skipped",
                    process_id=process_id,
                    error=str(exc),
                )

    async def drain(self) -> None:
        """Wait for every outstanding asynchronous listener to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
