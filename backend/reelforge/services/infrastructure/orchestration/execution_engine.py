"""
Parallel Execution Engine - bounded-concurrency task runner.

Runs a batch of async tasks on exactly `concurrency_limit` cooperative
workers with per-task timeout, retry with backoff, cooperative cancellation
and rate-limit requeueing. `execute` never raises for task failures; every
input task gets exactly one TaskResult.

Usage:
    engine = ParallelExecutionEngine()
    results = await engine.execute(tasks, ExecutionOptions(concurrency_limit=4))
"""

import asyncio
import random
import time
import uuid
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, Generic, List, Optional, TypeVar

from ....config import (
    ENGINE_CANCEL_DEADLINE_SECONDS,
    ENGINE_CONCURRENCY,
    ENGINE_EXECUTION_HISTORY,
    ENGINE_RETRY_ATTEMPTS,
    ENGINE_RETRY_DELAY_SECONDS,
    RATE_LIMIT_RESET_SECONDS,
)
from ....core.exceptions import ExecutionNotFoundError, TaskCancelledError, TaskTimeoutError
from ....core.logging import LoggerAdapter, get_logger
from ....models.status import TaskState
from ...errors.rate_limit import is_rate_limit_error, rate_limit_reset_delay

T = TypeVar("T")

CANCELLED_MESSAGE = "Task cancelled"
ABORTED_MESSAGE = "Task aborted"


@dataclass
class Task(Generic[T]):
    id: str
    type: str
    execute: Callable[[], Awaitable[T]]
    priority: int = 0
    retryable: bool = True
    timeout: float = 30.0  # seconds


@dataclass
class TaskResult(Generic[T]):
    task_id: str
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    attempts: int = 0
    duration: float = 0.0
    rate_limit_retries: int = 0
    exception: Optional[BaseException] = field(default=None, repr=False)


@dataclass
class TaskMetadata:
    task: Task
    state: TaskState = TaskState.QUEUED
    attempts: int = 0
    rate_limit_retries: int = 0
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    result: Any = None
    error: Optional[BaseException] = None
    runner: Optional[asyncio.Future] = None  # abort handle for the current attempt

    @property
    def duration(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return max(0.0, self.end_time - self.start_time)


@dataclass
class ExecutionProgress:
    execution_id: str
    total_tasks: int
    queued_tasks: int
    in_progress_tasks: int
    completed_tasks: int
    failed_tasks: int
    cancelled_tasks: int
    estimated_time_remaining: float  # seconds

    @property
    def percent_complete(self) -> float:
        if self.total_tasks == 0:
            return 100.0
        done = self.completed_tasks + self.failed_tasks + self.cancelled_tasks
        return round(done / self.total_tasks * 100, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "total_tasks": self.total_tasks,
            "queued_tasks": self.queued_tasks,
            "in_progress_tasks": self.in_progress_tasks,
            "completed_tasks": self.completed_tasks,
            "failed_tasks": self.failed_tasks,
            "cancelled_tasks": self.cancelled_tasks,
            "estimated_time_remaining": self.estimated_time_remaining,
            "percent_complete": self.percent_complete,
        }


@dataclass
class ExecutionOptions:
    concurrency_limit: int = ENGINE_CONCURRENCY
    retry_attempts: int = ENGINE_RETRY_ATTEMPTS
    retry_delay: float = ENGINE_RETRY_DELAY_SECONDS  # seconds, base delay
    exponential_backoff: bool = True
    on_progress: Optional[Callable[[ExecutionProgress], None]] = None
    on_task_complete: Optional[Callable[[str, Any], None]] = None
    on_task_fail: Optional[Callable[[str, BaseException], None]] = None
    execution_id: Optional[str] = None
    rate_limit_reset: float = RATE_LIMIT_RESET_SECONDS


class _Execution:
    """Mutable state of one `execute` call."""

    def __init__(self, execution_id: str, options: ExecutionOptions, tasks: List[Task]):
        self.id = execution_id
        self.options = options
        # Insertion order is input order; results are reported in it.
        self.tasks: "OrderedDict[str, TaskMetadata]" = OrderedDict(
            (task.id, TaskMetadata(task=task)) for task in tasks
        )
        ordered = sorted(tasks, key=lambda t: -t.priority)  # stable
        self.queue: Deque[TaskMetadata] = deque(self.tasks[t.id] for t in ordered)
        self.cancelled = False
        self.force_stopped = False
        self.cancel_event = asyncio.Event()
        self.done_event = asyncio.Event()
        self.cancel_future: Optional[asyncio.Future] = None
        self.workers: List[asyncio.Task] = []

    def count(self, state: TaskState) -> int:
        return sum(1 for m in self.tasks.values() if m.state == state)

    def in_progress(self) -> List[TaskMetadata]:
        return [m for m in self.tasks.values() if m.state == TaskState.IN_PROGRESS]


class ParallelExecutionEngine:
    """Priority queue plus worker pool; one engine may run several executions."""

    def __init__(
        self,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        jitter: Optional[Callable[[], float]] = None,
        cancel_deadline: float = ENGINE_CANCEL_DEADLINE_SECONDS,
        history_limit: int = ENGINE_EXECUTION_HISTORY,
        logger: Optional[LoggerAdapter] = None,
    ):
        self._sleep = sleep or asyncio.sleep
        self._jitter = jitter or random.random
        self.cancel_deadline = cancel_deadline
        self.history_limit = max(1, history_limit)
        self._executions: Dict[str, _Execution] = {}
        self._finished: Deque[str] = deque()
        self._logger = logger or get_logger(__name__, component="execution_engine")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def execute(self, tasks: List[Task], options: Optional[ExecutionOptions] = None) -> List[TaskResult]:
        """Run every task and return one result per task, in input order."""
        options = options or ExecutionOptions()
        if options.concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")

        seen = set()
        for task in tasks:
            if task.id in seen:
                raise ValueError(f"Duplicate task id in batch: {task.id}")
            seen.add(task.id)

        execution_id = options.execution_id or str(uuid.uuid4())
        if execution_id in self._executions and not self._executions[execution_id].done_event.is_set():
            raise ValueError(f"Execution {execution_id} is already running")

        execution = _Execution(execution_id, options, tasks)
        self._executions[execution_id] = execution
        self._logger.info(
            "Execution started",
            extra={
                "execution_id": execution_id,
                "task_count": len(tasks),
                "concurrency_limit": options.concurrency_limit,
            },
        )
        self._emit_progress(execution)

        try:
            execution.workers = [
                asyncio.ensure_future(self._worker(execution))
                for _ in range(options.concurrency_limit)
            ]
            await asyncio.gather(*execution.workers, return_exceptions=True)
        except asyncio.CancelledError:
            execution.cancelled = True
            execution.cancel_event.set()
            for worker in execution.workers:
                worker.cancel()
            raise
        finally:
            # Anything still queued (cancel raced the workers) is cancelled.
            for meta in execution.tasks.values():
                if meta.state in (TaskState.QUEUED, TaskState.IN_PROGRESS):
                    self._mark_cancelled(meta)
            execution.queue.clear()
            execution.done_event.set()
            self._retire(execution_id)

        results = [self._to_result(meta) for meta in execution.tasks.values()]
        self._logger.info(
            "Execution finished",
            extra={
                "execution_id": execution_id,
                "completed": execution.count(TaskState.COMPLETED),
                "failed": execution.count(TaskState.FAILED),
                "cancelled": execution.count(TaskState.CANCELLED),
            },
        )
        return results

    async def cancel(self, execution_id: str) -> None:
        """
        Latch cancellation for an execution.

        Completes once in-flight tasks settle or the hard deadline elapses.
        Repeated calls wait on the same cancellation.
        """
        execution = self._get(execution_id)
        if execution.cancel_future is None:
            execution.cancel_future = asyncio.ensure_future(self._cancel(execution))
        await asyncio.shield(execution.cancel_future)

    def get_progress(self, execution_id: str) -> ExecutionProgress:
        return self._progress(self._get(execution_id))

    def get_task_metadata(self, execution_id: str, task_id: str) -> Optional[TaskMetadata]:
        return self._get(execution_id).tasks.get(task_id)

    def active_execution_ids(self) -> List[str]:
        return [eid for eid, ex in self._executions.items() if not ex.done_event.is_set()]

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    async def _worker(self, execution: _Execution) -> None:
        while not execution.cancelled:
            if not execution.queue:
                break
            meta = execution.queue.popleft()
            await self._run_task(execution, meta)

    async def _run_task(self, execution: _Execution, meta: TaskMetadata) -> None:
        task = meta.task
        if execution.cancelled:
            self._mark_cancelled(meta)
            return

        meta.state = TaskState.IN_PROGRESS
        if meta.start_time is None:
            meta.start_time = time.monotonic()
        self._emit_progress(execution)

        outcome, value = await self._attempt(meta)
        if execution.force_stopped:
            return

        if outcome == "ok":
            meta.attempts += 1
            meta.result = value
            meta.state = TaskState.COMPLETED
            meta.end_time = time.monotonic()
            self._logger.debug(
                "Task completed",
                extra={"execution_id": execution.id, "task_id": task.id, "attempts": meta.attempts},
            )
            self._emit_progress(execution)
            self._fire(execution.options.on_task_complete, task.id, value)
            return

        if execution.cancelled:
            self._mark_cancelled(meta)
            self._emit_progress(execution)
            return

        error: BaseException = value
        meta.error = error

        if is_rate_limit_error(error):
            meta.rate_limit_retries += 1
            delay = rate_limit_reset_delay(error, execution.options.rate_limit_reset)
            self._logger.warning(
                "Task rate limited, requeueing",
                extra={
                    "execution_id": execution.id,
                    "task_id": task.id,
                    "reset_delay_seconds": delay,
                    "rate_limit_retries": meta.rate_limit_retries,
                },
            )
            await self._pause(execution, delay)
            self._requeue_or_cancel(execution, meta)
            return

        meta.attempts += 1
        should_retry = (
            task.retryable
            and meta.attempts < execution.options.retry_attempts
            and not execution.cancelled
        )
        if should_retry:
            delay = self._retry_delay(execution.options, meta.attempts)
            self._logger.info(
                "Task failed, retrying",
                extra={
                    "execution_id": execution.id,
                    "task_id": task.id,
                    "attempt": meta.attempts,
                    "delay_seconds": round(delay, 3),
                    "error": str(error),
                },
            )
            await self._pause(execution, delay)
            self._requeue_or_cancel(execution, meta)
            return

        meta.state = TaskState.FAILED
        meta.end_time = time.monotonic()
        self._logger.warning(
            "Task failed",
            extra={
                "execution_id": execution.id,
                "task_id": task.id,
                "attempts": meta.attempts,
                "error": str(error),
            },
        )
        self._emit_progress(execution)
        self._fire(execution.options.on_task_fail, task.id, error)

    async def _attempt(self, meta: TaskMetadata):
        """Run one attempt; returns ("ok", result) or ("error", exception)."""
        task = meta.task
        runner = asyncio.ensure_future(task.execute())
        meta.runner = runner
        try:
            done, _ = await asyncio.wait({runner}, timeout=task.timeout)
        except asyncio.CancelledError:
            runner.cancel()
            raise
        finally:
            meta.runner = None

        if not done:
            runner.cancel()
            return "error", TaskTimeoutError(f"Task timeout after {task.timeout}s")
        if runner.cancelled():
            return "error", TaskCancelledError(ABORTED_MESSAGE)
        exc = runner.exception()
        if exc is not None:
            return "error", exc
        return "ok", runner.result()

    def _retry_delay(self, options: ExecutionOptions, attempts: int) -> float:
        if not options.exponential_backoff:
            return options.retry_delay
        return options.retry_delay * (2 ** attempts) + self._jitter() * options.retry_delay

    async def _pause(self, execution: _Execution, delay: float) -> None:
        """Sleep for `delay`, waking early if the execution is cancelled."""
        if execution.cancelled:
            return
        sleeper = asyncio.ensure_future(self._sleep(delay))
        waker = asyncio.ensure_future(execution.cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waker}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for fut in (sleeper, waker):
                if not fut.done():
                    fut.cancel()

    def _requeue_or_cancel(self, execution: _Execution, meta: TaskMetadata) -> None:
        if execution.force_stopped:
            return
        if execution.cancelled:
            self._mark_cancelled(meta)
        else:
            meta.state = TaskState.QUEUED
            execution.queue.append(meta)
        self._emit_progress(execution)

    @staticmethod
    def _mark_cancelled(meta: TaskMetadata) -> None:
        meta.state = TaskState.CANCELLED
        meta.end_time = time.monotonic()

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    async def _cancel(self, execution: _Execution) -> None:
        execution.cancelled = True
        execution.cancel_event.set()
        self._logger.info("Cancelling execution", extra={"execution_id": execution.id})

        for meta in execution.in_progress():
            if meta.runner is not None and not meta.runner.done():
                meta.runner.cancel()

        while execution.queue:
            self._mark_cancelled(execution.queue.popleft())
        self._emit_progress(execution)

        if execution.done_event.is_set():
            return
        try:
            await asyncio.wait_for(execution.done_event.wait(), timeout=self.cancel_deadline)
        except asyncio.TimeoutError:
            execution.force_stopped = True
            leftovers = execution.in_progress()
            self._logger.warning(
                "Cancel deadline elapsed, forcing abort",
                extra={"execution_id": execution.id, "in_flight": len(leftovers)},
            )
            for meta in leftovers:
                if meta.runner is not None:
                    meta.runner.cancel()
                self._mark_cancelled(meta)
            for worker in execution.workers:
                worker.cancel()
            self._emit_progress(execution)

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _get(self, execution_id: str) -> _Execution:
        execution = self._executions.get(execution_id)
        if execution is None:
            raise ExecutionNotFoundError(execution_id)
        return execution

    def _retire(self, execution_id: str) -> None:
        if execution_id in self._finished:
            self._finished.remove(execution_id)
        self._finished.append(execution_id)
        while len(self._finished) > self.history_limit:
            stale = self._finished.popleft()
            self._executions.pop(stale, None)

    def _progress(self, execution: _Execution) -> ExecutionProgress:
        completed = [m for m in execution.tasks.values() if m.state == TaskState.COMPLETED]
        in_progress = execution.count(TaskState.IN_PROGRESS)
        queued = execution.count(TaskState.QUEUED)

        eta = 0.0
        if completed:
            mean = sum(m.duration for m in completed) / len(completed)
            eta = mean * (in_progress + queued) / execution.options.concurrency_limit

        return ExecutionProgress(
            execution_id=execution.id,
            total_tasks=len(execution.tasks),
            queued_tasks=queued,
            in_progress_tasks=in_progress,
            completed_tasks=len(completed),
            failed_tasks=execution.count(TaskState.FAILED),
            cancelled_tasks=execution.count(TaskState.CANCELLED),
            estimated_time_remaining=round(eta, 3),
        )

    def _emit_progress(self, execution: _Execution) -> None:
        if execution.options.on_progress:
            self._fire(execution.options.on_progress, self._progress(execution))

    def _fire(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            self._logger.error("Execution callback failed", extra={"error": str(e)}, exc_info=True)

    @staticmethod
    def _to_result(meta: TaskMetadata) -> TaskResult:
        if meta.state == TaskState.COMPLETED:
            return TaskResult(
                task_id=meta.task.id,
                success=True,
                data=meta.result,
                attempts=meta.attempts,
                duration=meta.duration,
                rate_limit_retries=meta.rate_limit_retries,
            )
        if meta.state == TaskState.CANCELLED:
            return TaskResult(
                task_id=meta.task.id,
                success=False,
                error=CANCELLED_MESSAGE,
                attempts=0,
                duration=0.0,
                rate_limit_retries=meta.rate_limit_retries,
                exception=TaskCancelledError(CANCELLED_MESSAGE),
            )
        return TaskResult(
            task_id=meta.task.id,
            success=False,
            error=str(meta.error) if meta.error else "Task failed",
            attempts=meta.attempts,
            duration=meta.duration,
            rate_limit_retries=meta.rate_limit_retries,
            exception=meta.error,
        )
