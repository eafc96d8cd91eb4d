"""
Error Aggregator

Collects error records over a pipeline run, groups them by phase and turns
them into one human-readable message.
"""

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from ...core.exceptions import TaskCancelledError, TaskTimeoutError
from ...core.logging import LoggerAdapter, get_logger
from ...models.errors import ErrorCode, ErrorRecord
from ...models.production import PartialSuccessReport
from .rate_limit import is_rate_limit_error


class ErrorAggregator:
    """Accumulates ErrorRecords for one pipeline run."""

    def __init__(self, logger: Optional[LoggerAdapter] = None):
        self._errors: List[ErrorRecord] = []
        self._logger = logger or get_logger(__name__, component="error_aggregator")

    def add(
        self,
        code: ErrorCode,
        message: str,
        phase: str,
        task_id: Optional[str] = None,
        recoverable: bool = True,
        retryable: bool = False,
    ) -> ErrorRecord:
        record = ErrorRecord(
            code=code,
            message=message,
            phase=phase,
            task_id=task_id,
            recoverable=recoverable,
            retryable=retryable,
        )
        return self.add_record(record)

    def add_record(self, record: ErrorRecord) -> ErrorRecord:
        self._errors.append(record)
        self._logger.warning(
            f'[{record.code.value}] phase="{record.phase}": {record.message}',
            extra={"phase": record.phase, "task_id": record.task_id, "code": record.code.value},
        )
        return record

    def add_task_failures(self, results: Iterable, phase: str, code: ErrorCode = ErrorCode.TASK_FAILED) -> List[ErrorRecord]:
        """
        Record every failed TaskResult of a fan-out phase.

        Timeouts and rate limits get their own codes; everything else uses `code`.
        Cancelled tasks are not errors and are ignored.
        """
        added = []
        for result in results:
            if result.success or isinstance(result.exception, TaskCancelledError):
                continue
            if result.error == "Task cancelled":
                continue
            record_code = code
            if isinstance(result.exception, TaskTimeoutError):
                record_code = ErrorCode.TASK_TIMEOUT
            elif is_rate_limit_error(result.exception):
                record_code = ErrorCode.RATE_LIMIT_EXCEEDED
            added.append(self.add(
                record_code,
                result.error or "Task failed",
                phase,
                task_id=result.task_id,
                recoverable=True,
                retryable=True,
            ))
        return added

    def get_errors(self) -> List[ErrorRecord]:
        return list(self._errors)

    def get_errors_by_phase(self) -> Dict[str, List[ErrorRecord]]:
        grouped: Dict[str, List[ErrorRecord]] = OrderedDict()
        for record in self._errors:
            grouped.setdefault(record.phase, []).append(record)
        return grouped

    def has_errors(self) -> bool:
        return bool(self._errors)

    def has_critical_errors(self) -> bool:
        return any(not record.recoverable for record in self._errors)

    def get_aggregated_message(self) -> str:
        if not self._errors:
            return "No errors recorded."

        if len(self._errors) == 1:
            record = self._errors[0]
            return f"[{record.code.value}] {record.phase}: {record.message}"

        lines = [f"{len(self._errors)} errors occurred during pipeline execution:"]
        for phase, records in self.get_errors_by_phase().items():
            lines.append(f'  Phase "{phase}":')
            for record in records:
                task_suffix = f" (task: {record.task_id})" if record.task_id else ""
                lines.append(f"    - [{record.code.value}] {record.message}{task_suffix}")
        return "\n".join(lines)

    def build_partial_success_report(self, total: int, succeeded: int, phase: str) -> Optional[PartialSuccessReport]:
        """Report for a fan-out phase where some but not all tasks succeeded; None otherwise."""
        failed = total - succeeded
        if total == 0 or failed <= 0:
            return None
        return PartialSuccessReport(
            phase=phase,
            total=total,
            succeeded=succeeded,
            failed=failed,
            message=f"{succeeded} of {total} {phase} tasks succeeded; {failed} failed",
        )

    def to_list(self) -> List[dict]:
        return [record.to_dict() for record in self._errors]

    def clear(self) -> None:
        self._errors.clear()
