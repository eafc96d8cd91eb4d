"""
Critical Failure Handler

Failures in critical phases pause the pipeline and ask a human how to
proceed. Failures elsewhere are recorded and skipped.
"""

from typing import Any, Awaitable, Callable, List, Optional, Union

from ...core.exceptions import CriticalPhaseFailureError, PipelineCancelledError
from ...core.logging import LoggerAdapter, get_logger
from ...models.errors import ErrorCode, ErrorRecord, RecoveryAction, RecoveryDecision, RecoveryOption
from .aggregator import ErrorAggregator

CRITICAL_PHASES = frozenset({"script", "screenplay", "assembly", "final-assembly"})

RECOVERY_OPTIONS: List[RecoveryOption] = [
    RecoveryOption(RecoveryAction.RETRY, "Retry", "Retry the failed phase from scratch"),
    RecoveryOption(RecoveryAction.EDIT, "Edit & Retry", "Edit the input and retry"),
    RecoveryOption(RecoveryAction.CANCEL, "Cancel", "Cancel the entire pipeline"),
]

OnCriticalFailure = Callable[
    [ErrorRecord, List[RecoveryOption]],
    Awaitable[Union[RecoveryAction, RecoveryDecision]],
]


def is_critical_phase(phase: str) -> bool:
    return phase in CRITICAL_PHASES


def _as_decision(outcome: Union[RecoveryAction, RecoveryDecision, str]) -> RecoveryDecision:
    if isinstance(outcome, RecoveryDecision):
        return outcome
    return RecoveryDecision(action=RecoveryAction(outcome))


class CriticalFailureHandler:
    """
    Routes phase failures to the recovery callback.

    Without a callback, a critical failure raises CriticalPhaseFailureError
    so it propagates out of the pipeline.
    """

    def __init__(
        self,
        on_critical_failure: Optional[OnCriticalFailure] = None,
        aggregator: Optional[ErrorAggregator] = None,
        logger: Optional[LoggerAdapter] = None,
    ):
        self.on_critical_failure = on_critical_failure
        self.aggregator = aggregator or ErrorAggregator()
        self._logger = logger or get_logger(__name__, component="critical_failure")

    async def handle_failure(self, record: ErrorRecord) -> RecoveryDecision:
        self.aggregator.add_record(record)

        if not (is_critical_phase(record.phase) and not record.recoverable):
            self._logger.warning(
                f'Non-critical failure in phase "{record.phase}": {record.message}. Continuing.',
                extra={"phase": record.phase},
            )
            return RecoveryDecision(action=RecoveryAction.SKIP)

        self._logger.error(
            f'Critical failure in phase "{record.phase}": {record.message}',
            extra={"phase": record.phase, "code": record.code.value},
        )
        if self.on_critical_failure is None:
            raise CriticalPhaseFailureError(record)

        decision = _as_decision(await self.on_critical_failure(record, list(RECOVERY_OPTIONS)))
        self._logger.info(
            "Recovery action chosen",
            extra={"phase": record.phase, "action": decision.action.value},
        )
        return decision

    async def run_phase(
        self,
        phase: str,
        operation: Callable[[Any], Awaitable[Any]],
        value: Any,
        code: ErrorCode,
        check_cancelled: Optional[Callable[[], None]] = None,
    ) -> Any:
        """
        Run a critical phase until it succeeds or the recovery choice ends it.

        RETRY runs the operation again, EDIT runs it on the edited input and
        any other choice cancels the pipeline.

        Args:
            phase: Phase name reported in the error record
            operation: Coroutine function taking the (possibly edited) input
            value: Initial input
            code: Error code recorded on failure
            check_cancelled: Raises PipelineCancelledError once the run is cancelled

        Returns:
            The operation's result once it succeeds
        """
        while True:
            if check_cancelled:
                check_cancelled()
            try:
                return await operation(value)
            except PipelineCancelledError:
                raise
            except Exception as e:
                if check_cancelled:
                    check_cancelled()
                record = ErrorRecord(
                    code=code,
                    message=str(e),
                    phase=phase,
                    recoverable=False,
                    retryable=True,
                )
                decision = await self.handle_failure(record)
                if decision.action == RecoveryAction.RETRY:
                    continue
                if decision.action == RecoveryAction.EDIT:
                    if decision.edited_input:
                        value = decision.edited_input
                    continue
                raise PipelineCancelledError(f"Pipeline cancelled after {phase} failure: {e}") from e
