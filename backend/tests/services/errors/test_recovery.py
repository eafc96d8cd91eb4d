"""
Tests for reelforge.services.errors.recovery
"""

import pytest
from unittest.mock import AsyncMock

from reelforge.core.exceptions import CriticalPhaseFailureError, PipelineCancelledError
from reelforge.models.errors import ErrorCode, ErrorRecord, RecoveryAction, RecoveryDecision
from reelforge.services.errors.recovery import CriticalFailureHandler, is_critical_phase


def _record(phase, recoverable=False):
    return ErrorRecord(code=ErrorCode.SCRIPT_FAILED, message="model down", phase=phase, recoverable=recoverable)


class TestCriticalFailureHandler:

    def test_critical_phases(self):
        assert is_critical_phase("script")
        assert is_critical_phase("assembly")
        assert not is_critical_phase("visuals")

    @pytest.mark.asyncio
    async def test_non_critical_phase_is_skipped(self):
        callback = AsyncMock()
        handler = CriticalFailureHandler(on_critical_failure=callback)

        decision = await handler.handle_failure(_record("visuals"))

        assert decision.action == RecoveryAction.SKIP
        callback.assert_not_called()
        assert handler.aggregator.has_errors()

    @pytest.mark.asyncio
    async def test_recoverable_error_in_critical_phase_is_skipped(self):
        callback = AsyncMock()
        handler = CriticalFailureHandler(on_critical_failure=callback)

        decision = await handler.handle_failure(_record("script", recoverable=True))

        assert decision.action == RecoveryAction.SKIP
        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_callback_decides_recovery(self):
        callback = AsyncMock(return_value=RecoveryAction.RETRY)
        handler = CriticalFailureHandler(on_critical_failure=callback)

        decision = await handler.handle_failure(_record("script"))

        assert decision == RecoveryDecision(action=RecoveryAction.RETRY)
        options = callback.call_args[0][1]
        assert [o.action for o in options] == [RecoveryAction.RETRY, RecoveryAction.EDIT, RecoveryAction.CANCEL]

    @pytest.mark.asyncio
    async def test_edit_decision_passes_through(self):
        edited = RecoveryDecision(action=RecoveryAction.EDIT, edited_input="a better idea")
        handler = CriticalFailureHandler(on_critical_failure=AsyncMock(return_value=edited))

        assert await handler.handle_failure(_record("assembly")) is edited

    @pytest.mark.asyncio
    async def test_without_callback_raises(self):
        handler = CriticalFailureHandler()

        with pytest.raises(CriticalPhaseFailureError):
            await handler.handle_failure(_record("screenplay"))


class TestRunPhase:
    """Critical phase loop driven by the recovery decision."""

    @pytest.mark.asyncio
    async def test_retry_reruns_until_success(self):
        operation = AsyncMock(side_effect=[RuntimeError("busy"), "draft"])
        handler = CriticalFailureHandler(on_critical_failure=AsyncMock(return_value=RecoveryAction.RETRY))

        result = await handler.run_phase("screenplay", operation, "idea", ErrorCode.SCRIPT_FAILED)

        assert result == "draft"
        assert operation.await_count == 2
        assert [e["phase"] for e in handler.aggregator.to_list()] == ["screenplay"]

    @pytest.mark.asyncio
    async def test_edit_reruns_with_edited_input(self):
        operation = AsyncMock(side_effect=[RuntimeError("too vague"), "draft"])
        edited = RecoveryDecision(action=RecoveryAction.EDIT, edited_input="a sharper idea")
        handler = CriticalFailureHandler(on_critical_failure=AsyncMock(return_value=edited))

        await handler.run_phase("script", operation, "idea", ErrorCode.SCRIPT_FAILED)

        assert [c.args[0] for c in operation.await_args_list] == ["idea", "a sharper idea"]

    @pytest.mark.asyncio
    async def test_cancel_stops_the_pipeline(self):
        handler = CriticalFailureHandler(on_critical_failure=AsyncMock(return_value=RecoveryAction.CANCEL))

        with pytest.raises(PipelineCancelledError, match="after script failure"):
            await handler.run_phase("script", AsyncMock(side_effect=RuntimeError("x")), "idea", ErrorCode.SCRIPT_FAILED)

    @pytest.mark.asyncio
    async def test_without_callback_the_failure_escapes(self):
        operation = AsyncMock(side_effect=RuntimeError("model down"))

        with pytest.raises(CriticalPhaseFailureError) as exc_info:
            await CriticalFailureHandler().run_phase("screenplay", operation, "idea", ErrorCode.SCRIPT_FAILED)

        assert exc_info.value.phase == "screenplay"
        operation.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancelled_run_does_not_start(self):
        operation = AsyncMock()

        def check_cancelled():
            raise PipelineCancelledError()

        with pytest.raises(PipelineCancelledError):
            await CriticalFailureHandler().run_phase(
                "script", operation, "idea", ErrorCode.SCRIPT_FAILED, check_cancelled=check_cancelled,
            )

        operation.assert_not_called()
