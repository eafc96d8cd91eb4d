"""
Tests for models/status module
"""

import pytest

from reelforge.models.status import PipelinePhase, ProductionStatus, TaskState


class TestTaskState:

    def test_values(self):
        assert TaskState.IN_PROGRESS.value == "in-progress"
        assert TaskState("queued") is TaskState.QUEUED

    @pytest.mark.parametrize("state,terminal", [
        (TaskState.QUEUED, False),
        (TaskState.IN_PROGRESS, False),
        (TaskState.COMPLETED, True),
        (TaskState.FAILED, True),
        (TaskState.CANCELLED, True),
    ])
    def test_is_terminal(self, state, terminal):
        assert state.is_terminal() is terminal


class TestProductionStatus:

    def test_awaiting_approval_is_not_terminal(self):
        assert ProductionStatus.AWAITING_APPROVAL.is_terminal() is False
        assert ProductionStatus.CANCELLED.is_terminal() is True

    def test_string_comparison(self):
        assert ProductionStatus.RUNNING == "running"


def test_phase_order():
    assert [p.value for p in PipelinePhase] == ["research", "script", "visuals", "audio", "assembly"]
