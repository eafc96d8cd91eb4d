"""
Tests for reelforge.services.use_cases.production_use_case
"""

import pytest
from fastapi import BackgroundTasks, HTTPException
from unittest.mock import AsyncMock, MagicMock

from reelforge.core.exceptions import FormatRouterError, FormatRouterErrorCode
from reelforge.models.pipeline import PartialResults, PipelineRequest, PipelineResult
from reelforge.models.status import ProductionStatus
from reelforge.services.infrastructure.orchestration.checkpoints import CheckpointSystem
from reelforge.services.infrastructure.orchestration.production_manager import ProductionManager
from reelforge.services.pipelines import build_default_router
from reelforge.services.use_cases import ProductionUseCase, RunProductionUseCase


@pytest.fixture
def format_router(adapters, session_store, story_store):
    return build_default_router(adapters, session_store, story_store)


@pytest.fixture
def manager():
    return ProductionManager()


@pytest.fixture
def use_case(format_router, manager):
    return ProductionUseCase(format_router, manager)


class TestStartProduction:

    def test_schedules_run_with_generated_id(self, use_case, manager):
        background = BackgroundTasks()

        response = use_case.start_production(PipelineRequest(format_id="shorts", idea="Desk hacks"), background)

        assert response.status == "pending"
        assert response.production_id.startswith("sht_")
        assert manager.get(response.production_id).format_id == "shorts"
        task = background.tasks[0]
        assert task.func == use_case.runner.execute
        assert task.args[0].session_id == response.production_id

    def test_keeps_requested_session_id(self, use_case):
        response = use_case.start_production(
            PipelineRequest(format_id="shorts", idea="Desk hacks", session_id="sht_mine"), BackgroundTasks()
        )

        assert response.production_id == "sht_mine"

    @pytest.mark.parametrize("request_,status", [
        (PipelineRequest(format_id="hologram", idea="x"), 404),
        (PipelineRequest(format_id="shorts", idea=""), 400),
        (PipelineRequest(format_id="shorts", idea="x", language="fr"), 400),
        (PipelineRequest(format_id="educational", idea="x"), 400),
    ])
    def test_rejected_requests(self, use_case, request_, status):
        with pytest.raises(HTTPException) as exc_info:
            use_case.start_production(request_, BackgroundTasks())

        assert exc_info.value.status_code == status

    def test_duplicate_running_production(self, use_case, manager):
        manager.create("sht_busy", "shorts")
        manager.update("sht_busy", status=ProductionStatus.RUNNING)

        with pytest.raises(HTTPException) as exc_info:
            use_case.start_production(
                PipelineRequest(format_id="shorts", idea="x", session_id="sht_busy"), BackgroundTasks()
            )

        assert exc_info.value.status_code == 409


class TestRunProduction:

    @pytest.mark.asyncio
    async def test_success_is_recorded(self, manager):
        router = MagicMock()
        router.route = AsyncMock(return_value=PipelineResult(
            success=True, partial_results=PartialResults(session_id="p1"), warnings=["short script"],
        ))
        manager.create("p1", "shorts")

        result = await RunProductionUseCase(router, manager).execute(
            PipelineRequest(format_id="shorts", idea="x", session_id="p1")
        )

        production = manager.get("p1")
        assert result.success is True
        assert production.status == ProductionStatus.COMPLETED
        assert production.result["session_id"] == "p1"
        assert production.warnings == ["short script"]

    @pytest.mark.asyncio
    async def test_unsuccessful_result_marks_failed(self, manager):
        router = MagicMock()
        router.route = AsyncMock(return_value=PipelineResult(success=False, error="Hook rejected by user"))
        manager.create("p1", "shorts")

        await RunProductionUseCase(router, manager).execute(PipelineRequest(format_id="shorts", idea="x", session_id="p1"))

        assert manager.get("p1").status == ProductionStatus.FAILED
        assert manager.get("p1").error == "Hook rejected by user"

    @pytest.mark.asyncio
    async def test_router_errors_mark_failed(self, manager):
        router = MagicMock()
        router.route = AsyncMock(side_effect=FormatRouterError("boom", FormatRouterErrorCode.EXECUTION_FAILED))
        manager.create("p1", "shorts")

        result = await RunProductionUseCase(router, manager).execute(
            PipelineRequest(format_id="shorts", idea="x", session_id="p1")
        )

        assert result.success is False
        assert manager.get("p1").status == ProductionStatus.FAILED

    @pytest.mark.asyncio
    async def test_cancelled_production_stays_cancelled(self, manager):
        router = MagicMock()
        router.route = AsyncMock(return_value=PipelineResult(success=False, error="Pipeline cancelled by user"))
        manager.create("p1", "shorts")
        manager.update("p1", status=ProductionStatus.CANCELLED)

        await RunProductionUseCase(router, manager).execute(PipelineRequest(format_id="shorts", idea="x", session_id="p1"))

        assert manager.get("p1").status == ProductionStatus.CANCELLED


class TestSteering:

    def test_status_of_unknown_production(self, use_case):
        with pytest.raises(HTTPException) as exc_info:
            use_case.get_status("missing")

        assert exc_info.value.status_code == 404

    def test_checkpoint_not_pending(self, use_case, manager):
        manager.create("p1", "shorts")
        manager.build_callbacks("p1").on_checkpoint_system_created(CheckpointSystem(max_checkpoints=2))

        with pytest.raises(HTTPException) as exc_info:
            use_case.approve_checkpoint("p1", "nope")
        assert exc_info.value.status_code == 404

        with pytest.raises(HTTPException) as exc_info:
            use_case.reject_checkpoint("p1", "nope", "redo")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_cancel(self, use_case, manager):
        manager.create("p1", "shorts")

        response = await use_case.cancel("p1")

        assert response.status == "cancelled"
        with pytest.raises(HTTPException) as exc_info:
            await use_case.cancel("p1")
        assert exc_info.value.status_code == 409
