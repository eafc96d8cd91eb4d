"""
Production use cases - start, steer and observe productions.

Routes stay thin: they translate HTTP into a PipelineRequest and hand the
long-running part to FastAPI's BackgroundTasks.
"""

from typing import Optional

from fastapi import BackgroundTasks, HTTPException

from ...core.exceptions import FormatRouterError, ReelForgeError, UnknownFormatError
from ...core.logging import LoggerAdapter, get_logger
from ...models import (
    CheckpointInfo,
    ProductionStartResponse,
    ProductionStatusResponse,
)
from ...models.pipeline import PipelineRequest, PipelineResult
from ...models.status import ProductionStatus
from ..formats.router import FormatRouter
from ..infrastructure.orchestration.production_manager import Production, ProductionManager
from ..pipelines.base import new_session_id
from .base import UseCase


class RunProductionUseCase(UseCase[PipelineRequest, PipelineResult]):
    """Route one request to its pipeline and record the outcome on the production."""

    def __init__(self, router: FormatRouter, manager: ProductionManager, logger: Optional[LoggerAdapter] = None):
        self.router = router
        self.manager = manager
        self._logger = logger or get_logger(__name__, component="production_use_case")

    async def execute(self, request: PipelineRequest) -> PipelineResult:
        production_id = request.session_id
        self.manager.update(production_id, status=ProductionStatus.RUNNING, message="Production started")
        try:
            result = await self.router.route(request, self.manager.build_callbacks(production_id))
        except ReelForgeError as e:
            self._logger.error("Production failed", extra={"production_id": production_id, "error": str(e)})
            self.manager.update(production_id, status=ProductionStatus.FAILED, message="Production failed", error=str(e))
            return PipelineResult(success=False, error=str(e))
        except Exception as e:
            self._logger.error(
                "Production crashed",
                extra={"production_id": production_id, "error": str(e)},
                exc_info=True,
            )
            self.manager.update(production_id, status=ProductionStatus.FAILED, message="Production failed", error=str(e))
            return PipelineResult(success=False, error=str(e))

        if result.success:
            self.manager.update(
                production_id,
                status=ProductionStatus.COMPLETED,
                message="Production completed",
                result=result.partial_results.to_dict(),
                warnings=result.warnings,
            )
        else:
            self.manager.update(
                production_id,
                status=ProductionStatus.FAILED,
                message=result.error or "Production failed",
                result=result.partial_results.to_dict(),
                error=result.error,
                warnings=result.warnings,
            )
        return result


def _status_response(production: Production) -> ProductionStatusResponse:
    return ProductionStatusResponse(
        production_id=production.id,
        format_id=production.format_id,
        status=production.status.value,
        current_phase=production.current_phase,
        checkpoints=[
            CheckpointInfo(
                checkpoint_id=cp.checkpoint_id,
                phase=cp.phase,
                status=cp.status.value,
                payload=cp.payload,
                created_at=cp.created_at,
                approved_at=cp.approved_at,
                change_request=cp.change_request,
            )
            for cp in production.get_checkpoints()
        ],
        error=production.error,
        result=production.result,
    )


class ProductionUseCase:
    """Handle production lifecycle and background execution."""

    def __init__(self, router: FormatRouter, manager: ProductionManager):
        self.router = router
        self.manager = manager
        self.runner = RunProductionUseCase(router, manager)

    def start_production(self, request: PipelineRequest, background_tasks: BackgroundTasks) -> ProductionStartResponse:
        """Validate the request, register the production and schedule the pipeline run."""
        try:
            _, resolved, warnings = self.router.prepare(request)
        except UnknownFormatError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except FormatRouterError as e:
            raise HTTPException(status_code=400, detail=str(e))
        metadata = self.router.get_format(resolved.format_id)

        production_id = request.session_id or new_session_id(metadata.defaults.session_prefix)
        existing = self.manager.get(production_id)
        if existing is not None and not existing.status.is_terminal():
            raise HTTPException(status_code=409, detail=f"Production {production_id} is already running")

        self.manager.create(production_id, resolved.format_id)
        background_tasks.add_task(self.runner.execute, request.model_copy(update={"session_id": production_id}))

        return ProductionStartResponse(
            production_id=production_id,
            format_id=resolved.format_id,
            status=ProductionStatus.PENDING.value,
            warnings=warnings,
        )

    def _get(self, production_id: str) -> Production:
        production = self.manager.get(production_id)
        if production is None:
            raise HTTPException(status_code=404, detail="Production not found")
        return production

    def get_status(self, production_id: str) -> ProductionStatusResponse:
        return _status_response(self._get(production_id))

    async def cancel(self, production_id: str) -> ProductionStatusResponse:
        production = self._get(production_id)
        if not await self.manager.cancel(production_id):
            raise HTTPException(status_code=409, detail=f"Production is already {production.status.value}")
        return _status_response(production)

    def approve_checkpoint(self, production_id: str, checkpoint_id: str) -> ProductionStatusResponse:
        production = self._get(production_id)
        if not self.manager.approve_checkpoint(production_id, checkpoint_id):
            raise HTTPException(status_code=404, detail="No pending checkpoint with that id")
        return _status_response(production)

    def reject_checkpoint(
        self,
        production_id: str,
        checkpoint_id: str,
        change_request: Optional[str] = None,
    ) -> ProductionStatusResponse:
        production = self._get(production_id)
        if not self.manager.reject_checkpoint(production_id, checkpoint_id, change_request):
            raise HTTPException(status_code=404, detail="No pending checkpoint with that id")
        return _status_response(production)
