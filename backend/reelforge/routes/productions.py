"""
Production routes - start a production, follow it and answer its checkpoints.
"""

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends

from ..models import (
    CheckpointRejectRequest,
    PipelineRequest,
    ProductionStartResponse,
    ProductionStatusResponse,
)
from ..services.use_cases import ProductionUseCase
from .dependencies import get_production_use_case

router = APIRouter(tags=["productions"])


@router.post("/productions", response_model=ProductionStartResponse)
async def start_production(
    request: PipelineRequest,
    background_tasks: BackgroundTasks,
    use_case: ProductionUseCase = Depends(get_production_use_case),
):
    """Start a production (or resume one when session_id is given)"""
    return use_case.start_production(request, background_tasks)


@router.get("/productions", response_model=List[ProductionStatusResponse])
async def list_productions(use_case: ProductionUseCase = Depends(get_production_use_case)):
    """Productions known to this process, newest first"""
    return [use_case.get_status(p.id) for p in use_case.manager.list_all()]


@router.get("/productions/{production_id}", response_model=ProductionStatusResponse)
async def get_production(production_id: str, use_case: ProductionUseCase = Depends(get_production_use_case)):
    return use_case.get_status(production_id)


@router.post("/productions/{production_id}/cancel", response_model=ProductionStatusResponse)
async def cancel_production(production_id: str, use_case: ProductionUseCase = Depends(get_production_use_case)):
    return await use_case.cancel(production_id)


@router.post(
    "/productions/{production_id}/checkpoints/{checkpoint_id}/approve",
    response_model=ProductionStatusResponse,
)
async def approve_checkpoint(
    production_id: str,
    checkpoint_id: str,
    use_case: ProductionUseCase = Depends(get_production_use_case),
):
    return use_case.approve_checkpoint(production_id, checkpoint_id)


@router.post(
    "/productions/{production_id}/checkpoints/{checkpoint_id}/reject",
    response_model=ProductionStatusResponse,
)
async def reject_checkpoint(
    production_id: str,
    checkpoint_id: str,
    body: CheckpointRejectRequest,
    use_case: ProductionUseCase = Depends(get_production_use_case),
):
    """Reject a checkpoint; the pipeline stops with that phase rejected"""
    return use_case.reject_checkpoint(production_id, checkpoint_id, body.change_request)
