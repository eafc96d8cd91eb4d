"""
Session recovery routes
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from ..models import SessionMetadataResponse, StorageStatsResponse
from ..services.use_cases import SessionUseCase
from .dependencies import get_session_use_case

router = APIRouter(tags=["sessions"])


@router.get("/sessions/recoverable", response_model=List[SessionMetadataResponse])
async def list_recoverable(use_case: SessionUseCase = Depends(get_session_use_case)):
    """Persisted sessions that have not reached the final step"""
    return use_case.list_recoverable()


@router.get("/sessions/recent-incomplete", response_model=List[SessionMetadataResponse])
async def recent_incomplete(
    limit: int = Query(5, ge=1, le=50),
    use_case: SessionUseCase = Depends(get_session_use_case),
):
    return use_case.recent_incomplete(limit)


@router.get("/sessions/stats", response_model=StorageStatsResponse)
async def storage_stats(use_case: SessionUseCase = Depends(get_session_use_case)):
    return use_case.stats()


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, use_case: SessionUseCase = Depends(get_session_use_case)) -> Dict[str, Any]:
    return await use_case.get(session_id)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, use_case: SessionUseCase = Depends(get_session_use_case)) -> Dict[str, Any]:
    return use_case.delete(session_id)
