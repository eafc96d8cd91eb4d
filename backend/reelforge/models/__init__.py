"""
Pydantic models for API request/response schemas, plus re-exports of the
domain records used across services.
"""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from .status import (
    TaskState,
    CheckpointStatus,
    CheckpointResolution,
    ProductionStep,
    ProductionStatus,
    PipelinePhase,
    ResearchDepth,
    SourceType,
)
from .formats import DurationRange, FormatDefaults, FormatMetadata
from .pipeline import (
    PipelineRequest,
    PipelineResult,
    PartialResults,
    PipelineCallbacks,
    PhaseEvent,
)


# === Request Models ===

class CheckpointRejectRequest(BaseModel):
    """Reject a pending checkpoint, optionally describing the wanted change"""
    change_request: Optional[str] = None


# === Response Models ===

class ProductionStartResponse(BaseModel):
    """Returned when a production is accepted and started"""
    production_id: str
    format_id: str
    status: str
    warnings: List[str] = []


class CheckpointInfo(BaseModel):
    checkpoint_id: str
    phase: str
    status: str
    payload: Optional[Dict[str, Any]] = None
    created_at: float
    approved_at: Optional[float] = None
    change_request: Optional[str] = None


class ProductionStatusResponse(BaseModel):
    """Status of a production run"""
    production_id: str
    format_id: str
    status: str
    current_phase: Optional[str] = None
    checkpoints: List[CheckpointInfo] = []
    error: Optional[str] = None
    result: Optional[Dict[str, Any]] = None


class SessionMetadataResponse(BaseModel):
    session_id: str
    created_at: float
    updated_at: float
    topic: str
    scene_count: int
    is_complete: bool
    format_id: Optional[str] = None


class StorageStatsResponse(BaseModel):
    collections: Dict[str, Dict[str, int]]


class FormatResponse(BaseModel):
    id: str
    name: str
    description: str
    aspect_ratio: str
    duration_range: Dict[str, int]
    checkpoint_count: int
    concurrency_limit: int
    requires_research: bool
    applicable_genres: List[str]
    supported_languages: List[str]
    deprecated: bool
    has_pipeline: bool = False


__all__ = [
    "TaskState",
    "CheckpointStatus",
    "CheckpointResolution",
    "ProductionStep",
    "ProductionStatus",
    "PipelinePhase",
    "ResearchDepth",
    "SourceType",
    "DurationRange",
    "FormatDefaults",
    "FormatMetadata",
    "PipelineRequest",
    "PipelineResult",
    "PartialResults",
    "PipelineCallbacks",
    "PhaseEvent",
    "CheckpointRejectRequest",
    "ProductionStartResponse",
    "CheckpointInfo",
    "ProductionStatusResponse",
    "SessionMetadataResponse",
    "StorageStatsResponse",
    "FormatResponse",
]
