"""
Status constants and enumerations.

Centralized state names for tasks, checkpoints, sessions and productions.
"""

from enum import Enum


class TaskState(str, Enum):
    """Lifecycle of a task inside the parallel execution engine."""

    QUEUED = "queued"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELLED)


class CheckpointStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CheckpointResolution(str, Enum):
    """Who or what resolved a checkpoint."""

    USER = "user"
    TIMEOUT = "timeout"
    DISPOSE = "dispose"


class ProductionStep(str, Enum):
    """Furthest step a session has reached."""

    BREAKDOWN = "breakdown"
    SCREENPLAY = "screenplay"
    CHARACTERS = "characters"
    SHOTLIST = "shotlist"
    PRODUCTION = "production"


class ProductionStatus(str, Enum):
    """Status of a production run tracked by the HTTP layer."""

    PENDING = "pending"
    RUNNING = "running"
    AWAITING_APPROVAL = "awaiting_approval"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        return self in (ProductionStatus.COMPLETED, ProductionStatus.FAILED, ProductionStatus.CANCELLED)


class PipelinePhase(str, Enum):
    """Canonical phase order of every format pipeline."""

    RESEARCH = "research"
    SCRIPT = "script"
    VISUALS = "visuals"
    AUDIO = "audio"
    ASSEMBLY = "assembly"


class ResearchDepth(str, Enum):
    SHALLOW = "shallow"
    MEDIUM = "medium"
    DEEP = "deep"


class SourceType(str, Enum):
    WEB = "web"
    KNOWLEDGE_BASE = "knowledge-base"
    REFERENCE = "reference"


__all__ = [
    "TaskState",
    "CheckpointStatus",
    "CheckpointResolution",
    "ProductionStep",
    "ProductionStatus",
    "PipelinePhase",
    "ResearchDepth",
    "SourceType",
]
