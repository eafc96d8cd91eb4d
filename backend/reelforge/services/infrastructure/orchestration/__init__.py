"""Orchestration - parallel execution, checkpoints and production tracking."""

from .checkpoints import CheckpointSystem
from .execution_engine import (
    ExecutionOptions,
    ExecutionProgress,
    ParallelExecutionEngine,
    Task,
    TaskResult,
)
from .production_manager import Production, ProductionManager

__all__ = [
    "CheckpointSystem",
    "ExecutionOptions",
    "ExecutionProgress",
    "ParallelExecutionEngine",
    "Task",
    "TaskResult",
    "Production",
    "ProductionManager",
]
