"""
Production Manager - tracks the productions running in this process.

Durable state lives in the session stores; this manager only holds what a
running production needs to be steered over HTTP: its checkpoint system,
its cancel function and its latest status.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ....config import PRODUCTION_HISTORY_LIMIT
from ....core.logging import LoggerAdapter, get_logger
from ....models.checkpoints import CheckpointState
from ....models.pipeline import CancelFn, PhaseEvent, PipelineCallbacks
from ....models.status import ProductionStatus
from .checkpoints import CheckpointSystem


@dataclass
class Production:
    id: str
    format_id: str
    status: ProductionStatus = ProductionStatus.PENDING
    current_phase: Optional[str] = None
    message: str = "Production created"
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())
    checkpoints: Optional[CheckpointSystem] = field(default=None, repr=False)
    cancel_fn: Optional[CancelFn] = field(default=None, repr=False)

    def get_checkpoints(self) -> List[CheckpointState]:
        return self.checkpoints.get_all_checkpoints() if self.checkpoints else []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "production_id": self.id,
            "format_id": self.format_id,
            "status": self.status.value,
            "current_phase": self.current_phase,
            "message": self.message,
            "checkpoints": [cp.to_dict() for cp in self.get_checkpoints()],
            "error": self.error,
            "result": self.result,
            "warnings": list(self.warnings),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class ProductionManager:
    """In-process registry of productions with a bounded history of finished ones."""

    def __init__(self, history_limit: int = PRODUCTION_HISTORY_LIMIT, logger: Optional[LoggerAdapter] = None):
        self._productions: Dict[str, Production] = {}
        self._history_limit = history_limit
        self._logger = logger or get_logger(__name__, component="production_manager")

    def _prune(self) -> None:
        finished = [p for p in self._productions.values() if p.status.is_terminal()]
        if len(finished) <= self._history_limit:
            return
        finished.sort(key=lambda p: p.updated_at)
        for production in finished[: len(finished) - self._history_limit]:
            self._productions.pop(production.id, None)

    def create(self, production_id: str, format_id: str) -> Production:
        production = Production(id=production_id, format_id=format_id)
        self._productions[production_id] = production
        self._logger.info("Production created", extra={"production_id": production_id, "format_id": format_id})
        return production

    def get(self, production_id: str) -> Optional[Production]:
        return self._productions.get(production_id)

    def list_all(self) -> List[Production]:
        return sorted(self._productions.values(), key=lambda p: p.created_at, reverse=True)

    def update(
        self,
        production_id: str,
        status: Optional[ProductionStatus] = None,
        current_phase: Optional[str] = None,
        message: Optional[str] = None,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        warnings: Optional[List[str]] = None,
    ) -> Optional[Production]:
        production = self._productions.get(production_id)
        if production is None:
            return None
        if production.status.is_terminal() and status is not None and status != production.status:
            # A cancelled production keeps its status when the pipeline unwinds
            return production
        if status is not None:
            production.status = status
        if current_phase is not None:
            production.current_phase = current_phase
        if message is not None:
            production.message = message
        if result is not None:
            production.result = result
        if error is not None:
            production.error = error
        if warnings is not None:
            production.warnings = list(warnings)
        production.updated_at = datetime.now().isoformat()
        if production.status.is_terminal():
            self._prune()
        return production

    def build_callbacks(self, production_id: str) -> PipelineCallbacks:
        """Pipeline callbacks that mirror a run's progress into its production record."""

        def on_checkpoint_system_created(system: CheckpointSystem) -> None:
            production = self._productions.get(production_id)
            if production is not None:
                production.checkpoints = system

        def on_checkpoint_created(checkpoint: CheckpointState) -> None:
            self.update(
                production_id,
                status=ProductionStatus.AWAITING_APPROVAL,
                message=f"Waiting for approval: {checkpoint.phase}",
            )

        def on_cancel_requested(cancel_fn: CancelFn) -> None:
            production = self._productions.get(production_id)
            if production is not None:
                production.cancel_fn = cancel_fn

        def on_phase(event: PhaseEvent) -> None:
            self.update(
                production_id,
                status=ProductionStatus.RUNNING,
                current_phase=event.phase,
                message=event.message or f"{event.phase} {event.status}",
            )

        return PipelineCallbacks(
            on_checkpoint_created=on_checkpoint_created,
            on_checkpoint_system_created=on_checkpoint_system_created,
            on_cancel_requested=on_cancel_requested,
            on_phase=on_phase,
        )

    def approve_checkpoint(self, production_id: str, checkpoint_id: str) -> bool:
        production = self._productions.get(production_id)
        if production is None or production.checkpoints is None:
            return False
        approved = production.checkpoints.approve_checkpoint(checkpoint_id)
        if approved:
            self.update(production_id, status=ProductionStatus.RUNNING, message="Checkpoint approved")
        return approved

    def reject_checkpoint(self, production_id: str, checkpoint_id: str, change_request: Optional[str] = None) -> bool:
        production = self._productions.get(production_id)
        if production is None or production.checkpoints is None:
            return False
        return production.checkpoints.reject_checkpoint(checkpoint_id, change_request)

    async def cancel(self, production_id: str) -> bool:
        """Cancel a running production. False when unknown or already finished."""
        production = self._productions.get(production_id)
        if production is None or production.status.is_terminal():
            return False
        self.update(production_id, status=ProductionStatus.CANCELLED, message="Production cancelled by user")
        if production.cancel_fn is not None:
            await production.cancel_fn()
        elif production.checkpoints is not None:
            production.checkpoints.dispose()
        self._logger.info("Production cancelled", extra={"production_id": production_id})
        return True
