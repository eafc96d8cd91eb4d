"""
Checkpoint records exchanged between pipelines and human reviewers.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .status import CheckpointResolution, CheckpointStatus


@dataclass
class CheckpointApproval:
    approved: bool
    change_request: Optional[str] = None


@dataclass
class CheckpointState:
    checkpoint_id: str
    phase: str
    status: CheckpointStatus = CheckpointStatus.PENDING
    payload: Optional[Dict[str, Any]] = None
    created_at: float = field(default_factory=time.time)
    approved_at: Optional[float] = None
    change_request: Optional[str] = None
    resolution: Optional[CheckpointResolution] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checkpoint_id": self.checkpoint_id,
            "phase": self.phase,
            "status": self.status.value,
            "payload": self.payload,
            "created_at": self.created_at,
            "approved_at": self.approved_at,
            "change_request": self.change_request,
            "resolution": self.resolution.value if self.resolution else None,
        }
