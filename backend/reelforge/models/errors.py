"""
Error records collected during a pipeline run and the recovery choices
offered to a human when a critical phase fails.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    FORMAT_NOT_FOUND = "FORMAT_NOT_FOUND"
    INVALID_FORMAT = "INVALID_FORMAT"
    TASK_TIMEOUT = "TASK_TIMEOUT"
    TASK_FAILED = "TASK_FAILED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    CHECKPOINT_TIMEOUT = "CHECKPOINT_TIMEOUT"
    ASSEMBLY_FAILED = "ASSEMBLY_FAILED"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    CANCELLATION_FAILED = "CANCELLATION_FAILED"
    SCRIPT_FAILED = "SCRIPT_FAILED"
    RESEARCH_FAILED = "RESEARCH_FAILED"


@dataclass
class ErrorRecord:
    code: ErrorCode
    message: str
    phase: str
    task_id: Optional[str] = None
    recoverable: bool = True
    retryable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "phase": self.phase,
            "task_id": self.task_id,
            "recoverable": self.recoverable,
            "retryable": self.retryable,
        }


class RecoveryAction(str, Enum):
    RETRY = "retry"
    EDIT = "edit"
    SKIP = "skip"
    CANCEL = "cancel"


@dataclass(frozen=True)
class RecoveryOption:
    action: RecoveryAction
    label: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.action.value, "label": self.label, "description": self.description}


@dataclass
class RecoveryDecision:
    action: RecoveryAction
    edited_input: Optional[str] = None
