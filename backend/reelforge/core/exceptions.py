"""
Core Exceptions
Error taxonomy shared by the router, the execution engine, the checkpoint
system and the format pipelines.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ReelForgeError(Exception):
    """Base exception for all application errors."""
    pass


class PipelineError(ReelForgeError):
    """Base exception for orchestration and pipeline errors."""
    pass


class InfrastructureError(ReelForgeError):
    """Base exception for infrastructure errors (adapters, storage, documents)."""
    pass


class FormatRouterErrorCode(str, Enum):
    FORMAT_NOT_FOUND = "FORMAT_NOT_FOUND"
    INVALID_FORMAT = "INVALID_FORMAT"
    PIPELINE_NOT_FOUND = "PIPELINE_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    FORMAT_DEPRECATED = "FORMAT_DEPRECATED"


class FormatRouterError(PipelineError):
    """Raised by the format router; `code` tells callers which check failed."""

    def __init__(
        self,
        message: str,
        code: FormatRouterErrorCode,
        format_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.format_id = format_id
        self.details = details or {}


class UnknownFormatError(FormatRouterError):
    def __init__(self, format_id: str):
        super().__init__(
            f"Format '{format_id}' is not registered",
            FormatRouterErrorCode.FORMAT_NOT_FOUND,
            format_id=format_id,
        )


class InvalidRequestError(FormatRouterError):
    def __init__(self, message: str, format_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, FormatRouterErrorCode.VALIDATION_FAILED, format_id=format_id, details=details)


class UnsupportedDocumentFormatError(InfrastructureError):
    """Reference document type cannot be read (only PDF, TXT/MD and DOCX are)."""
    pass


class AdapterFailureError(InfrastructureError):
    """An external model adapter failed or returned unusable output."""

    def __init__(self, message: str, adapter: Optional[str] = None):
        super().__init__(message)
        self.adapter = adapter


class RateLimitedError(InfrastructureError):
    """Upstream 429. Recognized by the execution engine and retried without budget."""

    status_code = 429

    def __init__(self, message: str = "rate limit exceeded", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class TaskTimeoutError(PipelineError):
    pass


class TaskCancelledError(PipelineError):
    pass


class ExecutionNotFoundError(PipelineError):
    def __init__(self, execution_id: str):
        super().__init__(f"Execution {execution_id} not found")
        self.execution_id = execution_id


class CheckpointRejectedError(PipelineError):
    def __init__(self, phase: str, change_request: Optional[str] = None):
        super().__init__(f"{phase} rejected by user")
        self.phase = phase
        self.change_request = change_request


class PipelineCancelledError(PipelineError):
    def __init__(self, message: str = "Pipeline cancelled by user"):
        super().__init__(message)


class CriticalPhaseFailureError(PipelineError):
    """A critical phase failed and nobody was registered to decide what to do."""

    def __init__(self, record: Any):
        message = getattr(record, "message", str(record))
        phase = getattr(record, "phase", "unknown")
        super().__init__(f"Critical failure in {phase}: {message}")
        self.record = record
        self.phase = phase
