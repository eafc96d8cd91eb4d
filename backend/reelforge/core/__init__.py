"""
Core Module - Cross-cutting concerns and shared infrastructure

Organization:
    - logging.py: Structured logging configuration and utilities
    - exceptions.py: Error taxonomy
    - runtime.py: Environment parsing helpers
    - constants.py: Language constants and detection
    - voice_catalog.py: Per-format narration voice profiles

Usage:
    from reelforge.core import get_logger, ReelForgeError
"""

# Logging
from .logging import (
    setup_logging,
    get_logger,
    set_request_id,
    set_production_id,
    clear_context,
    LogTimer,
    LoggerAdapter,
)

# Exceptions
from .exceptions import (
    ReelForgeError,
    PipelineError,
    InfrastructureError,
    FormatRouterError,
    FormatRouterErrorCode,
    UnknownFormatError,
    InvalidRequestError,
    UnsupportedDocumentFormatError,
    AdapterFailureError,
    RateLimitedError,
    TaskTimeoutError,
    TaskCancelledError,
    ExecutionNotFoundError,
    CheckpointRejectedError,
    PipelineCancelledError,
    CriticalPhaseFailureError,
)

# Runtime
from .runtime import (
    parse_bool_env,
    env_int,
    env_float,
)

# Constants
from .constants import (
    LANGUAGE_NAMES,
    AUTO_LANGUAGE,
    get_language_name,
    detect_language,
    resolve_language,
)

# Voice catalog
from .voice_catalog import (
    FormatVoiceProfile,
    FORMAT_VOICE_PROFILES,
    get_voice_profile_for_format,
    get_format_voice_for_language,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "set_request_id",
    "set_production_id",
    "clear_context",
    "LogTimer",
    "LoggerAdapter",
    # Exceptions
    "ReelForgeError",
    "PipelineError",
    "InfrastructureError",
    "FormatRouterError",
    "FormatRouterErrorCode",
    "UnknownFormatError",
    "InvalidRequestError",
    "UnsupportedDocumentFormatError",
    "AdapterFailureError",
    "RateLimitedError",
    "TaskTimeoutError",
    "TaskCancelledError",
    "ExecutionNotFoundError",
    "CheckpointRejectedError",
    "PipelineCancelledError",
    "CriticalPhaseFailureError",
    # Runtime
    "parse_bool_env",
    "env_int",
    "env_float",
    # Constants
    "LANGUAGE_NAMES",
    "AUTO_LANGUAGE",
    "get_language_name",
    "detect_language",
    "resolve_language",
    # Voice catalog
    "FormatVoiceProfile",
    "FORMAT_VOICE_PROFILES",
    "get_voice_profile_for_format",
    "get_format_voice_for_language",
]
