"""
Structured logging for the production service.

- JSON lines for production log shipping
- Colored single-line output for local development
- Correlation ids (HTTP request, production run) carried through contextvars
- Child loggers that stamp a component name on every record
"""

import json
import logging
import os
import sys
import time
from contextvars import ContextVar
from datetime import datetime, UTC
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

SENSITIVE_KEY_TOKENS = ("password", "secret", "token", "api_key", "apikey", "authorization")

# Attributes every LogRecord has; anything else arrived through `extra=`
_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "taskName",
})

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
production_id_var: ContextVar[Optional[str]] = ContextVar("production_id", default=None)


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(token in lowered for token in SENSITIVE_KEY_TOKENS)


def _redact(key: str, value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: "***REDACTED***" if _is_sensitive_key(str(k)) else _redact(str(k), v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(key, item) for item in value]
    if isinstance(value, str) and _is_sensitive_key(key):
        return "***REDACTED***"
    return value


def _correlation() -> Dict[str, str]:
    ids: Dict[str, str] = {}
    request_id = request_id_var.get()
    if request_id:
        ids["request_id"] = request_id
    production_id = production_id_var.get()
    if production_id:
        ids["production_id"] = production_id
    return ids


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        payload.update(_correlation())

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_") and not callable(value)
        }
        for key in ("request_id", "production_id"):
            extra.pop(key, None)
        if extra:
            payload["extra"] = _redact("extra", extra)

        return json.dumps(payload, default=str, ensure_ascii=False)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for development"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]

        ids = _correlation()
        context_parts = []
        if "request_id" in ids:
            context_parts.append(f"req:{ids['request_id'][:8]}")
        if "production_id" in ids:
            context_parts.append(f"prod:{ids['production_id'][:12]}")
        component = getattr(record, "component", None)
        if component:
            context_parts.append(str(component))
        context = f" [{', '.join(context_parts)}]" if context_parts else ""

        line = (
            f"{color}{timestamp}{reset} "
            f"{color}{record.levelname:8s}{reset} "
            f"{record.name:36s}{context} "
            f"{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class LoggerAdapter(logging.LoggerAdapter):
    """Merges bound context and correlation ids into every record's extra."""

    def process(self, msg: str, kwargs: Any) -> tuple:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        extra.update(_correlation())
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **extra: Any) -> "LoggerAdapter":
        """Return a child adapter with additional bound context."""
        merged = dict(self.extra or {})
        merged.update(extra)
        return LoggerAdapter(self.logger, merged)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    use_json: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name
        log_file: Optional rotating JSON log file
        use_json: Structured JSON on the console instead of colored lines
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(StructuredFormatter() if use_json else DevelopmentFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=int(os.getenv("LOG_MAX_BYTES", str(20 * 1024 * 1024))),
            backupCount=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    for noisy in ("urllib3", "httpx", "httpcore", "asyncio", "fitz"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str, **extra: Any) -> LoggerAdapter:
    """
    Get a logger with bound context.

    Example:
        logger = get_logger(__name__, component="execution_engine")
        logger.info("Task completed", extra={"task_id": "visual_0"})
    """
    return LoggerAdapter(logging.getLogger(name), extra)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def set_production_id(production_id: Optional[str]) -> None:
    production_id_var.set(production_id)


def clear_context() -> None:
    request_id_var.set(None)
    production_id_var.set(None)


class LogTimer:
    """Times a block (sync or async) and logs start, completion and failure."""

    def __init__(self, logger: logging.LoggerAdapter, operation: str, level: int = logging.INFO, **extra: Any):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.extra = extra
        self.start_time: Optional[float] = None
        self.duration: Optional[float] = None

    def __enter__(self) -> "LogTimer":
        self.start_time = time.perf_counter()
        self.logger.log(self.level, f"Starting: {self.operation}", extra=dict(self.extra))
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb) -> None:
        self.duration = time.perf_counter() - (self.start_time or time.perf_counter())
        fields = dict(self.extra, duration_seconds=round(self.duration, 3))
        if exc_type:
            fields["error"] = str(exc_val)
            self.logger.error(f"Failed: {self.operation}", extra=fields)
        else:
            self.logger.log(self.level, f"Completed: {self.operation}", extra=fields)

    async def __aenter__(self) -> "LogTimer":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)
