"""
Application configuration and settings
"""

import os
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from ..core.runtime import env_float, env_int, parse_bool_env

from .constants import (
    API_TITLE,
    API_DESCRIPTION,
    API_VERSION,
    CORS_ORIGINS,
    SUPPORTED_DOCUMENT_EXTENSIONS,
    DEPTH_QUERY_COUNTS,
    QUERY_ASPECTS,
    DOCUMENT_CHUNK_SIZE,
    DEDUP_SIMILARITY_THRESHOLD,
    REFERENCE_RELEVANCE,
    QUERY_RELEVANCE_MAX,
    DEFAULT_QUERY_RELEVANCE,
    GENRE_BPM,
    DEFAULT_BPM,
    WORDS_PER_SECOND,
)

# Base directories
PACKAGE_DIR = Path(__file__).parent.parent
BACKEND_DIR = PACKAGE_DIR.parent
DATA_DIR = Path(os.getenv("REELFORGE_DATA_DIR", str(BACKEND_DIR / "session_data")))
UPLOAD_DIR = Path(os.getenv("REELFORGE_UPLOAD_DIR", str(BACKEND_DIR / "uploads")))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")
USE_JSON_LOGS = parse_bool_env(os.getenv("JSON_LOGS"), default=False)

# Session store
SESSION_DEBOUNCE_SECONDS = env_float("SESSION_DEBOUNCE_SECONDS", 1.0, 0.0)
SESSION_TTL_DAYS = env_int("SESSION_TTL_DAYS", 7, 1)

# Checkpoints
CHECKPOINT_TIMEOUT_SECONDS = env_float("CHECKPOINT_TIMEOUT_SECONDS", 30 * 60.0, 0.0)

# Parallel execution engine
ENGINE_CONCURRENCY = env_int("ENGINE_CONCURRENCY", 3, 1)
ENGINE_RETRY_ATTEMPTS = env_int("ENGINE_RETRY_ATTEMPTS", 3, 1)
ENGINE_RETRY_DELAY_SECONDS = env_float("ENGINE_RETRY_DELAY_SECONDS", 1.0, 0.0)
RATE_LIMIT_RESET_SECONDS = env_float("RATE_LIMIT_RESET_SECONDS", 60.0, 0.0)
ENGINE_CANCEL_DEADLINE_SECONDS = env_float("ENGINE_CANCEL_DEADLINE_SECONDS", 5.0, 0.0)
ENGINE_EXECUTION_HISTORY = env_int("ENGINE_EXECUTION_HISTORY", 50, 1)

# Productions tracked by the HTTP layer
PRODUCTION_HISTORY_LIMIT = env_int("PRODUCTION_HISTORY_LIMIT", 100, 1)

# Research
RESEARCH_CONCURRENCY = 5
RESEARCH_RETRY_ATTEMPTS = 2
RESEARCH_RETRY_DELAY_SECONDS = 1.0

__all__ = [
    "API_TITLE",
    "API_DESCRIPTION",
    "API_VERSION",
    "CORS_ORIGINS",
    "SUPPORTED_DOCUMENT_EXTENSIONS",
    "DEPTH_QUERY_COUNTS",
    "QUERY_ASPECTS",
    "DOCUMENT_CHUNK_SIZE",
    "DEDUP_SIMILARITY_THRESHOLD",
    "REFERENCE_RELEVANCE",
    "QUERY_RELEVANCE_MAX",
    "DEFAULT_QUERY_RELEVANCE",
    "GENRE_BPM",
    "DEFAULT_BPM",
    "WORDS_PER_SECOND",
    "PACKAGE_DIR",
    "BACKEND_DIR",
    "DATA_DIR",
    "UPLOAD_DIR",
    "LOG_LEVEL",
    "LOG_FILE",
    "USE_JSON_LOGS",
    "SESSION_DEBOUNCE_SECONDS",
    "SESSION_TTL_DAYS",
    "CHECKPOINT_TIMEOUT_SECONDS",
    "ENGINE_CONCURRENCY",
    "ENGINE_RETRY_ATTEMPTS",
    "ENGINE_RETRY_DELAY_SECONDS",
    "RATE_LIMIT_RESET_SECONDS",
    "ENGINE_CANCEL_DEADLINE_SECONDS",
    "ENGINE_EXECUTION_HISTORY",
    "PRODUCTION_HISTORY_LIMIT",
    "RESEARCH_CONCURRENCY",
    "RESEARCH_RETRY_ATTEMPTS",
    "RESEARCH_RETRY_DELAY_SECONDS",
]
