"""
Routes module - contains all API route handlers
"""

from .formats import router as formats_router
from .productions import router as productions_router
from .sessions import router as sessions_router

__all__ = [
    "formats_router",
    "productions_router",
    "sessions_router",
]
