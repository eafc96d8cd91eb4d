"""
Adapter interfaces consumed by the production core.
"""

from .base import (
    ImageAdapter,
    TextModelAdapter,
    GroundedKnowledgeAdapter,
    TTSAdapter,
    ReferenceDocumentReader,
    ProductionAdapters,
)
from .unconfigured import unconfigured_adapters

__all__ = [
    "ImageAdapter",
    "TextModelAdapter",
    "GroundedKnowledgeAdapter",
    "TTSAdapter",
    "ReferenceDocumentReader",
    "ProductionAdapters",
    "unconfigured_adapters",
]
