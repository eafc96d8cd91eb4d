"""
Use Cases package - Business logic layer.

Modules:
- base: Base use case abstract class
- production_use_case: Start, steer and observe productions
- session_use_case: Session recovery and housekeeping
"""

from .base import UseCase
from .production_use_case import ProductionUseCase, RunProductionUseCase
from .session_use_case import SessionUseCase

__all__ = [
    "UseCase",
    "ProductionUseCase",
    "RunProductionUseCase",
    "SessionUseCase",
]
