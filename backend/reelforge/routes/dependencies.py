"""
Request-scoped access to the services wired onto app.state by create_app.
"""

from fastapi import Request

from ..services.formats.router import FormatRouter
from ..services.use_cases import ProductionUseCase, SessionUseCase


def get_format_router(request: Request) -> FormatRouter:
    return request.app.state.format_router


def get_production_use_case(request: Request) -> ProductionUseCase:
    return request.app.state.production_use_case


def get_session_use_case(request: Request) -> SessionUseCase:
    return request.app.state.session_use_case
