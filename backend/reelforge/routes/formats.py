"""
Format catalogue routes
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..models import FormatMetadata, FormatResponse
from ..services.formats.router import FormatRouter
from .dependencies import get_format_router

router = APIRouter(tags=["formats"])


def _format_response(metadata: FormatMetadata, router_: FormatRouter) -> FormatResponse:
    return FormatResponse(
        id=metadata.id,
        name=metadata.name,
        description=metadata.description,
        aspect_ratio=metadata.aspect_ratio,
        duration_range={
            "min_seconds": metadata.duration_range.min_seconds,
            "max_seconds": metadata.duration_range.max_seconds,
        },
        checkpoint_count=metadata.checkpoint_count,
        concurrency_limit=metadata.concurrency_limit,
        requires_research=metadata.requires_research,
        applicable_genres=list(metadata.applicable_genres),
        supported_languages=list(metadata.supported_languages),
        deprecated=metadata.deprecated,
        has_pipeline=router_.has_pipeline(metadata.id),
    )


@router.get("/formats", response_model=List[FormatResponse])
async def list_formats(
    genre: Optional[str] = None,
    include_deprecated: bool = True,
    format_router: FormatRouter = Depends(get_format_router),
):
    """List registered formats, optionally filtered by genre"""
    registry = format_router.registry
    formats = registry.get_formats_by_genre(genre) if genre else registry.get_all_formats(include_deprecated)
    if genre and not include_deprecated:
        formats = [f for f in formats if not f.deprecated]
    return [_format_response(f, format_router) for f in formats]


@router.get("/formats/{format_id}", response_model=FormatResponse)
async def get_format(format_id: str, format_router: FormatRouter = Depends(get_format_router)):
    """Get one format's metadata"""
    metadata = format_router.get_format(format_id)
    if metadata is None:
        raise HTTPException(status_code=404, detail="Format not found")
    return _format_response(metadata, format_router)
