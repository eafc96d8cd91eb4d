"""
Research: grounded sub-queries, reference documents and source ranking.
"""

from .documents import DocumentReader, clean_pdf_text, strip_xml_tags
from .service import (
    ResearchService,
    build_sub_queries,
    calculate_confidence,
    deduplicate_sources,
    sort_sources,
)
from .text import chunk_content, jaccard_similarity, tokenize

__all__ = [
    "DocumentReader",
    "clean_pdf_text",
    "strip_xml_tags",
    "ResearchService",
    "build_sub_queries",
    "calculate_confidence",
    "deduplicate_sources",
    "sort_sources",
    "chunk_content",
    "jaccard_similarity",
    "tokenize",
]
