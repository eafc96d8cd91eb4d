"""
Research records: queries, sources, citations and indexed reference documents.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .status import ResearchDepth, SourceType

# Query source kinds a caller may request; "references" selects uploaded documents
QUERY_SOURCE_KINDS = ("web", "knowledge-base", "references")


@dataclass
class Source:
    title: str
    content: str
    type: SourceType
    relevance: float
    language: str
    url: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "url": self.url,
            "type": self.type.value,
            "relevance": self.relevance,
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Source":
        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            title=data.get("title", ""),
            content=data.get("content", ""),
            url=data.get("url"),
            type=SourceType(data.get("type", SourceType.WEB.value)),
            relevance=float(data.get("relevance", 0.0)),
            language=data.get("language", "en"),
        )


@dataclass
class Citation:
    source_id: str
    text: str
    position: int

    def to_dict(self) -> Dict[str, Any]:
        return {"source_id": self.source_id, "text": self.text, "position": self.position}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Citation":
        return cls(
            source_id=data.get("source_id", ""),
            text=data.get("text", ""),
            position=int(data.get("position", 0)),
        )


@dataclass
class IndexedDocument:
    filename: str
    content: str
    chunks: List[str]
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class ResearchQuery:
    topic: str
    language: str = "en"
    depth: ResearchDepth = ResearchDepth.MEDIUM
    sources: List[str] = field(default_factory=lambda: ["web"])
    max_results: int = 10
    reference_documents: List[IndexedDocument] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.depth = ResearchDepth(self.depth)
        unknown = [s for s in self.sources if s not in QUERY_SOURCE_KINDS]
        if unknown:
            raise ValueError(f"Unknown research source kinds: {unknown}")


@dataclass
class ResearchResult:
    sources: List[Source]
    summary: str
    citations: List[Citation]
    confidence: float
    partial: bool = False
    failed_queries: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sources": [s.to_dict() for s in self.sources],
            "summary": self.summary,
            "citations": [c.to_dict() for c in self.citations],
            "confidence": self.confidence,
            "partial": self.partial,
            "failed_queries": self.failed_queries,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResearchResult":
        return cls(
            sources=[Source.from_dict(s) for s in data.get("sources", [])],
            summary=data.get("summary", ""),
            citations=[Citation.from_dict(c) for c in data.get("citations", [])],
            confidence=float(data.get("confidence", 0.0)),
            partial=bool(data.get("partial", False)),
            failed_queries=int(data.get("failed_queries", 0)),
        )
