"""
Research Service

Fans out grounded sub-queries and reference-document lookups through the
Parallel Execution Engine, then deduplicates, ranks and summarizes what
came back. Partial failures never abort a run; they lower confidence and
mark the result partial.
"""

import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ...adapters.base import GroundedKnowledgeAdapter, ReferenceDocumentReader
from ...config import (
    DEDUP_SIMILARITY_THRESHOLD,
    DEFAULT_QUERY_RELEVANCE,
    DEPTH_QUERY_COUNTS,
    DOCUMENT_CHUNK_SIZE,
    QUERY_ASPECTS,
    QUERY_RELEVANCE_MAX,
    REFERENCE_RELEVANCE,
    RESEARCH_CONCURRENCY,
    RESEARCH_RETRY_ATTEMPTS,
    RESEARCH_RETRY_DELAY_SECONDS,
)
from ...core.exceptions import ReelForgeError
from ...core.logging import LoggerAdapter, get_logger
from ...models.research import Citation, IndexedDocument, ResearchQuery, ResearchResult, Source
from ...models.status import SourceType
from ..infrastructure.orchestration.execution_engine import (
    ExecutionOptions,
    ParallelExecutionEngine,
    Task,
)
from .documents import DocumentReader
from .text import MIN_TOKEN_LENGTH, chunk_content, jaccard_similarity, tokenize

QUERY_TASK_TIMEOUT = 30.0
REFERENCE_TASK_TIMEOUT = 10.0
SUMMARY_SNIPPETS = 3
SUMMARY_SNIPPET_CHARS = 200


def build_sub_queries(topic: str, language: str, depth: str) -> List[str]:
    """Topic plus one aspect per sub-query; aspects cycle when depth exceeds the vocabulary."""
    aspects = QUERY_ASPECTS.get(language, QUERY_ASPECTS["en"])
    count = DEPTH_QUERY_COUNTS[getattr(depth, "value", depth)]
    return [f"{topic} — {aspects[i % len(aspects)]}" for i in range(count)]


def deduplicate_sources(sources: Sequence[Source], threshold: float = DEDUP_SIMILARITY_THRESHOLD) -> List[Source]:
    """Drop any source whose content is more than `threshold` similar to one kept earlier."""
    unique: List[Source] = []
    kept_tokens = []
    for candidate in sources:
        tokens = tokenize(candidate.content, min_length=MIN_TOKEN_LENGTH)
        if any(jaccard_similarity(existing, tokens) > threshold for existing in kept_tokens):
            continue
        unique.append(candidate)
        kept_tokens.append(tokens)
    return unique


def sort_sources(sources: Sequence[Source]) -> List[Source]:
    """References first, then relevance descending. Ties keep encounter order."""
    return sorted(
        sources,
        key=lambda s: (0 if s.type == SourceType.REFERENCE else 1, -s.relevance),
    )


def calculate_confidence(sources: Sequence[Source], failed: int, total: int) -> float:
    if total == 0 or not sources:
        return 0.0
    success_rate = 1 - failed / total
    mean_relevance = sum(s.relevance for s in sources) / len(sources)
    return min(1.0, success_rate * mean_relevance)


def build_summary(sources: Sequence[Source], topic: str, language: str) -> str:
    if not sources:
        if language == "ar":
            return f"لم يتم العثور على معلومات كافية حول: {topic}"
        return f"No sufficient information found for: {topic}"

    snippets = " ... ".join(s.content[:SUMMARY_SNIPPET_CHARS] for s in sources[:SUMMARY_SNIPPETS])
    if language == "ar":
        return f'ملخص البحث حول "{topic}": {snippets}'
    return f'Research summary for "{topic}": {snippets}'


def build_citations(sources: Sequence[Source]) -> List[Citation]:
    return [Citation(source_id=s.id, text=s.title, position=i) for i, s in enumerate(sources)]


def _clamp_relevance(value: Any) -> float:
    try:
        relevance = float(value)
    except (TypeError, ValueError):
        relevance = DEFAULT_QUERY_RELEVANCE
    return min(QUERY_RELEVANCE_MAX, max(0.0, relevance))


class ResearchService:
    """
    Topic research over grounded queries and uploaded reference documents.

    Query tasks run at priority 1 and may retry; reference tasks run at
    priority 2 and never retry, so references surface first. Reference
    sources carry relevance 1.0 while query sources are capped at 0.85.
    """

    def __init__(
        self,
        knowledge: GroundedKnowledgeAdapter,
        engine: Optional[ParallelExecutionEngine] = None,
        document_reader: Optional[ReferenceDocumentReader] = None,
        logger: Optional[LoggerAdapter] = None,
    ):
        self.knowledge = knowledge
        self.engine = engine or ParallelExecutionEngine()
        self.document_reader = document_reader or DocumentReader()
        self._logger = logger or get_logger(__name__, component="research")

    async def research(self, query: ResearchQuery, execution_id: Optional[str] = None) -> ResearchResult:
        """
        Research a topic by running every sub-query and reference lookup in parallel.

        Args:
            query: Topic, language, depth, requested source kinds and indexed references
            execution_id: Engine execution id, so a caller can cancel the fan-out

        Returns:
            Deduplicated, ranked sources with summary, citations and confidence
        """
        tasks = self.build_tasks(query)
        self._logger.info(
            "Research started",
            extra={"topic": query.topic, "depth": query.depth.value, "tasks": len(tasks)},
        )

        results = await self.engine.execute(
            tasks,
            ExecutionOptions(
                concurrency_limit=RESEARCH_CONCURRENCY,
                retry_attempts=RESEARCH_RETRY_ATTEMPTS,
                retry_delay=RESEARCH_RETRY_DELAY_SECONDS,
                exponential_backoff=True,
                execution_id=execution_id,
            ),
        )

        collected: List[Source] = []
        failed = 0
        for result in results:
            if result.success and result.data:
                collected.extend(result.data)
            elif not result.success:
                failed += 1
                self._logger.warning(
                    "Research task failed",
                    extra={"task_id": result.task_id, "error": result.error},
                )

        sources = sort_sources(deduplicate_sources(collected))[: query.max_results]
        confidence = calculate_confidence(sources, failed, len(tasks))

        self._logger.info(
            "Research completed",
            extra={
                "topic": query.topic,
                "sources": len(sources),
                "failed_queries": failed,
                "confidence": round(confidence, 3),
            },
        )
        return ResearchResult(
            sources=sources,
            summary=build_summary(sources, query.topic, query.language),
            citations=build_citations(sources),
            confidence=confidence,
            partial=failed > 0,
            failed_queries=failed,
        )

    def build_tasks(self, query: ResearchQuery) -> List[Task]:
        tasks: List[Task] = []

        if "web" in query.sources or "knowledge-base" in query.sources:
            source_type = SourceType.WEB if "web" in query.sources else SourceType.KNOWLEDGE_BASE
            for i, sub_query in enumerate(build_sub_queries(query.topic, query.language, query.depth)):
                tasks.append(Task(
                    id=f"query-{i}",
                    type="research",
                    execute=self._knowledge_runner(sub_query, query.language, source_type),
                    priority=1,
                    retryable=True,
                    timeout=QUERY_TASK_TIMEOUT,
                ))

        if "references" in query.sources:
            for i, document in enumerate(query.reference_documents):
                tasks.append(Task(
                    id=f"ref-{i}",
                    type="research",
                    execute=self._reference_runner(document, query.topic, query.language),
                    priority=2,
                    retryable=False,
                    timeout=REFERENCE_TASK_TIMEOUT,
                ))

        return tasks

    def _knowledge_runner(self, sub_query: str, language: str, source_type: SourceType):
        async def run() -> List[Source]:
            return await self.execute_knowledge_query(sub_query, language, source_type)
        return run

    def _reference_runner(self, document: IndexedDocument, topic: str, language: str):
        async def run() -> List[Source]:
            return self.execute_reference_query(document, topic, language)
        return run

    async def execute_knowledge_query(self, sub_query: str, language: str, source_type: SourceType) -> List[Source]:
        raw = await self.knowledge.search(sub_query, language, source_type.value)
        sources = []
        for item in raw or []:
            if isinstance(item, Source):
                item.type = source_type
                item.relevance = _clamp_relevance(item.relevance)
                sources.append(item)
                continue
            sources.append(Source(
                title=str(item.get("title", "")),
                content=str(item.get("content", "")),
                url=item.get("url"),
                type=source_type,
                relevance=_clamp_relevance(item.get("relevance", DEFAULT_QUERY_RELEVANCE)),
                language=language,
            ))
        return sources

    @staticmethod
    def execute_reference_query(document: IndexedDocument, topic: str, language: str) -> List[Source]:
        """Chunks mentioning the topic, or every chunk when none do."""
        needle = topic.lower()
        relevant = [chunk for chunk in document.chunks if needle in chunk.lower()]
        chunks = relevant or document.chunks
        return [
            Source(
                title=f"{document.filename} — Part {i + 1}",
                content=chunk,
                type=SourceType.REFERENCE,
                relevance=REFERENCE_RELEVANCE,
                language=language,
            )
            for i, chunk in enumerate(chunks)
        ]

    def prioritize_references(self, documents: Sequence[Union[str, Path]]) -> List[IndexedDocument]:
        """
        Extract, chunk and index uploaded documents.

        Documents that cannot be read are logged and skipped.
        """
        indexed: List[IndexedDocument] = []
        for document in documents:
            path = Path(document)
            try:
                content = self.document_reader.read(path)
            except (OSError, UnicodeDecodeError, ReelForgeError) as e:
                self._logger.warning(
                    "Failed to parse reference document",
                    extra={"document": path.name, "error": str(e)},
                )
                continue

            metadata: Dict[str, Any] = {"type": path.suffix.lower().lstrip(".")}
            try:
                stat = path.stat()
                metadata.update(size=stat.st_size, last_modified=stat.st_mtime)
            except OSError:
                pass

            indexed.append(IndexedDocument(
                id=str(uuid.uuid4()),
                filename=path.name,
                content=content,
                chunks=chunk_content(content, DOCUMENT_CHUNK_SIZE),
                metadata=metadata,
            ))
        self._logger.info(
            "Reference documents indexed",
            extra={"requested": len(documents), "indexed": len(indexed)},
        )
        return indexed
