"""
Format router - dispatches a pipeline request to the pipeline registered
for its format.

Selection and request validation are synchronous; all I/O happens inside
the pipeline. The router owns the per-run checkpoint system and disposes
it on every exit path.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ...config import CHECKPOINT_TIMEOUT_SECONDS
from ...core.constants import AUTO_LANGUAGE, resolve_language
from ...core.exceptions import (
    FormatRouterError,
    FormatRouterErrorCode,
    InvalidRequestError,
    ReelForgeError,
    UnknownFormatError,
)
from ...core.logging import LoggerAdapter, get_logger
from ...models.formats import FormatMetadata
from ...models.pipeline import PipelineCallbacks, PipelineRequest, PipelineResult
from ..infrastructure.orchestration.checkpoints import CheckpointSystem
from .registry import FormatRegistry, get_format_registry


class FormatPipeline(ABC):
    """Contract every format pipeline implements."""

    @abstractmethod
    def get_metadata(self) -> FormatMetadata:
        pass

    def validate(self, request: PipelineRequest) -> bool:
        return bool(request.idea and request.idea.strip())

    @abstractmethod
    async def execute(
        self,
        request: PipelineRequest,
        callbacks: Optional[PipelineCallbacks] = None,
        checkpoints: Optional[CheckpointSystem] = None,
    ) -> PipelineResult:
        pass


@dataclass
class RouterValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class FormatRouter:
    """Maps format ids to pipeline implementations."""

    def __init__(
        self,
        registry: Optional[FormatRegistry] = None,
        checkpoint_timeout: float = CHECKPOINT_TIMEOUT_SECONDS,
        logger: Optional[LoggerAdapter] = None,
    ):
        self.registry = registry or get_format_registry()
        self.checkpoint_timeout = checkpoint_timeout
        self._pipelines: Dict[str, FormatPipeline] = {}
        self._logger = logger or get_logger(__name__, component="format_router")

    def register(self, format_id: str, pipeline: FormatPipeline) -> None:
        if not self.registry.is_registered(format_id):
            raise UnknownFormatError(format_id)
        self._pipelines[format_id] = pipeline
        self._logger.debug("Pipeline registered", extra={"format_id": format_id})

    def get_format(self, format_id: str) -> Optional[FormatMetadata]:
        return self.registry.get_format(format_id)

    def get_registered_pipelines(self) -> List[str]:
        return list(self._pipelines.keys())

    def has_pipeline(self, format_id: str) -> bool:
        return format_id in self._pipelines

    def get_pipeline(self, format_id: str) -> FormatPipeline:
        if not format_id or not isinstance(format_id, str):
            raise FormatRouterError(
                "Format ID must be a non-empty string",
                FormatRouterErrorCode.INVALID_FORMAT,
                details={"provided_format_id": format_id},
            )
        if not self.registry.is_registered(format_id):
            raise UnknownFormatError(format_id)
        pipeline = self._pipelines.get(format_id)
        if pipeline is None:
            raise FormatRouterError(
                f"Pipeline implementation not found for format '{format_id}'",
                FormatRouterErrorCode.PIPELINE_NOT_FOUND,
                format_id=format_id,
                details={"registered_pipelines": self.get_registered_pipelines()},
            )
        return pipeline

    def validate_request(self, request: PipelineRequest) -> RouterValidation:
        """Check a request against the registry without raising."""
        errors: List[str] = []
        warnings: List[str] = []

        if not request.idea or not request.idea.strip():
            errors.append("Idea must not be empty")

        metadata = self.registry.get_format(request.format_id)
        if metadata is None:
            available = ", ".join(self.registry.format_ids())
            errors.append(f"Format '{request.format_id}' not found in registry. Available formats: {available}")
            return RouterValidation(valid=False, errors=errors, warnings=warnings)

        if metadata.deprecated:
            warnings.append(f"Format '{request.format_id}' is deprecated.")

        language = (request.language or AUTO_LANGUAGE).strip().lower()
        if language != AUTO_LANGUAGE and language not in metadata.supported_languages:
            errors.append(
                f"Language '{request.language}' is not supported for format '{request.format_id}'. "
                f"Supported languages: {', '.join(metadata.supported_languages)}"
            )

        if request.genre and not metadata.supports_genre(request.genre):
            errors.append(
                f"Genre '{request.genre}' is not applicable for format '{request.format_id}'. "
                f"Applicable genres: {', '.join(metadata.applicable_genres)}"
            )

        return RouterValidation(valid=not errors, errors=errors, warnings=warnings)

    def prepare(self, request: PipelineRequest) -> tuple:
        """
        Validate a request and select its pipeline.

        Returns:
            (pipeline, resolved_request, warnings)

        Raises:
            UnknownFormatError, FormatRouterError, InvalidRequestError
        """
        if not self.registry.is_registered(request.format_id):
            raise UnknownFormatError(request.format_id)

        validation = self.validate_request(request)
        if not validation.valid:
            raise InvalidRequestError(
                "; ".join(validation.errors),
                format_id=request.format_id,
                details={"errors": validation.errors},
            )

        pipeline = self.get_pipeline(request.format_id)
        resolved = request.model_copy(update={
            "idea": request.idea.strip(),
            "language": resolve_language(request.language, request.idea),
        })

        if not pipeline.validate(resolved):
            raise InvalidRequestError(
                f"Pipeline validation failed for format '{request.format_id}'",
                format_id=request.format_id,
            )
        return pipeline, resolved, validation.warnings

    async def route(
        self,
        request: PipelineRequest,
        callbacks: Optional[PipelineCallbacks] = None,
    ) -> PipelineResult:
        """Validate, build the per-run checkpoint system and execute the pipeline."""
        pipeline, resolved, warnings = self.prepare(request)
        callbacks = callbacks or PipelineCallbacks()
        metadata = pipeline.get_metadata()

        checkpoints = CheckpointSystem(
            max_checkpoints=metadata.checkpoint_count,
            on_checkpoint_created=callbacks.on_checkpoint_created,
            default_timeout=self.checkpoint_timeout,
            logger=self._logger.bind(format_id=metadata.id),
        )
        if callbacks.on_checkpoint_system_created:
            callbacks.on_checkpoint_system_created(checkpoints)

        self._logger.info(
            "Routing request",
            extra={"format_id": resolved.format_id, "language": resolved.language},
        )
        try:
            result = await pipeline.execute(resolved, callbacks, checkpoints)
        except ReelForgeError:
            raise
        except Exception as e:
            self._logger.error(
                "Pipeline execution failed",
                extra={"format_id": resolved.format_id, "error": str(e)},
                exc_info=True,
            )
            raise FormatRouterError(
                f"Pipeline execution failed: {e}",
                FormatRouterErrorCode.EXECUTION_FAILED,
                format_id=resolved.format_id,
            ) from e
        finally:
            checkpoints.dispose()

        if warnings:
            result.warnings.extend(warnings)
        return result
