"""
Pipeline contract types: request, result, partial artifacts and callbacks.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .assembly import AssemblyRules, ChapterMarker
from .checkpoints import CheckpointState
from .errors import ErrorRecord, RecoveryAction, RecoveryDecision, RecoveryOption
from .production import (
    BreakdownAct,
    CharacterProfile,
    NarrationSegment,
    PartialSuccessReport,
    ScreenplayScene,
    ShotlistEntry,
    VisualAsset,
)
from .research import ResearchResult


class PipelineRequest(BaseModel):
    """A single idea to turn into a production of the given format."""
    format_id: str
    idea: str
    language: str = "auto"  # "en", "ar" or "auto" (detected from the idea)
    genre: Optional[str] = None
    reference_documents: List[str] = Field(default_factory=list)  # paths of uploaded documents
    session_id: Optional[str] = None  # resume an existing session and reuse its cached phases


@dataclass
class PartialResults:
    session_id: Optional[str] = None
    research: Optional[ResearchResult] = None
    breakdown: Optional[List[BreakdownAct]] = None
    screenplay: Optional[List[ScreenplayScene]] = None
    characters: Optional[List[CharacterProfile]] = None
    visuals: Optional[List[VisualAsset]] = None
    shotlist: Optional[List[ShotlistEntry]] = None
    narration_segments: Optional[List[NarrationSegment]] = None
    assembly_rules: Optional[AssemblyRules] = None
    chapters: Optional[List[ChapterMarker]] = None
    cta_text: Optional[str] = None
    transition_times: Optional[List[float]] = None
    total_duration: Optional[float] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    partial_success_report: Optional[PartialSuccessReport] = None

    def to_dict(self) -> Dict[str, Any]:
        def _items(values):
            return [v.to_dict() for v in values] if values is not None else None

        return {
            "session_id": self.session_id,
            "research": self.research.to_dict() if self.research else None,
            "breakdown": _items(self.breakdown),
            "screenplay": _items(self.screenplay),
            "characters": _items(self.characters),
            "visuals": _items(self.visuals),
            "shotlist": _items(self.shotlist),
            "narration_segments": _items(self.narration_segments),
            "assembly_rules": self.assembly_rules.to_dict() if self.assembly_rules else None,
            "chapters": _items(self.chapters),
            "cta_text": self.cta_text,
            "transition_times": self.transition_times,
            "total_duration": self.total_duration,
            "errors": list(self.errors),
            "partial_success_report": (
                self.partial_success_report.to_dict() if self.partial_success_report else None
            ),
        }


@dataclass
class PipelineResult:
    success: bool
    partial_results: PartialResults = field(default_factory=PartialResults)
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "warnings": list(self.warnings),
            "partial_results": self.partial_results.to_dict(),
        }


@dataclass
class PhaseEvent:
    phase: str
    status: str  # "started" | "completed" | "skipped"
    message: str = ""


CancelFn = Callable[[], Awaitable[None]]
CriticalFailureCallback = Callable[
    [ErrorRecord, List[RecoveryOption]],
    Awaitable[Union[RecoveryAction, RecoveryDecision]],
]


@dataclass
class PipelineCallbacks:
    """All optional. Without them checkpoints auto-approve on timeout and critical failures raise."""

    on_checkpoint_created: Optional[Callable[[CheckpointState], None]] = None
    on_checkpoint_system_created: Optional[Callable[[Any], None]] = None
    on_cancel_requested: Optional[Callable[[CancelFn], None]] = None
    on_critical_failure: Optional[CriticalFailureCallback] = None
    on_phase: Optional[Callable[[PhaseEvent], None]] = None
