"""
Graceful degradation: assemble whatever clips have their assets instead of
aborting on the first missing one.
"""

from typing import Iterable, List

from ...models.assembly import AssemblyClip, GracefulAssemblyResult


def _seconds(value: float) -> str:
    return f"{value:g}"


def assemble_with_graceful_degradation(
    clips: Iterable[AssemblyClip],
    available_asset_ids: Iterable[str],
) -> GracefulAssemblyResult:
    """
    Keep clips whose asset is available.

    Clips without an asset URL (transitions, text overlays) always pass.
    """
    available = set(available_asset_ids)
    assembled: List[AssemblyClip] = []
    missing: List[str] = []
    errors: List[str] = []

    for clip in clips:
        if not clip.asset_url or clip.id in available:
            assembled.append(clip)
            continue
        missing.append(clip.id)
        errors.append(
            f'Missing asset for clip "{clip.id}" '
            f"({clip.type}, {_seconds(clip.start_time)}s–{_seconds(clip.end_time)}s)"
        )

    success = bool(assembled)
    return GracefulAssemblyResult(
        success=success,
        partial=success and bool(missing),
        assembled_clips=assembled,
        missing_assets=missing,
        errors=errors,
    )
