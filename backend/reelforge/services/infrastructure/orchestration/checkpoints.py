"""
Checkpoint System - suspends a pipeline between phases until a human
approves or rejects, with a per-checkpoint timeout and a per-run cap.

One instance lives for the duration of one pipeline execution. Every
awaiting caller resolves exactly once: on approve, reject, timeout
(auto-approve) or dispose (auto-approve).
"""

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

from ....config import CHECKPOINT_TIMEOUT_SECONDS
from ....core.logging import LoggerAdapter, get_logger
from ....models.checkpoints import CheckpointApproval, CheckpointState
from ....models.status import CheckpointResolution, CheckpointStatus

OnCheckpointCreated = Callable[[CheckpointState], None]
OnCheckpointResolved = Callable[[CheckpointState], None]

_PATCHABLE_FIELDS = ("payload", "change_request")


class CheckpointSystem:
    """Per-run human-in-the-loop gate."""

    def __init__(
        self,
        max_checkpoints: int,
        on_checkpoint_created: Optional[OnCheckpointCreated] = None,
        on_checkpoint_resolved: Optional[OnCheckpointResolved] = None,
        default_timeout: float = CHECKPOINT_TIMEOUT_SECONDS,
        logger: Optional[LoggerAdapter] = None,
    ):
        self.max_checkpoints = max(0, max_checkpoints)
        self.default_timeout = default_timeout
        self._on_created = on_checkpoint_created
        self._on_resolved = on_checkpoint_resolved
        self._logger = logger or get_logger(__name__, component="checkpoints")

        self._checkpoints: Dict[str, CheckpointState] = {}
        self._waiters: Dict[str, asyncio.Future] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _new_id(self, phase: str) -> str:
        base = f"cp_{phase}_{int(time.time() * 1000)}"
        checkpoint_id = base
        suffix = 1
        while checkpoint_id in self._checkpoints:
            checkpoint_id = f"{base}_{suffix}"
            suffix += 1
        return checkpoint_id

    async def create_checkpoint(
        self,
        phase: str,
        payload: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> CheckpointApproval:
        """
        Record a checkpoint for `phase` and wait for its resolution.

        Returns approved immediately (without recording anything) once the
        cap is reached or after the system was disposed.
        """
        if self._disposed:
            self._logger.debug("Checkpoint system disposed, passing through", extra={"phase": phase})
            return CheckpointApproval(approved=True)

        if self.get_checkpoint_count() >= self.max_checkpoints:
            self._logger.warning(
                f"Max checkpoint count ({self.max_checkpoints}) reached, skipping checkpoint",
                extra={"phase": phase},
            )
            return CheckpointApproval(approved=True)

        loop = asyncio.get_running_loop()
        checkpoint_id = self._new_id(phase)
        state = CheckpointState(checkpoint_id=checkpoint_id, phase=phase, payload=payload)
        self._checkpoints[checkpoint_id] = state

        waiter = loop.create_future()
        self._waiters[checkpoint_id] = waiter
        wait_seconds = self.default_timeout if timeout is None else timeout
        self._timers[checkpoint_id] = loop.call_later(wait_seconds, self._on_timeout, checkpoint_id, wait_seconds)

        self._logger.info("Checkpoint created", extra={"checkpoint_id": checkpoint_id, "phase": phase})

        if self._on_created:
            try:
                self._on_created(state)
            except Exception as e:
                self._logger.error(
                    "on_checkpoint_created callback failed",
                    extra={"checkpoint_id": checkpoint_id, "error": str(e)},
                    exc_info=True,
                )

        return await waiter

    def _on_timeout(self, checkpoint_id: str, wait_seconds: float) -> None:
        self._timers.pop(checkpoint_id, None)
        if checkpoint_id in self._waiters:
            self._logger.warning(
                f"Checkpoint timed out after {wait_seconds}s, auto-approving",
                extra={"checkpoint_id": checkpoint_id},
            )
            self._resolve(checkpoint_id, True, None, CheckpointResolution.TIMEOUT)

    def _resolve(
        self,
        checkpoint_id: str,
        approved: bool,
        change_request: Optional[str],
        resolution: CheckpointResolution,
    ) -> bool:
        waiter = self._waiters.pop(checkpoint_id, None)
        if waiter is None:
            return False

        timer = self._timers.pop(checkpoint_id, None)
        if timer:
            timer.cancel()

        state = self._checkpoints.get(checkpoint_id)
        if state is not None:
            state.status = CheckpointStatus.APPROVED if approved else CheckpointStatus.REJECTED
            state.resolution = resolution
            if approved:
                state.approved_at = time.time()
            else:
                state.change_request = change_request

        if not waiter.done():
            waiter.set_result(CheckpointApproval(approved=approved, change_request=change_request))

        if self._on_resolved and state is not None:
            try:
                self._on_resolved(state)
            except Exception as e:
                self._logger.error(
                    "on_checkpoint_resolved callback failed",
                    extra={"checkpoint_id": checkpoint_id, "error": str(e)},
                    exc_info=True,
                )
        return True

    def approve_checkpoint(self, checkpoint_id: str) -> bool:
        """Approve a pending checkpoint. Returns False when nothing was pending."""
        if not self._resolve(checkpoint_id, True, None, CheckpointResolution.USER):
            self._logger.warning("No pending checkpoint found", extra={"checkpoint_id": checkpoint_id})
            return False
        self._logger.info("Checkpoint approved", extra={"checkpoint_id": checkpoint_id})
        return True

    def reject_checkpoint(self, checkpoint_id: str, change_request: Optional[str] = None) -> bool:
        """Reject a pending checkpoint. Returns False when nothing was pending."""
        if not self._resolve(checkpoint_id, False, change_request, CheckpointResolution.USER):
            self._logger.warning("No pending checkpoint found", extra={"checkpoint_id": checkpoint_id})
            return False
        self._logger.info(
            "Checkpoint rejected",
            extra={"checkpoint_id": checkpoint_id, "change_request": change_request},
        )
        return True

    def update_checkpoint(self, checkpoint_id: str, patch: Dict[str, Any]) -> Optional[CheckpointState]:
        """Patch the descriptive fields of a checkpoint; status changes go through approve/reject."""
        state = self._checkpoints.get(checkpoint_id)
        if state is None:
            self._logger.warning("Checkpoint not found", extra={"checkpoint_id": checkpoint_id})
            return None
        for key, value in patch.items():
            if key not in _PATCHABLE_FIELDS:
                raise ValueError(f"Checkpoint field '{key}' cannot be updated")
            setattr(state, key, value)
        return state

    def get_checkpoint(self, checkpoint_id: str) -> Optional[CheckpointState]:
        return self._checkpoints.get(checkpoint_id)

    def get_all_checkpoints(self) -> List[CheckpointState]:
        return list(self._checkpoints.values())

    def get_pending_checkpoints(self) -> List[CheckpointState]:
        return [self._checkpoints[cid] for cid in self._waiters if cid in self._checkpoints]

    def get_checkpoint_count(self) -> int:
        return len(self._checkpoints)

    def has_pending_checkpoints(self) -> bool:
        return bool(self._waiters)

    def dispose(self) -> None:
        """Clear timers and auto-approve everything still pending."""
        if self._disposed:
            return
        self._disposed = True

        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

        for checkpoint_id in list(self._waiters):
            self._logger.debug("Disposing pending checkpoint", extra={"checkpoint_id": checkpoint_id})
            self._resolve(checkpoint_id, True, None, CheckpointResolution.DISPOSE)

        self._logger.info("Checkpoint system disposed", extra={"checkpoint_count": len(self._checkpoints)})
