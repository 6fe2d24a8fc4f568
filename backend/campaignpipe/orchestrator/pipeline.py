"""Main pipeline orchestrator with ordered stage execution and status tracking.

Coordinates the campaign pipeline with:
- Strictly sequential stages: strategy, copy, visuals, video
- Single-flight guard (one run at a time per orchestrator)
- Per-step timing and logging
- Failure handling that marks exactly the active stage and keeps results
  already produced
- Cooperative cancellation of an in-flight run
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Callable, Optional

from campaignpipe.errors import (
    EmptyPromptError,
    PipelineAlreadyRunningError,
    PipelineCancelledError,
    StageFailedError,
)
from campaignpipe.orchestrator.cancellation import CancellationToken
from campaignpipe.orchestrator.executor import build_executors
from campaignpipe.orchestrator.state import StageName, StageStatus
from campaignpipe.orchestrator.tracker import PipelineRun, StatusTracker

if TYPE_CHECKING:
    from campaignpipe.pipeline.client import GenerationClient

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
CANCELLED_MESSAGE = "Campaign cancelled."


def describe_failure(error: BaseException) -> str:
    """Human-readable failure message for the run, with a generic fallback."""
    cause = error.cause if isinstance(error, StageFailedError) else error
    description = str(cause).strip()
    return f"Campaign failed: {description or UNKNOWN_ERROR_MESSAGE}"


class PipelineOrchestrator:
    """Runs the four campaign stages in order against a GenerationClient.

    The orchestrator owns the StatusTracker for its runs; callers observe
    progress through subscribe() and must treat snapshots as read-only.
    """

    def __init__(
        self,
        client: "GenerationClient",
        tracker: Optional[StatusTracker] = None,
    ) -> None:
        self._client = client
        self._tracker = tracker or StatusTracker()
        self._cancel_token: Optional[CancellationToken] = None
        self._running = False

    @property
    def tracker(self) -> StatusTracker:
        return self._tracker

    @property
    def is_running(self) -> bool:
        return self._running

    def subscribe(self, listener: Callable[[PipelineRun], None]) -> Callable[[], None]:
        """Register a run-snapshot listener; returns an unsubscribe callable."""
        return self._tracker.subscribe(listener)

    def cancel(self) -> bool:
        """Request cancellation of the in-flight run.

        Returns:
            True if a run was active and has been signalled, False otherwise
        """
        if not self._running or self._cancel_token is None:
            return False
        logger.info("Cancellation requested for run %s", self._tracker.run.run_id)
        self._cancel_token.cancel()
        return True

    async def run_pipeline(self, initial_prompt: str) -> PipelineRun:
        """Execute the full campaign pipeline for a concept.

        Args:
            initial_prompt: The user's campaign idea

        Returns:
            Snapshot of the completed run

        Raises:
            EmptyPromptError: Prompt empty or whitespace-only (nothing mutated)
            PipelineAlreadyRunningError: A run is already in flight (nothing mutated)
            StageFailedError: A stage failed; that stage is marked error and
                later stages remain pending
            PipelineCancelledError: cancel() was called; the active stage is
                marked cancelled

        Side effects:
            - Resets the tracker, replacing the previous run wholesale
            - Publishes stage statuses, outputs and progress to subscribers
            - Sets failure_message on failure or cancellation
        """
        if not initial_prompt or not initial_prompt.strip():
            raise EmptyPromptError()
        if self._running:
            raise PipelineAlreadyRunningError()

        self._running = True
        self._cancel_token = CancellationToken()
        try:
            return await self._execute(initial_prompt.strip(), self._cancel_token)
        finally:
            self._running = False
            self._cancel_token = None

    def _mark_active_stage(self, status: StageStatus) -> Optional[StageName]:
        stage = self._tracker.active_stage()
        if stage is not None:
            self._tracker.set_status(stage, status)
        return stage

    async def _execute(self, prompt: str, cancel_token: CancellationToken) -> PipelineRun:
        tracker = self._tracker
        tracker.reset()
        tracker.mark_started(prompt)
        run_id = tracker.run.run_id
        logger.info(f"Starting campaign run {run_id}")
        pipeline_start = time.monotonic()

        try:
            for executor in build_executors(prompt):
                step_start = time.monotonic()
                await executor.execute(tracker, self._client, cancel_token)
                step_duration = time.monotonic() - step_start
                tracker.record_duration(executor.stage, step_duration)
                logger.info(f"{executor.stage.label} step completed in {step_duration:.2f}s")

        except (PipelineCancelledError, asyncio.CancelledError):
            stage = self._mark_active_stage(StageStatus.CANCELLED)
            logger.info(f"Run {run_id} cancelled at {stage.value if stage else 'stage boundary'}")
            tracker.set_failure_message(CANCELLED_MESSAGE)
            raise

        except Exception as e:
            failed_stage = e.stage if isinstance(e, StageFailedError) else None
            # Executors mark their own failure; anything still working is the failed stage
            active = self._mark_active_stage(StageStatus.ERROR)
            failed_stage = failed_stage or active
            logger.error(
                f"Run {run_id} failed at step "
                f"{failed_stage.value if failed_stage else 'unknown'}: {type(e).__name__}: {e}"
            )
            tracker.set_failure_message(describe_failure(e))
            raise

        finally:
            tracker.mark_finished()

        logger.info(f"Campaign run {run_id} completed in {time.monotonic() - pipeline_start:.2f}s")
        return tracker.snapshot()
