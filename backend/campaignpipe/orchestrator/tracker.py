"""Observable run state for the campaign pipeline.

StatusTracker owns the PipelineRun of the current execution and pushes a
snapshot to every subscriber after each mutation, so presentation layers
re-render on change instead of polling.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from campaignpipe.orchestrator.state import STAGE_ORDER, StageName, StageStatus
from campaignpipe.schemas.campaign import CampaignData

logger = logging.getLogger(__name__)

# Accumulated-output field holding each stage's result
OUTPUT_FIELDS = {
    StageName.STRATEGY: "strategy",
    StageName.COPY: "copywriting",
    StageName.VISUALS: "visuals",
    StageName.VIDEO: "video",
}

Listener = Callable[["PipelineRun"], None]


def _initial_statuses() -> dict[StageName, StageStatus]:
    return {stage: StageStatus.PENDING for stage in STAGE_ORDER}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PipelineRun(BaseModel):
    """One execution of the pipeline, from initial prompt to terminal state."""

    run_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    prompt: Optional[str] = None
    stage_statuses: dict[StageName, StageStatus] = Field(default_factory=_initial_statuses)
    progress_message: Optional[str] = None
    output: CampaignData = Field(default_factory=CampaignData)
    failure_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    step_durations: dict[StageName, float] = Field(default_factory=dict)

    def status_of(self, stage: StageName) -> StageStatus:
        return self.stage_statuses[stage]

    def output_for(self, stage: StageName) -> Any:
        """Return the accumulated output for a stage, or None if not completed."""
        return getattr(self.output, OUTPUT_FIELDS[stage])

    @property
    def succeeded(self) -> bool:
        return self.failure_message is None and all(
            status == StageStatus.COMPLETED for status in self.stage_statuses.values()
        )


class StatusTracker:
    """Holds per-stage status, progress and failure message for the current run.

    Pure state container: it performs no validation of the transitions it is
    asked to apply. Every mutation notifies subscribers with a deep-copied
    snapshot of the run.
    """

    def __init__(self) -> None:
        self._run = PipelineRun()
        self._listeners: list[Listener] = []

    @property
    def run(self) -> PipelineRun:
        """The live run object. Mutate only through tracker methods."""
        return self._run

    def snapshot(self) -> PipelineRun:
        return self._run.model_copy(deep=True)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every mutation.

        Args:
            listener: Callable receiving a PipelineRun snapshot

        Returns:
            Zero-arg callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Status listener %r raised; continuing", listener)

    def set_status(self, stage: StageName, status: StageStatus) -> None:
        """Overwrite a stage's status.

        Leaving the working state on the video stage clears the progress
        message, since it only describes an in-flight video operation.
        """
        self._run.stage_statuses[stage] = status
        if stage == StageName.VIDEO and status != StageStatus.WORKING:
            self._run.progress_message = None
        logger.debug("Stage %s -> %s", stage.value, status.value)
        self._notify()

    def set_progress_message(self, message: Optional[str]) -> None:
        """Overwrite the shared progress slot while the video stage is working."""
        if self._run.stage_statuses[StageName.VIDEO] != StageStatus.WORKING:
            logger.debug("Ignoring progress message outside video stage: %s", message)
            return
        self._run.progress_message = message
        self._notify()

    def complete_stage(self, stage: StageName, output: Any) -> None:
        """Publish a stage's output and mark it completed in one notification."""
        setattr(self._run.output, OUTPUT_FIELDS[stage], output)
        self._run.stage_statuses[stage] = StageStatus.COMPLETED
        if stage == StageName.VIDEO:
            self._run.progress_message = None
        logger.debug("Stage %s -> completed", stage.value)
        self._notify()

    def record_duration(self, stage: StageName, seconds: float) -> None:
        self._run.step_durations[stage] = seconds

    def set_failure_message(self, message: Optional[str]) -> None:
        self._run.failure_message = message
        self._notify()

    def mark_started(self, prompt: str) -> None:
        self._run.prompt = prompt
        self._run.started_at = _utcnow()
        self._notify()

    def mark_finished(self) -> None:
        self._run.completed_at = _utcnow()
        self._notify()

    def active_stage(self) -> Optional[StageName]:
        """Return the stage currently working, if any."""
        for stage in STAGE_ORDER:
            if self._run.stage_statuses[stage] == StageStatus.WORKING:
                return stage
        return None

    def reset(self, run_id: Optional[uuid.UUID] = None) -> None:
        """Replace the current run with a fresh one: all stages pending, no output."""
        self._run = PipelineRun(run_id=run_id) if run_id else PipelineRun()
        self._notify()
