"""Stage executors: one unit per pipeline stage.

Each executor marks its stage working, derives its request from the
accumulated output of earlier stages, invokes the matching capability and
publishes the result. Failures mark the stage error (or cancelled) and
propagate to the orchestrator; the next stage is never attempted.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from campaignpipe.errors import (
    PipelineCancelledError,
    StageFailedError,
    StructuralInvariantError,
)
from campaignpipe.orchestrator.cancellation import CancellationToken
from campaignpipe.orchestrator.progress import ProgressChannel
from campaignpipe.orchestrator.state import StageName, StageStatus
from campaignpipe.orchestrator.tracker import StatusTracker
from campaignpipe.schemas.campaign import (
    CampaignData,
    CopyOutput,
    StrategyOutput,
    VideoOutput,
    VisualsOutput,
)

if TYPE_CHECKING:
    from campaignpipe.pipeline.client import GenerationClient

logger = logging.getLogger(__name__)

MIN_AD_COPY_ENTRIES = 2
MIN_MARKETING_IMAGES = 1


def _require(output: CampaignData, field: str, stage: StageName) -> Any:
    value = getattr(output, field)
    if value is None:
        raise StructuralInvariantError(
            f"{stage.label} cannot start: required '{field}' output is missing"
        )
    return value


def _check_ad_copy(copy: CopyOutput) -> None:
    if len(copy.ad_copy) < MIN_AD_COPY_ENTRIES:
        raise StructuralInvariantError(
            f"Copy stage returned {len(copy.ad_copy)} ad copy entries; "
            f"at least {MIN_AD_COPY_ENTRIES} are required"
        )


def sample_ad_copy_text(copy: CopyOutput) -> str:
    """Text of the first ad copy pair, used to inspire the marketing images."""
    _check_ad_copy(copy)
    first = copy.ad_copy[0]
    return f"{first.title} {first.body}"


def build_video_prompt(strategy: StrategyOutput, copy: CopyOutput) -> str:
    """Video prompt from the brand name and the second ad copy pair."""
    _check_ad_copy(copy)
    second = copy.ad_copy[1]
    return f"An ad for {strategy.brand_name}. {second.title}: {second.body}"


class StageExecutor(ABC):
    """Generic stage lifecycle: working -> capability call -> completed | error."""

    stage: ClassVar[StageName]
    result_type: ClassVar[type]

    @abstractmethod
    def build_request(self, output: CampaignData) -> dict[str, Any]:
        """Derive the capability's keyword arguments from prior outputs.

        Raises:
            StructuralInvariantError: If a required prior output is missing
                or too short.
        """

    @abstractmethod
    async def invoke(
        self,
        client: "GenerationClient",
        request: dict[str, Any],
        tracker: StatusTracker,
        cancel_token: CancellationToken,
    ) -> Any:
        """Call the capability for this stage."""

    def validate_result(self, result: Any) -> None:
        """Check the result has the minimum shape later stages rely on."""

    async def execute(
        self,
        tracker: StatusTracker,
        client: "GenerationClient",
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        """Run the stage to a terminal status.

        Returns:
            The stage output, already merged into the accumulated output

        Raises:
            StageFailedError: Capability or structural failure (stage marked error)
            PipelineCancelledError: Run cancelled (stage marked cancelled)
        """
        token = cancel_token or CancellationToken()
        token.raise_if_cancelled()

        tracker.set_status(self.stage, StageStatus.WORKING)
        logger.info(f"Starting {self.stage.value} stage")
        try:
            request = self.build_request(tracker.run.output)
            result = await token.guard(self.invoke(client, request, tracker, token))
            if not isinstance(result, self.result_type):
                raise StructuralInvariantError(
                    f"{self.stage.label} returned {type(result).__name__}, "
                    f"expected {self.result_type.__name__}"
                )
            self.validate_result(result)
        except (PipelineCancelledError, asyncio.CancelledError):
            tracker.set_status(self.stage, StageStatus.CANCELLED)
            logger.warning(f"{self.stage.value} stage cancelled")
            raise
        except Exception as exc:
            tracker.set_status(self.stage, StageStatus.ERROR)
            logger.error(f"{self.stage.value} stage failed: {type(exc).__name__}: {exc}")
            raise StageFailedError(self.stage, exc) from exc

        tracker.complete_stage(self.stage, result)
        return result


class StrategyExecutor(StageExecutor):
    stage = StageName.STRATEGY
    result_type = StrategyOutput

    def __init__(self, concept_prompt: str) -> None:
        self._concept_prompt = concept_prompt

    def build_request(self, output: CampaignData) -> dict[str, Any]:
        return {"concept_prompt": self._concept_prompt}

    async def invoke(self, client, request, tracker, cancel_token):
        return await client.produce_strategy(**request)

    def validate_result(self, result: StrategyOutput) -> None:
        # Copy, visuals and video prompts are built from these two fields
        for field in ("brand_name", "creative_brief"):
            if not getattr(result, field).strip():
                raise StructuralInvariantError(f"Strategy stage returned an empty {field}")


class CopyExecutor(StageExecutor):
    stage = StageName.COPY
    result_type = CopyOutput

    def build_request(self, output: CampaignData) -> dict[str, Any]:
        strategy = _require(output, "strategy", self.stage)
        return {"creative_brief": strategy.creative_brief}

    async def invoke(self, client, request, tracker, cancel_token):
        return await client.produce_copy(**request)

    def validate_result(self, result: CopyOutput) -> None:
        # The visuals and video stages read ad copy entries 0 and 1
        _check_ad_copy(result)


class VisualsExecutor(StageExecutor):
    stage = StageName.VISUALS
    result_type = VisualsOutput

    def build_request(self, output: CampaignData) -> dict[str, Any]:
        strategy = _require(output, "strategy", self.stage)
        copy = _require(output, "copywriting", self.stage)
        return {
            "brand_name": strategy.brand_name,
            "creative_brief": strategy.creative_brief,
            "sample_ad_copy": sample_ad_copy_text(copy),
        }

    async def invoke(self, client, request, tracker, cancel_token):
        return await client.produce_visuals(**request)

    def validate_result(self, result: VisualsOutput) -> None:
        if len(result.marketing_images) < MIN_MARKETING_IMAGES:
            raise StructuralInvariantError(
                "Visuals stage returned no marketing images; one is required to seed the video"
            )


class VideoExecutor(StageExecutor):
    """Video stage: relays the capability's progress stream into the tracker."""

    stage = StageName.VIDEO
    result_type = VideoOutput

    def build_request(self, output: CampaignData) -> dict[str, Any]:
        strategy = _require(output, "strategy", self.stage)
        copy = _require(output, "copywriting", self.stage)
        visuals = _require(output, "visuals", self.stage)
        if len(visuals.marketing_images) < MIN_MARKETING_IMAGES:
            raise StructuralInvariantError(
                "Video Editor cannot start: no marketing image to use as seed"
            )
        return {
            "video_prompt": build_video_prompt(strategy, copy),
            "seed_image": visuals.marketing_images[0],
        }

    async def invoke(self, client, request, tracker, cancel_token):
        progress = ProgressChannel()
        relay = asyncio.ensure_future(self._relay_progress(progress, tracker))
        try:
            return await client.produce_video(
                **request,
                progress=progress,
                cancel_token=cancel_token,
                run_id=tracker.run.run_id,
            )
        finally:
            progress.close()
            # Drain every message before the stage leaves the working state
            await relay

    @staticmethod
    async def _relay_progress(progress: ProgressChannel, tracker: StatusTracker) -> None:
        async for message in progress:
            tracker.set_progress_message(message)


def build_executors(concept_prompt: str) -> list[StageExecutor]:
    """Return the four executors in pipeline order."""
    return [
        StrategyExecutor(concept_prompt),
        CopyExecutor(),
        VisualsExecutor(),
        VideoExecutor(),
    ]
