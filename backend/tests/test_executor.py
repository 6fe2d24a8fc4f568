"""Tests for the individual stage executors."""

import pytest

from campaignpipe.errors import PipelineCancelledError, StageFailedError, StructuralInvariantError
from campaignpipe.orchestrator.cancellation import CancellationToken
from campaignpipe.orchestrator.executor import (
    CopyExecutor,
    StrategyExecutor,
    VideoExecutor,
    VisualsExecutor,
    build_executors,
    build_video_prompt,
    sample_ad_copy_text,
)
from campaignpipe.orchestrator.state import STAGE_ORDER, StageName, StageStatus
from campaignpipe.schemas.campaign import AdCopy


def test_build_executors_follow_stage_order():
    assert [e.stage for e in build_executors("idea")] == list(STAGE_ORDER)


def test_sample_ad_copy_uses_first_entry(fake_client):
    assert sample_ad_copy_text(fake_client.copy_output) == "Peel Good Real citrus, real fizz."


def test_video_prompt_uses_brand_and_second_entry(fake_client):
    prompt = build_video_prompt(fake_client.strategy_output, fake_client.copy_output)
    assert prompt == "An ad for Zest Pop. Sunshine in a Can: Crack one open and brighten up."


def test_video_prompt_requires_two_ad_copies(fake_client):
    short = fake_client.copy_output.model_copy(update={"ad_copy": [AdCopy(title="A", body="B")]})
    with pytest.raises(StructuralInvariantError):
        build_video_prompt(fake_client.strategy_output, short)


async def test_strategy_executor_publishes_result(tracker, fake_client):
    result = await StrategyExecutor("citrus soda").execute(tracker, fake_client)

    assert result == fake_client.strategy_output
    assert tracker.run.status_of(StageName.STRATEGY) == StageStatus.COMPLETED
    assert tracker.run.output.strategy == result


async def test_missing_prior_output_fails_the_stage(tracker, fake_client):
    with pytest.raises(StageFailedError) as exc_info:
        await CopyExecutor().execute(tracker, fake_client)

    assert isinstance(exc_info.value.cause, StructuralInvariantError)
    assert tracker.run.status_of(StageName.COPY) == StageStatus.ERROR
    assert fake_client.calls == []


async def test_wrong_result_type_fails_the_stage(tracker, fake_client):
    fake_client.strategy_output = {"brand_name": "Not a model"}

    with pytest.raises(StageFailedError) as exc_info:
        await StrategyExecutor("idea").execute(tracker, fake_client)

    assert "expected StrategyOutput" in str(exc_info.value)
    assert tracker.run.output.strategy is None


@pytest.mark.parametrize("field", ["brand_name", "creative_brief"])
async def test_blank_strategy_fields_fail_the_stage(tracker, fake_client, field):
    fake_client.strategy_output = fake_client.strategy_output.model_copy(update={field: "  "})

    with pytest.raises(StageFailedError) as exc_info:
        await StrategyExecutor("idea").execute(tracker, fake_client)

    assert isinstance(exc_info.value.cause, StructuralInvariantError)
    assert field in str(exc_info.value.cause)
    assert tracker.run.status_of(StageName.STRATEGY) == StageStatus.ERROR
    assert tracker.run.output.strategy is None


async def test_visuals_without_marketing_images_fail(tracker, fake_client):
    tracker.complete_stage(StageName.STRATEGY, fake_client.strategy_output)
    tracker.complete_stage(StageName.COPY, fake_client.copy_output)
    fake_client.visuals_output = fake_client.visuals_output.model_copy(
        update={"marketing_images": []}
    )

    with pytest.raises(StageFailedError):
        await VisualsExecutor().execute(tracker, fake_client)

    assert tracker.run.status_of(StageName.VISUALS) == StageStatus.ERROR
    assert tracker.run.output.visuals is None


async def test_video_executor_relays_progress_and_clears_it(tracker, fake_client):
    tracker.complete_stage(StageName.STRATEGY, fake_client.strategy_output)
    tracker.complete_stage(StageName.COPY, fake_client.copy_output)
    tracker.complete_stage(StageName.VISUALS, fake_client.visuals_output)
    messages = []
    tracker.subscribe(lambda run: messages.append(run.progress_message))

    await VideoExecutor().execute(tracker, fake_client)

    assert [m for m in messages if m] == list(fake_client.video_progress)
    assert tracker.run.progress_message is None
    assert tracker.run.status_of(StageName.VIDEO) == StageStatus.COMPLETED
    assert fake_client.requests[StageName.VIDEO]["run_id"] == tracker.run.run_id


async def test_pre_cancelled_token_leaves_stage_pending(tracker, fake_client):
    token = CancellationToken()
    token.cancel()

    with pytest.raises(PipelineCancelledError):
        await StrategyExecutor("idea").execute(tracker, fake_client, token)

    assert tracker.run.status_of(StageName.STRATEGY) == StageStatus.PENDING
    assert fake_client.calls == []
