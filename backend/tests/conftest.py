"""Shared fixtures for the campaignpipe test suite.

Nothing here touches the network: the generation client, the clock and the
google-genai SDK surface are all replaced with in-process fakes.
"""

import asyncio
from types import SimpleNamespace
from typing import Optional

import pytest

from campaignpipe.config import settings
from campaignpipe.orchestrator.progress import ProgressChannel
from campaignpipe.orchestrator.state import STAGE_ORDER, StageName
from campaignpipe.orchestrator.tracker import StatusTracker
from campaignpipe.schemas.campaign import (
    AdCopy,
    BlogPost,
    CopyOutput,
    StrategyOutput,
    VideoOutput,
    VisualsOutput,
)
from campaignpipe.services.file_manager import FileManager

VIDEO_PROGRESS = (
    "Initiating video generation...",
    "Video request sent. Awaiting processing...",
    "Processing... (check 1)",
    "Processing... (check 2)",
    "Video processed. Fetching data...",
    "Video ready!",
)


# ---------------------------------------------------------------------------
# Sample stage outputs
# ---------------------------------------------------------------------------

def sample_strategy() -> StrategyOutput:
    return StrategyOutput(
        brand_name="Zest Pop",
        tagline="Bright by nature.",
        market_research="Health-conscious 18-34 year olds moving away from cola.",
        brand_identity="Playful, sunny, honest.",
        creative_brief="Position Zest Pop as the sparkling citrus break in a busy day.",
    )


def sample_copy() -> CopyOutput:
    return CopyOutput(
        ad_copy=[
            AdCopy(title="Peel Good", body="Real citrus, real fizz."),
            AdCopy(title="Sunshine in a Can", body="Crack one open and brighten up."),
        ],
        social_media_captions=["Zest mode: on", "Citrus o'clock", "Pop the day"],
        blog_post=BlogPost(title="Why Citrus?", content="Because oranges are happy fruit."),
    )


def sample_visuals() -> VisualsOutput:
    return VisualsOutput(
        color_palette=["#FF8800", "#FFD400", "#00A86B", "#FFFFFF", "#1A1A1A"],
        logo=b"\x89PNG-logo",
        marketing_images=[b"\x89PNG-hero", b"\x89PNG-alt"],
    )


def sample_video() -> VideoOutput:
    return VideoOutput(video_url="file:///tmp/campaign_ad.mp4", local_path="/tmp/campaign_ad.mp4")


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeGenerationClient:
    """In-memory GenerationClient with failure injection and per-stage gates.

    - fail_on / error: raise ``error`` from the named stage's capability
    - hold(stage): block that capability until the returned event is set
    - entered[stage]: set as soon as the capability is invoked
    """

    def __init__(self) -> None:
        self.strategy_output = sample_strategy()
        self.copy_output = sample_copy()
        self.visuals_output = sample_visuals()
        self.video_output = sample_video()
        self.video_progress = VIDEO_PROGRESS
        self.fail_on: Optional[StageName] = None
        self.error: BaseException = RuntimeError("capability failed")
        self.calls: list[StageName] = []
        self.requests: dict[StageName, dict] = {}
        self.entered = {stage: asyncio.Event() for stage in STAGE_ORDER}
        self._gates: dict[StageName, asyncio.Event] = {}

    def hold(self, stage: StageName) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[stage] = gate
        return gate

    async def _enter(self, stage: StageName, **request) -> None:
        self.calls.append(stage)
        self.requests[stage] = request
        self.entered[stage].set()
        if stage in self._gates:
            await self._gates[stage].wait()
        if stage == self.fail_on:
            raise self.error

    async def produce_strategy(self, concept_prompt):
        await self._enter(StageName.STRATEGY, concept_prompt=concept_prompt)
        return self.strategy_output

    async def produce_copy(self, creative_brief):
        await self._enter(StageName.COPY, creative_brief=creative_brief)
        return self.copy_output

    async def produce_visuals(self, brand_name, creative_brief, sample_ad_copy):
        await self._enter(
            StageName.VISUALS,
            brand_name=brand_name,
            creative_brief=creative_brief,
            sample_ad_copy=sample_ad_copy,
        )
        return self.visuals_output

    async def produce_video(
        self, video_prompt, seed_image, progress: ProgressChannel, *, cancel_token=None, run_id=None,
    ):
        await self._enter(
            StageName.VIDEO, video_prompt=video_prompt, seed_image=seed_image, run_id=run_id,
        )
        for message in self.video_progress:
            progress.publish(message)
            await asyncio.sleep(0)
        return self.video_output


class FakeClock:
    """Clock that records requested delays and returns immediately.

    An optional on_sleep hook runs before each return, letting tests trigger
    cancellation at a precise poll.
    """

    def __init__(self, on_sleep=None) -> None:
        self.sleeps: list[float] = []
        self._on_sleep = on_sleep

    async def sleep(self, seconds, cancel_token=None) -> None:
        self.sleeps.append(seconds)
        if self._on_sleep is not None:
            self._on_sleep(len(self.sleeps))
        await asyncio.sleep(0)


def image_response(data: bytes):
    """Shape of a generate_content response carrying one inline image."""
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker() -> StatusTracker:
    return StatusTracker()


@pytest.fixture
def file_manager(tmp_path) -> FileManager:
    return FileManager(base_dir=tmp_path / "campaigns")


@pytest.fixture
def api_key_settings(monkeypatch):
    """Force API-key mode with a known key."""
    monkeypatch.setattr(settings.google_cloud, "use_vertex_ai", False)
    monkeypatch.setattr(settings.google_cloud, "api_key", "test-key")
    return settings


@pytest.fixture
def make_clock():
    return FakeClock


@pytest.fixture
def make_image_response():
    return image_response
