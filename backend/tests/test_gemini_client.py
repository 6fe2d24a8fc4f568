"""End-to-end run of the orchestrator over GeminiGenerationClient with a faked SDK.

Exercises the real stage modules (strategy, copywriting, visuals, video_gen)
wired through the orchestrator, with the google-genai surface, the text
adapter and the clock replaced by in-process fakes.
"""

from pathlib import Path
from types import SimpleNamespace

from campaignpipe.orchestrator import STAGE_ORDER, PipelineOrchestrator, StageStatus
from campaignpipe.pipeline.client import GeminiGenerationClient
from campaignpipe.schemas.campaign import CopyOutput, PaletteOutput, StrategyOutput
from campaignpipe.services.llm import LLMAdapter


class SchemaAdapter(LLMAdapter):
    """Returns canned output per requested schema and records prompts."""

    def __init__(self, strategy, copy):
        self.outputs = {
            StrategyOutput: strategy,
            CopyOutput: copy,
            PaletteOutput: PaletteOutput(palette=["#f80", "#ffd400", "#00a86b", "#fff", "#1a1a1a"]),
        }
        self.prompts = {}

    async def generate_text(self, prompt, schema, *, temperature=0.7, system_prompt=None):
        self.prompts[schema] = prompt
        return self.outputs[schema]


def _fake_sdk(make_image_response):
    finished = SimpleNamespace(
        done=True,
        error=None,
        response=SimpleNamespace(
            rai_media_filtered_count=0,
            generated_videos=[SimpleNamespace(
                video=SimpleNamespace(video_bytes=b"MP4", uri=None, mime_type="video/mp4"),
            )],
        ),
    )
    pending = SimpleNamespace(done=False, error=None, response=None)
    state = {"gets": 0}

    async def generate_content(model, contents, config):
        return make_image_response(b"LOGO" if "logo" in contents else b"IMG")

    async def generate_videos(model, prompt, image, config):
        state["seed"] = image.image_bytes
        return pending

    async def get(operation):
        state["gets"] += 1
        return finished if state["gets"] >= 2 else pending

    sdk = SimpleNamespace(aio=SimpleNamespace(
        models=SimpleNamespace(generate_content=generate_content, generate_videos=generate_videos),
        operations=SimpleNamespace(get=get),
    ))
    return sdk, state


async def test_full_campaign_over_gemini_client(
    fake_client, file_manager, fake_clock, make_image_response,
):
    adapter = SchemaAdapter(fake_client.strategy_output, fake_client.copy_output)
    sdk, state = _fake_sdk(make_image_response)
    client = GeminiGenerationClient(
        client=sdk, text_adapter=adapter, file_manager=file_manager, clock=fake_clock,
    )
    orchestrator = PipelineOrchestrator(client)
    progress = []
    orchestrator.subscribe(
        lambda run: run.progress_message and progress.append(run.progress_message)
    )

    run = await orchestrator.run_pipeline("Launch a citrus soda brand")

    assert [run.status_of(s) for s in STAGE_ORDER] == [StageStatus.COMPLETED] * 4
    assert "Launch a citrus soda brand" in adapter.prompts[StrategyOutput]
    assert fake_client.strategy_output.creative_brief in adapter.prompts[CopyOutput]

    visuals = run.output.visuals
    assert visuals.color_palette == ["#FF8800", "#FFD400", "#00A86B", "#FFFFFF", "#1A1A1A"]
    assert visuals.logo == b"LOGO"
    assert visuals.marketing_images == [b"IMG", b"IMG"]
    assert state["seed"] == b"IMG"

    video = run.output.video
    assert Path(video.local_path).read_bytes() == b"MP4"
    assert str(run.run_id) in video.local_path
    assert "Processing... (check 1)" in progress
    assert progress[-1] == "Video ready!"
