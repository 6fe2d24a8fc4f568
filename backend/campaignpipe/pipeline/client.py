"""Generation capabilities consumed by the orchestrator.

GenerationClient is the narrow interface the pipeline depends on; it is the
only network boundary. GeminiGenerationClient implements it on top of the
google-genai SDK using the stage modules in this package.
"""

import uuid
from typing import Optional, Protocol

import httpx

from campaignpipe.config import settings
from campaignpipe.orchestrator.cancellation import CancellationToken
from campaignpipe.orchestrator.polling import Clock
from campaignpipe.orchestrator.progress import ProgressChannel
from campaignpipe.pipeline.copywriting import generate_copy
from campaignpipe.pipeline.strategy import generate_strategy
from campaignpipe.pipeline.video_gen import generate_video
from campaignpipe.pipeline.visuals import generate_visuals
from campaignpipe.schemas.campaign import CopyOutput, StrategyOutput, VideoOutput, VisualsOutput
from campaignpipe.services.file_manager import FileManager
from campaignpipe.services.genai_client import get_genai_client
from campaignpipe.services.llm import LLMAdapter, get_adapter


class GenerationClient(Protocol):
    """The four generation capabilities, one per pipeline stage."""

    async def produce_strategy(self, concept_prompt: str) -> StrategyOutput:
        ...

    async def produce_copy(self, creative_brief: str) -> CopyOutput:
        ...

    async def produce_visuals(
        self, brand_name: str, creative_brief: str, sample_ad_copy: str,
    ) -> VisualsOutput:
        ...

    async def produce_video(
        self,
        video_prompt: str,
        seed_image: bytes,
        progress: ProgressChannel,
        *,
        cancel_token: Optional[CancellationToken] = None,
        run_id: Optional[uuid.UUID] = None,
    ) -> VideoOutput:
        ...


class GeminiGenerationClient:
    """GenerationClient backed by Gemini (text, images) and Veo (video).

    Every collaborator is optional and resolved from settings when omitted,
    so tests can inject fakes for the SDK client, clock or HTTP transport.
    """

    def __init__(
        self,
        *,
        client=None,
        text_adapter: Optional[LLMAdapter] = None,
        file_manager: Optional[FileManager] = None,
        clock: Optional[Clock] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client
        self._text_adapter = text_adapter
        self._file_manager = file_manager
        self._clock = clock
        self._http_client = http_client

    @property
    def client(self):
        if self._client is None:
            self._client = get_genai_client()
        return self._client

    @property
    def text_adapter(self) -> LLMAdapter:
        if self._text_adapter is None:
            self._text_adapter = get_adapter(settings.models.text, client=self.client)
        return self._text_adapter

    async def produce_strategy(self, concept_prompt: str) -> StrategyOutput:
        return await generate_strategy(concept_prompt, self.text_adapter)

    async def produce_copy(self, creative_brief: str) -> CopyOutput:
        return await generate_copy(creative_brief, self.text_adapter)

    async def produce_visuals(
        self, brand_name: str, creative_brief: str, sample_ad_copy: str,
    ) -> VisualsOutput:
        return await generate_visuals(
            brand_name,
            creative_brief,
            sample_ad_copy,
            text_adapter=self.text_adapter,
            client=self.client,
            image_model=settings.models.image_gen,
            palette_size=settings.pipeline.palette_size,
            marketing_image_count=settings.pipeline.marketing_image_count,
        )

    async def produce_video(
        self,
        video_prompt: str,
        seed_image: bytes,
        progress: ProgressChannel,
        *,
        cancel_token: Optional[CancellationToken] = None,
        run_id: Optional[uuid.UUID] = None,
    ) -> VideoOutput:
        return await generate_video(
            video_prompt,
            seed_image,
            progress,
            client=self.client,
            file_manager=self._file_manager,
            run_id=run_id,
            clock=self._clock,
            cancel_token=cancel_token,
            http_client=self._http_client,
        )
