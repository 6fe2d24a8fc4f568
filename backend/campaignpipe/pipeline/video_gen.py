"""Video ad generation using Veo with a seed image.

This module implements the long-running video capability:
- Submit a Veo job seeded with the first marketing image
- Poll the long-running operation through PollingOperation
- Treat content filtering, operation errors, a missing artifact and a
  failed download as terminal (never retried)
- Save the MP4 through FileManager and return a resolvable file URI

Usage:
    from campaignpipe.pipeline.video_gen import generate_video

    video = await generate_video(prompt, seed_image, progress, client=client)
"""

import logging
import uuid
from typing import Optional

import httpx
from google.genai import types

from campaignpipe.config import settings
from campaignpipe.errors import (
    VideoArtifactMissingError,
    VideoContentFilteredError,
    VideoDownloadError,
    VideoOperationError,
)
from campaignpipe.orchestrator.cancellation import CancellationToken
from campaignpipe.orchestrator.polling import Clock, PollingOperation
from campaignpipe.orchestrator.progress import ProgressChannel
from campaignpipe.schemas.campaign import VideoOutput
from campaignpipe.services.file_manager import FileManager
from campaignpipe.services.genai_client import resolve_api_key, transient_retry

logger = logging.getLogger(__name__)

INITIATING_MESSAGE = "Initiating video generation..."

VIDEO_PROMPT_TEMPLATE = (
    'Create a short, 10-second animated video ad based on this prompt: "{prompt}". '
    "The style should be modern and energetic."
)

_POLICY_KEYWORDS = (
    "violat", "usage guidelines", "safety", "content polic", "responsible ai",
)


def sniff_image_mime_type(data: bytes) -> str:
    """Return the MIME type of PNG/JPEG/WebP bytes, defaulting to PNG."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/png"


def _error_message(error) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(getattr(error, "message", None) or error)


def _is_content_policy_operation(operation) -> bool:
    """Check if a completed Veo operation was rejected or filtered by content policy."""
    response = getattr(operation, "response", None)
    if response is not None:
        count = getattr(response, "rai_media_filtered_count", None)
        if count and count > 0:
            return True

    error = getattr(operation, "error", None)
    if error:
        error_str = _error_message(error).lower()
        return any(kw in error_str for kw in _POLICY_KEYWORDS)

    return False


@transient_retry()
async def _submit_video_job(
    client, video_model: str, prompt: str, seed_image: bytes, aspect_ratio: str,
):
    """Submit a Veo video generation job with retry on transient 429/5xx errors."""
    return await client.aio.models.generate_videos(
        model=video_model,
        prompt=VIDEO_PROMPT_TEMPLATE.format(prompt=prompt),
        image=types.Image(image_bytes=seed_image, mime_type=sniff_image_mime_type(seed_image)),
        config=types.GenerateVideosConfig(
            number_of_videos=1,
            aspect_ratio=aspect_ratio,
        ),
    )


@transient_retry()
async def _poll_operation_get(client, operation):
    """Fetch operation status with retry on transient HTTP errors (429/5xx)."""
    return await client.aio.operations.get(operation=operation)


def _download_url(uri: str) -> str:
    if uri.startswith("gs://"):
        return uri.replace("gs://", "https://storage.googleapis.com/", 1)
    return uri


async def download_video(
    uri: str,
    *,
    api_key: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: float = 120.0,
) -> bytes:
    """Download the finished video.

    Args:
        uri: Artifact URI from the operation response (https:// or gs://)
        api_key: Gemini API key sent as x-goog-api-key, when available
        http_client: Optional shared client; a short-lived one is used otherwise
        timeout: Request timeout in seconds for the short-lived client

    Returns:
        Video bytes

    Raises:
        VideoDownloadError: If the server answers with a non-success status
    """
    url = _download_url(uri)
    headers = {"x-goog-api-key": api_key} if api_key and not uri.startswith("gs://") else {}

    if http_client is not None:
        response = await http_client.get(url, headers=headers, follow_redirects=True)
    else:
        async with httpx.AsyncClient(timeout=timeout) as owned_client:
            response = await owned_client.get(url, headers=headers, follow_redirects=True)

    if not response.is_success:
        raise VideoDownloadError(
            f"Failed to download video. Status: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )
    return response.content


async def generate_video(
    video_prompt: str,
    seed_image: bytes,
    progress: ProgressChannel,
    *,
    client,
    file_manager: Optional[FileManager] = None,
    run_id: Optional[uuid.UUID] = None,
    clock: Optional[Clock] = None,
    cancel_token: Optional[CancellationToken] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    video_model: Optional[str] = None,
    poll_interval: Optional[float] = None,
    poll_max: Optional[int] = None,
) -> VideoOutput:
    """Generate a video ad and resolve it to a local artifact.

    Args:
        video_prompt: Prompt derived from brand name and second ad copy
        seed_image: First marketing image, used as the opening frame
        progress: Channel receiving human-readable progress messages
        client: google-genai client instance
        file_manager: Artifact storage (defaults to settings.storage.tmp_dir)
        run_id: Directory key for the artifact (random when omitted)
        clock: Delay capability between polls
        cancel_token: Stops polling when triggered
        http_client: Optional httpx client for the download
        video_model: Override settings.models.video_gen
        poll_interval: Override settings.pipeline.video_poll_interval
        poll_max: Override settings.pipeline.video_poll_max

    Returns:
        VideoOutput pointing at the saved MP4

    Raises:
        PollingTerminalError: Content filtered, operation error, missing
            artifact, failed download or poll timeout
    """
    model = video_model or settings.models.video_gen
    interval = settings.pipeline.video_poll_interval if poll_interval is None else poll_interval
    max_polls = settings.pipeline.video_poll_max if poll_max is None else poll_max
    artifact_id = run_id or uuid.uuid4()

    async def submit():
        logger.info(f"Submitting Veo job ({model}) for run {artifact_id}")
        return await _submit_video_job(
            client, model, video_prompt, seed_image, settings.pipeline.video_aspect_ratio,
        )

    async def refresh(operation):
        return await _poll_operation_get(client, operation)

    async def resolve(operation) -> VideoOutput:
        if _is_content_policy_operation(operation):
            reasons = getattr(getattr(operation, "response", None), "rai_media_filtered_reasons", None)
            detail = f": {'; '.join(reasons)}" if reasons else ""
            raise VideoContentFilteredError(f"Video was filtered by responsible AI checks{detail}")

        error = getattr(operation, "error", None)
        if error:
            raise VideoOperationError(f"Video generation failed: {_error_message(error)}")

        response = getattr(operation, "response", None)
        generated = list(getattr(response, "generated_videos", None) or [])
        video = generated[0].video if generated else None
        if video is None:
            raise VideoArtifactMissingError()

        if video.video_bytes:
            data = video.video_bytes
        elif video.uri:
            data = await download_video(
                video.uri,
                api_key=None if settings.google_cloud.use_vertex_ai else resolve_api_key(),
                http_client=http_client,
                timeout=settings.pipeline.download_timeout,
            )
        else:
            raise VideoArtifactMissingError()

        path = (file_manager or FileManager()).save_video(artifact_id, data)
        logger.info(f"Video saved to {path} ({len(data)} bytes)")
        return VideoOutput(
            video_url=path.as_uri(),
            local_path=str(path),
            source_uri=video.uri,
            mime_type=video.mime_type or "video/mp4",
        )

    progress.publish(INITIATING_MESSAGE)
    poller = PollingOperation(
        refresh=refresh,
        is_done=lambda operation: bool(operation.done),
        resolve=resolve,
        progress=progress,
        clock=clock,
        interval=interval,
        max_polls=max_polls,
        cancel_token=cancel_token,
    )
    return await poller.run(submit)
