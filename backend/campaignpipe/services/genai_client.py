"""google-genai client wrapper and shared transient-error retry policy.

Supports both the Gemini Developer API (API key) and Vertex AI
(Application Default Credentials), selected by settings.google_cloud.

Usage:
    from campaignpipe.services.genai_client import get_genai_client, transient_retry

    client = get_genai_client()

    @transient_retry()
    async def _call(client):
        ...
"""

import logging
import os
from pathlib import Path
from typing import Optional

import httpx
from dotenv import load_dotenv
from google import genai
from google.genai.errors import ClientError, ServerError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from campaignpipe.config import settings
from campaignpipe.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Load .env for GEMINI_API_KEY / GOOGLE_APPLICATION_CREDENTIALS
load_dotenv(Path.cwd() / ".env")

# Client cache keyed by credential identity
_clients: dict[str, genai.Client] = {}


def resolve_api_key() -> Optional[str]:
    """Return the configured API key, falling back to the standard env vars."""
    return (
        settings.google_cloud.api_key
        or os.getenv("GEMINI_API_KEY")
        or os.getenv("GOOGLE_API_KEY")
    )


def get_genai_client() -> genai.Client:
    """Get or create the google-genai client for the configured backend.

    Returns:
        genai.Client: Cached client instance

    Raises:
        ConfigurationError: If neither an API key nor a Vertex AI project is set
    """
    cfg = settings.google_cloud

    if cfg.use_vertex_ai:
        if not cfg.project_id:
            raise ConfigurationError(
                "Vertex AI mode requires google_cloud.project_id "
                "(CAMPAIGNPIPE_GOOGLE_CLOUD__PROJECT_ID)"
            )
        cache_key = f"vertex:{cfg.project_id}:{cfg.location}"
        if cache_key not in _clients:
            _clients[cache_key] = genai.Client(
                vertexai=True,
                project=cfg.project_id,
                location=cfg.location,
            )
            logger.info("Created Vertex AI client (%s, %s)", cfg.project_id, cfg.location)
        return _clients[cache_key]

    api_key = resolve_api_key()
    if not api_key:
        raise ConfigurationError(
            "No Gemini API key: set GEMINI_API_KEY or CAMPAIGNPIPE_GOOGLE_CLOUD__API_KEY"
        )
    cache_key = f"key:{api_key}"
    if cache_key not in _clients:
        _clients[cache_key] = genai.Client(api_key=api_key)
        logger.info("Created Gemini client (key ...%s)", api_key[-4:])
    return _clients[cache_key]


def is_retriable(exc: BaseException) -> bool:
    """Return True only for transient errors worth retrying (429, 5xx, network)."""
    if isinstance(exc, ServerError):
        return True
    if isinstance(exc, ClientError):
        return getattr(exc, "code", 0) == 429
    # httpx transport errors (connect, read timeout, protocol) are not OSErrors
    if isinstance(exc, (ConnectionError, TimeoutError, OSError, httpx.TransportError)):
        return True
    return False


def transient_retry():
    """Build the tenacity retry decorator applied to every generation call.

    Attempts and base delay come from settings.pipeline; only errors
    accepted by is_retriable are retried, everything else propagates on the
    first failure.
    """
    return retry(
        stop=stop_after_attempt(settings.pipeline.retry_max_attempts),
        wait=wait_exponential(
            multiplier=settings.pipeline.retry_base_delay, min=settings.pipeline.retry_base_delay, max=120,
        ) + wait_random(0, 2),
        retry=retry_if_exception(is_retriable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
