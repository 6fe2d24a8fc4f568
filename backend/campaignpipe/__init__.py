"""Campaign Pipeline - AI-powered multi-stage marketing campaign generation.

This module provides startup validation to ensure credentials for the
generative models are configured before pipeline execution begins.
Call validate_credentials() during application startup.
"""

import logging

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def validate_credentials() -> None:
    """Validate that a Gemini API key or a Vertex AI project is configured.

    This function should be called during application startup to fail fast
    with clear setup instructions if credentials are missing.

    Raises:
        RuntimeError: If no usable credentials are configured.
    """
    from campaignpipe.config import settings
    from campaignpipe.services.genai_client import resolve_api_key

    cfg = settings.google_cloud
    if cfg.use_vertex_ai:
        if cfg.project_id:
            logger.info(f"Using Vertex AI project {cfg.project_id} ({cfg.location})")
            return
        raise RuntimeError(
            "Vertex AI mode is enabled but no project is configured.\n"
            "Set CAMPAIGNPIPE_GOOGLE_CLOUD__PROJECT_ID or google_cloud.project_id in config.yaml\n"
            "and authenticate with: gcloud auth application-default login"
        )

    if resolve_api_key():
        logger.info("Using Gemini Developer API key")
        return
    raise RuntimeError(
        "No Gemini API key found.\n"
        "Set GEMINI_API_KEY (or CAMPAIGNPIPE_GOOGLE_CLOUD__API_KEY) in the environment or .env,\n"
        "or enable Vertex AI with CAMPAIGNPIPE_GOOGLE_CLOUD__USE_VERTEX_AI=true."
    )
