"""LLM provider abstraction layer.

Provides a unified async interface for structured text generation.

Usage:
    from campaignpipe.services.llm import get_adapter, LLMAdapter

    adapter = get_adapter("gemini-2.5-flash")
    result = await adapter.generate_text(prompt, MySchema)
"""

import logging

from campaignpipe.services.llm.base import LLMAdapter
from campaignpipe.services.llm.gemini_adapter import GeminiAdapter

logger = logging.getLogger(__name__)


def get_adapter(model_id: str, client=None) -> LLMAdapter:
    """Return the text adapter for the given model ID.

    Args:
        model_id: Model identifier string (e.g., "gemini-2.5-flash").
        client: Optional genai.Client shared with the other capabilities.

    Returns:
        Configured LLMAdapter instance ready for use.

    Raises:
        ValueError: If the model ID is not a Gemini model.
    """
    if not model_id.startswith("gemini-"):
        raise ValueError(f"Unsupported text model: {model_id}")
    logger.debug("Routing %s to GeminiAdapter", model_id)
    return GeminiAdapter(model_id=model_id, client=client)


__all__ = ["LLMAdapter", "GeminiAdapter", "get_adapter"]
