"""Marketing copy generation from the creative brief."""

import logging

from campaignpipe.schemas.campaign import CopyOutput
from campaignpipe.services.llm import LLMAdapter

logger = logging.getLogger(__name__)

COPY_PROMPT = (
    "Based on this creative brief, generate compelling marketing copy. "
    "Include two distinct ad copy variations (title and body), three social media "
    "captions, and a short blog post (title and content).\n\nBrief: {brief}"
)


async def generate_copy(creative_brief: str, text_adapter: LLMAdapter) -> CopyOutput:
    """Write ad copy, social captions and a blog post for the brief."""
    copy = await text_adapter.generate_text(
        COPY_PROMPT.format(brief=creative_brief),
        CopyOutput,
    )
    logger.info(
        f"Copy generated: {len(copy.ad_copy)} ad(s), "
        f"{len(copy.social_media_captions)} caption(s)"
    )
    return copy
