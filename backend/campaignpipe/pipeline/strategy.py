"""Brand strategy generation using Gemini structured output.

Turns the user's one-line concept into a brand name, tagline, market
research, brand identity and the creative brief every later stage builds on.
"""

import logging

from campaignpipe.schemas.campaign import StrategyOutput
from campaignpipe.services.llm import LLMAdapter

logger = logging.getLogger(__name__)

STRATEGY_PROMPT = (
    'Generate a complete marketing strategy for the following concept: "{concept}". '
    "Provide a brand name, tagline, market research, brand identity, and a creative brief."
)


async def generate_strategy(concept_prompt: str, text_adapter: LLMAdapter) -> StrategyOutput:
    """Generate the campaign strategy for a concept.

    Args:
        concept_prompt: The user's campaign idea
        text_adapter: Structured-output adapter for the text model

    Returns:
        Validated StrategyOutput
    """
    strategy = await text_adapter.generate_text(
        STRATEGY_PROMPT.format(concept=concept_prompt.strip()),
        StrategyOutput,
    )
    logger.info(f"Strategy generated for brand '{strategy.brand_name}'")
    return strategy
