"""Brand visuals generation: color palette, logo and marketing images.

The palette request and the image requests are independent of each other,
so they are dispatched concurrently and joined. There is no partial
success: if any request fails the remaining ones are cancelled and the
failure propagates.
"""

import asyncio
import logging

from google.genai import types

from campaignpipe.errors import StructuralInvariantError
from campaignpipe.schemas.campaign import PaletteOutput, VisualsOutput, normalize_hex_color
from campaignpipe.services.genai_client import transient_retry
from campaignpipe.services.llm import LLMAdapter

logger = logging.getLogger(__name__)

PALETTE_PROMPT = (
    "Generate a {count}-color branding palette based on this creative brief: {brief}. "
    'The brand is called "{brand_name}". Provide hex codes.'
)

LOGO_PROMPT = (
    'A modern, minimalist logo for a brand called "{brand_name}". The logo should be '
    "clean, memorable, and reflect these values: {brief}. White background."
)

MARKETING_IMAGE_PROMPT = (
    'A vibrant, high-quality marketing photograph inspired by this ad copy: "{ad_copy}". '
    "The image should be visually appealing and suitable for social media."
)

ALTERNATIVE_IMAGE_PROMPT = (
    'An alternative marketing photograph for "{brand_name}" that captures the essence '
    'of this brief: "{brief}". Focus on a different angle or concept.'
)


@transient_retry()
async def _generate_image_from_text(client, prompt: str, image_model: str) -> bytes:
    """Generate an image from a text prompt using Gemini generate_content().

    Args:
        client: google-genai client instance
        prompt: Text description for image generation
        image_model: Model ID to use for generation

    Returns:
        Image data as bytes

    Raises:
        ValueError: If no image found in response
    """
    response = await client.aio.models.generate_content(
        model=image_model,
        contents=prompt,
        config=types.GenerateContentConfig(
            response_modalities=["IMAGE"],
        ),
    )

    if response.candidates:
        for part in response.candidates[0].content.parts or []:
            if part.inline_data and part.inline_data.data:
                return part.inline_data.data

    raise ValueError("No image generated in response")


async def _generate_palette(
    text_adapter: LLMAdapter, brand_name: str, brief: str, palette_size: int,
) -> list[str]:
    result = await text_adapter.generate_text(
        PALETTE_PROMPT.format(count=palette_size, brief=brief, brand_name=brand_name),
        PaletteOutput,
    )
    if len(result.palette) < palette_size:
        raise StructuralInvariantError(
            f"Palette has {len(result.palette)} color(s), expected {palette_size}"
        )
    return [normalize_hex_color(color) for color in result.palette[:palette_size]]


def build_image_prompts(
    brand_name: str, brief: str, ad_copy: str, marketing_image_count: int,
) -> list[str]:
    """Return [logo_prompt, marketing_prompt_0, ...] for the image fan-out.

    The first marketing image is inspired by the sample ad copy; any further
    images explore alternative angles on the brief.
    """
    prompts = [
        LOGO_PROMPT.format(brand_name=brand_name, brief=brief),
        MARKETING_IMAGE_PROMPT.format(ad_copy=ad_copy),
    ]
    for _ in range(marketing_image_count - 1):
        prompts.append(ALTERNATIVE_IMAGE_PROMPT.format(brand_name=brand_name, brief=brief))
    return prompts


async def generate_visuals(
    brand_name: str,
    brief: str,
    ad_copy: str,
    *,
    text_adapter: LLMAdapter,
    client,
    image_model: str,
    palette_size: int = 5,
    marketing_image_count: int = 2,
) -> VisualsOutput:
    """Generate the palette, logo and marketing images concurrently.

    Args:
        brand_name: Brand name from the strategy stage
        brief: Creative brief from the strategy stage
        ad_copy: Sample ad copy text ("title body") from the copy stage
        text_adapter: Structured-output adapter used for the palette
        client: google-genai client used for image generation
        image_model: Image model ID
        palette_size: Number of palette colors to request and keep
        marketing_image_count: Number of marketing images to generate

    Returns:
        VisualsOutput with palette, logo and marketing images

    Raises:
        Exception: The first failure among the concurrent requests
    """
    image_prompts = build_image_prompts(brand_name, brief, ad_copy, marketing_image_count)

    tasks = [
        asyncio.ensure_future(_generate_palette(text_adapter, brand_name, brief, palette_size)),
        *(
            asyncio.ensure_future(_generate_image_from_text(client, prompt, image_model))
            for prompt in image_prompts
        ),
    ]
    try:
        palette, logo, *marketing_images = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    logger.info(
        f"Visuals generated for '{brand_name}': {len(palette)} colors, "
        f"logo + {len(marketing_images)} marketing image(s)"
    )
    return VisualsOutput(
        color_palette=palette,
        logo=logo,
        marketing_images=marketing_images,
    )
