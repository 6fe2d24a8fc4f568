"""Pydantic schemas for campaign stage outputs.

The text-stage models double as structured-output constraints passed to
Gemini via response_schema, so every field carries a description.
"""

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")


def normalize_hex_color(value: str) -> str:
    """Normalize a hex color to upper-case ``#RRGGBB``.

    Raises:
        ValueError: If the value is not a 3- or 6-digit hex color.
    """
    match = _HEX_COLOR.match(value.strip())
    if not match:
        raise ValueError(f"Not a hex color: {value!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits.upper()}"


class StrategyOutput(BaseModel):
    """Brand strategy produced from the initial concept."""

    brand_name: str = Field(description="The name of the new brand.")
    tagline: str = Field(description="A catchy tagline for the brand.")
    market_research: str = Field(
        description="A summary of the target market and competitors."
    )
    brand_identity: str = Field(
        description="The brand's personality, values, and voice."
    )
    creative_brief: str = Field(
        description="A detailed brief for the creative team."
    )


class AdCopy(BaseModel):
    """A single ad-copy variation."""

    title: str
    body: str


class BlogPost(BaseModel):
    title: str
    content: str


class CopyOutput(BaseModel):
    """Marketing copy written from the creative brief."""

    ad_copy: list[AdCopy] = Field(
        description="Two distinct ad copy variations, each with a title and body."
    )
    social_media_captions: list[str] = Field(
        description="Three social media captions."
    )
    blog_post: BlogPost = Field(description="A short blog post with title and content.")


class PaletteOutput(BaseModel):
    """Structured response for the color palette request."""

    palette: list[str] = Field(description="An array of 5 hex color codes.")


class VisualsOutput(BaseModel):
    """Brand visuals: palette, logo and marketing images."""

    color_palette: list[str]
    logo: bytes
    marketing_images: list[bytes]

    @field_validator("color_palette")
    @classmethod
    def validate_palette(cls, v: list[str]) -> list[str]:
        return [normalize_hex_color(color) for color in v]


class VideoOutput(BaseModel):
    """Resolved reference to the generated video ad."""

    video_url: str
    local_path: Optional[str] = None
    source_uri: Optional[str] = None
    mime_type: str = "video/mp4"


class CampaignData(BaseModel):
    """Accumulated output of a run; each field is set when its stage completes."""

    strategy: Optional[StrategyOutput] = None
    copywriting: Optional[CopyOutput] = None
    visuals: Optional[VisualsOutput] = None
    video: Optional[VideoOutput] = None
