"""Gemini adapter for the LLM abstraction layer.

Wraps the google-genai client with structured JSON output. Transient API
errors are retried with the shared tenacity policy; schema violations are
not.
"""

import logging
from typing import Optional, Type

from google.genai import types as genai_types

from campaignpipe.services.genai_client import get_genai_client, transient_retry
from campaignpipe.services.llm.base import LLMAdapter, SchemaT

logger = logging.getLogger(__name__)


class GeminiAdapter(LLMAdapter):
    """LLM adapter backed by Gemini (google-genai SDK).

    Supports structured JSON output via response_schema using the cached
    client from genai_client.py.
    """

    def __init__(self, model_id: str, client=None) -> None:
        """Initialize adapter for the given Gemini model.

        Args:
            model_id: Gemini model identifier (e.g., "gemini-2.5-flash").
            client: Optional genai.Client; resolved lazily when omitted.
        """
        self._model_id = model_id
        self._client = client

    @property
    def model_id(self) -> str:
        return self._model_id

    async def generate_text(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        temperature: float = 0.7,
        system_prompt: Optional[str] = None,
    ) -> SchemaT:
        """Generate structured text using Gemini.

        Args:
            prompt: User prompt to send.
            schema: Pydantic model class for structured output.
            temperature: Sampling temperature.
            system_prompt: Optional system instruction.

        Returns:
            Validated Pydantic model instance.

        Raises:
            ValueError: If the model returns an empty response.
            pydantic.ValidationError: If the response does not match the schema.
        """
        client = self._client or get_genai_client()
        config = genai_types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type="application/json",
            response_schema=schema,
        )
        if system_prompt:
            config.system_instruction = system_prompt

        @transient_retry()
        async def _call():
            return await client.aio.models.generate_content(
                model=self._model_id,
                contents=prompt,
                config=config,
            )

        response = await _call()
        if not response.text:
            raise ValueError(f"{self._model_id} returned an empty response for {schema.__name__}")
        logger.debug("%s produced %d chars for %s", self._model_id, len(response.text), schema.__name__)
        return schema.model_validate_json(response.text)
