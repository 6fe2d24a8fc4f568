"""Abstract base class for structured-output text adapters.

Defines the async interface the text stages (strategy, copy, palette) use
to obtain validated Pydantic models from a language model.
"""

from abc import ABC, abstractmethod
from typing import Optional, Type, TypeVar

from pydantic import BaseModel

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class LLMAdapter(ABC):
    """Abstract base class for LLM provider adapters.

    Implementations return a validated instance of the caller-supplied
    schema class.
    """

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        temperature: float = 0.7,
        system_prompt: Optional[str] = None,
    ) -> SchemaT:
        """Generate structured text output from a prompt.

        Args:
            prompt: The user prompt to send to the model.
            schema: Pydantic model class defining the expected output structure.
            temperature: Sampling temperature (0.0-1.0). Lower = more deterministic.
            system_prompt: Optional system/instruction prompt.

        Returns:
            Validated instance of the supplied schema class.
        """
        ...
