"""
Text-generation backends.

The generator only depends on the TextGenerationBackend protocol; the
Gemini adapter below is the production implementation.
"""

from typing import Protocol, runtime_checkable

from google import genai
from google.genai import types

from travel_deck.config import ModelProfile, config


@runtime_checkable
class TextGenerationBackend(Protocol):
    """Anything that turns a system and user prompt into text."""

    service_name: str

    async def generate(
        self, system_prompt: str, user_prompt: str, profile: ModelProfile
    ) -> str: ...


class GeminiBackend:
    """Text generation through the Gemini API."""

    service_name = "gemini"

    def __init__(self, api_key: str | None = None):
        """
        Initialize the backend.

        Args:
            api_key: Gemini API key; defaults to GEMINI_API_KEY from configuration
        """
        self.client = genai.Client(api_key=api_key or config.api.gemini_api_key)

    async def generate(
        self, system_prompt: str, user_prompt: str, profile: ModelProfile
    ) -> str:
        """
        Generate a completion for one prompt pair.

        Args:
            system_prompt: System instruction
            user_prompt: User message
            profile: Model, temperature and token limit to use

        Returns:
            The response text, empty if the model returned none
        """
        contents = [
            types.Content(
                role="user",
                parts=[types.Part.from_text(text=user_prompt)],
            )
        ]

        generation_config = types.GenerateContentConfig(
            temperature=profile.temperature,
            max_output_tokens=profile.max_tokens,
            system_instruction=system_prompt,
        )

        response = await self.client.aio.models.generate_content(
            model=profile.name,
            contents=contents,
            config=generation_config,
        )

        return response.text or ""
