"""Google GenAI model provider.

Covers Google Gemini via API key and Gemini on Vertex AI. Both use the
google-genai SDK; Vertex uses vertexai=True with project/location.
"""

from __future__ import annotations

import logging

from google import genai
from google.genai import errors, types

from honeycomb_evals.config import EvalConfig, LLMProvider
from honeycomb_evals.providers.base import (
    EVALUATION_SYSTEM_PROMPT,
    ModelProvider,
    error_verdict,
)

logger = logging.getLogger(__name__)


class GoogleProvider(ModelProvider):
    """Provider for Google Gemini (API key and Vertex AI)."""

    name = LLMProvider.GOOGLE_GENAI.value
    models = ["gemini-2.5-flash", "gemini-2.5-pro"]

    def __init__(self, config: EvalConfig, use_vertex: bool = False) -> None:
        super().__init__()
        if use_vertex:
            self.name = LLMProvider.GOOGLE_VERTEX.value
        self._temperature = config.judge_temperature
        self._max_tokens = config.judge_max_tokens
        self._client = self._create_client(config, use_vertex)

    @staticmethod
    def _create_client(config: EvalConfig, use_vertex: bool) -> genai.Client:
        """Create a Google GenAI client.

        Vertex mode uses an API key (Express mode) when one is configured,
        otherwise Application Default Credentials with a project ID.
        """
        if use_vertex:
            if config.google_api_key:
                return genai.Client(vertexai=True, api_key=config.google_api_key)
            if not config.vertex_project_id:
                raise ValueError(
                    "google-vertex provider requires an API key or vertex_project_id"
                )
            return genai.Client(
                vertexai=True,
                project=config.vertex_project_id,
                location=config.vertex_location,
            )
        return genai.Client(api_key=config.google_api_key)

    async def run_prompt(self, prompt: str, model: str) -> str:
        """Send a prompt to the Google GenAI API."""
        logger.debug(f"Running Google prompt with model {model}")
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=EVALUATION_SYSTEM_PROMPT,
                    temperature=self._temperature,
                    max_output_tokens=self._max_tokens,
                ),
            )
        except errors.APIError as e:
            logger.error(f"Google API error: {e}")
            return error_verdict("Google", e)

        usage = response.usage_metadata
        if usage:
            self._record_usage(usage.prompt_token_count, usage.candidates_token_count)
        return response.text or ""
