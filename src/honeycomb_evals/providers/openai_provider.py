"""OpenAI-compatible model provider.

Covers OpenAI, Azure OpenAI, and vLLM endpoints, all through the same
OpenAI Python client with different base URLs.
"""

from __future__ import annotations

import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from honeycomb_evals.config import EvalConfig, LLMProvider
from honeycomb_evals.providers.base import (
    EVALUATION_SYSTEM_PROMPT,
    ModelProvider,
    error_verdict,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(ModelProvider):
    """Provider for OpenAI-compatible chat completion APIs."""

    name = LLMProvider.OPENAI.value
    models = ["gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo"]

    def __init__(self, config: EvalConfig) -> None:
        super().__init__()
        self._temperature = config.judge_temperature
        self._max_tokens = config.judge_max_tokens
        self._client = self._create_client(config)

    @staticmethod
    def _create_client(config: EvalConfig) -> AsyncOpenAI:
        """Create an OpenAI-compatible async client."""
        kwargs: dict[str, Any] = {"api_key": config.openai_api_key}
        if config.openai_base_url:
            kwargs["base_url"] = config.openai_base_url
        return AsyncOpenAI(**kwargs)

    async def run_prompt(self, prompt: str, model: str) -> str:
        """Send a prompt to an OpenAI-compatible endpoint."""
        logger.debug(f"Running OpenAI prompt with model {model}")
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": EVALUATION_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {e}")
            return error_verdict("OpenAI", e)

        if response.usage:
            self._record_usage(response.usage.prompt_tokens, response.usage.completion_tokens)
        return response.choices[0].message.content or ""
