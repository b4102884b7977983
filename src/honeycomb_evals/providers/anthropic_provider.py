"""Anthropic model provider.

Covers the direct Anthropic API and Anthropic on Vertex AI. Both use the
anthropic Python SDK; Vertex uses the AnthropicVertex client.
"""

from __future__ import annotations

import logging

from anthropic import AnthropicError, AsyncAnthropic, AsyncAnthropicVertex

from honeycomb_evals.config import EvalConfig, LLMProvider
from honeycomb_evals.providers.base import (
    EVALUATION_SYSTEM_PROMPT,
    ModelProvider,
    error_verdict,
)

logger = logging.getLogger(__name__)


class AnthropicProvider(ModelProvider):
    """Provider for Anthropic Claude (direct API and Vertex AI)."""

    name = LLMProvider.ANTHROPIC.value
    models = ["claude-3-5-haiku-latest", "claude-3-7-sonnet-latest", "claude-3-opus-latest"]

    def __init__(self, config: EvalConfig, use_vertex: bool = False) -> None:
        super().__init__()
        if use_vertex:
            self.name = LLMProvider.ANTHROPIC_VERTEX.value
        self._temperature = config.judge_temperature
        self._max_tokens = config.judge_max_tokens
        self._client = self._create_client(config, use_vertex)

    @staticmethod
    def _create_client(
        config: EvalConfig, use_vertex: bool
    ) -> AsyncAnthropic | AsyncAnthropicVertex:
        """Create an Anthropic async client."""
        if use_vertex:
            if not config.vertex_project_id:
                raise ValueError("vertex_project_id is required for anthropic-vertex provider")
            return AsyncAnthropicVertex(
                project_id=config.vertex_project_id,
                region=config.vertex_location,
            )
        return AsyncAnthropic(api_key=config.anthropic_api_key)

    async def run_prompt(self, prompt: str, model: str) -> str:
        """Send a prompt to the Anthropic messages API."""
        logger.debug(f"Running Anthropic prompt with model {model}")
        try:
            response = await self._client.messages.create(
                model=model,
                system=EVALUATION_SYSTEM_PROMPT,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except AnthropicError as e:
            logger.error(f"Anthropic API error: {e}")
            return error_verdict("Anthropic", e)

        if response.usage:
            self._record_usage(response.usage.input_tokens, response.usage.output_tokens)

        text_parts = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
        return "\n".join(text_parts)
