"""Factory functions for creating model providers.

Dispatches on LLMProvider enum values to instantiate the correct
provider implementation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from honeycomb_evals.config import LLMProvider

if TYPE_CHECKING:
    from honeycomb_evals.config import EvalConfig
    from honeycomb_evals.providers.base import ModelProvider

logger = logging.getLogger(__name__)


def create_provider(provider: LLMProvider, config: EvalConfig) -> ModelProvider:
    """Create a single model provider.

    Args:
        provider: Which provider to create.
        config: Evaluation configuration.

    Returns:
        A ModelProvider instance.

    Raises:
        ValueError: If the provider is not supported.
    """
    if provider == LLMProvider.OPENAI:
        from honeycomb_evals.providers.openai_provider import OpenAIProvider

        return OpenAIProvider(config)

    if provider in (LLMProvider.ANTHROPIC, LLMProvider.ANTHROPIC_VERTEX):
        from honeycomb_evals.providers.anthropic_provider import AnthropicProvider

        return AnthropicProvider(config, use_vertex=provider == LLMProvider.ANTHROPIC_VERTEX)

    if provider in (LLMProvider.GOOGLE_GENAI, LLMProvider.GOOGLE_VERTEX):
        from honeycomb_evals.providers.google_provider import GoogleProvider

        return GoogleProvider(config, use_vertex=provider == LLMProvider.GOOGLE_VERTEX)

    if provider == LLMProvider.DEMO:
        from honeycomb_evals.providers.demo_provider import DemoProvider

        return DemoProvider()

    raise ValueError(f"Unsupported LLM provider: {provider}")


def create_providers(config: EvalConfig) -> list[ModelProvider]:
    """Create the configured providers, or one per configured credential.

    An explicit ``llm_providers`` list wins; this is the only way to run the
    Vertex variants. Otherwise falls back to the offline demo provider when
    no credentials are set.
    """
    if config.llm_providers:
        names = ", ".join(p.value for p in config.llm_providers)
        logger.info(f"Using configured providers: {names}")
        return [create_provider(provider, config) for provider in config.llm_providers]

    providers: list[ModelProvider] = []

    if config.openai_api_key:
        providers.append(create_provider(LLMProvider.OPENAI, config))
        logger.info("Added OpenAI provider with API key")
    if config.anthropic_api_key:
        providers.append(create_provider(LLMProvider.ANTHROPIC, config))
        logger.info("Added Anthropic provider with API key")
    if config.google_api_key:
        providers.append(create_provider(LLMProvider.GOOGLE_GENAI, config))
        logger.info("Added Google provider with API key")

    if not providers:
        logger.warning("No API keys configured, using the offline demo provider")
        providers.append(create_provider(LLMProvider.DEMO, config))

    return providers
