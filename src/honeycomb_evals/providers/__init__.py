"""Model provider abstraction for the evaluation harness."""

from honeycomb_evals.providers.base import ModelProvider
from honeycomb_evals.providers.factory import create_provider, create_providers

__all__ = ["ModelProvider", "create_provider", "create_providers"]
