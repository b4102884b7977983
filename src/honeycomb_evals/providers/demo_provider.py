"""Offline provider used when no API key is configured."""

from __future__ import annotations

import logging

from honeycomb_evals.config import LLMProvider
from honeycomb_evals.providers.base import ModelProvider

logger = logging.getLogger(__name__)

DEMO_VERDICT = (
    "SCORE: 1\nPASSED: true\n"
    "REASONING: Demo provider: no model was consulted, the verdict is a placeholder."
)

DEMO_DONE = (
    "```json\n"
    '{ "done": true, "explanation": "Demo provider: no model was consulted." }\n'
    "```"
)


class DemoProvider(ModelProvider):
    """Returns canned replies so a run can be exercised end to end offline.

    Token usage is estimated at four characters per token.
    """

    name = LLMProvider.DEMO.value
    models = ["demo-model"]

    async def run_prompt(self, prompt: str, model: str) -> str:
        logger.debug(f"Running demo prompt with model {model}")
        # Conversation prompts describe the done protocol; grading prompts do not.
        response = DEMO_DONE if '"done": true' in prompt else DEMO_VERDICT
        self._record_usage(len(prompt) // 4, len(response) // 4)
        return response
