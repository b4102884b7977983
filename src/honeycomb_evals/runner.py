"""Evaluation orchestrator.

Runs every prompt against every selected provider/model, in batches of at
most ``concurrency`` concurrent evaluations, grades each with the judge,
and rolls the results up into a run summary.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from honeycomb_evals.config import EvalConfig
from honeycomb_evals.judge import Judge
from honeycomb_evals.models import (
    EvalMetrics,
    EvalResult,
    EvalSummary,
    Prompt,
    TokenUsage,
    Verdict,
    epoch_ms,
)
from honeycomb_evals.providers.base import ModelProvider
from honeycomb_evals.reporting.recorder import EvalRecorder
from honeycomb_evals.session import EvalSession, open_session
from honeycomb_evals.strategies import Conversation, execute, select_strategy

logger = logging.getLogger(__name__)

SessionFactory = Callable[[EvalConfig], AbstractAsyncContextManager[EvalSession]]


def batched(prompts: Sequence[Prompt], size: int) -> list[list[Prompt]]:
    """Split prompts into consecutive batches of at most ``size``."""
    return [list(prompts[i : i + size]) for i in range(0, len(prompts), size)]


def failed_result(
    prompt: Prompt,
    provider: ModelProvider,
    model: str,
    error: BaseException,
    start_time: int,
) -> EvalResult:
    """Result standing in for an evaluation that raised."""
    end_time = epoch_ms()
    message = str(error) or type(error).__name__
    return EvalResult(
        id=prompt.id,
        prompt=prompt,
        tool_response={"error": message},
        tool_calls=[],
        validation=Verdict(
            passed=False,
            score=0.0,
            reasoning=f"Tool execution failed with error: {message}",
        ),
        metrics=EvalMetrics(
            start_time=start_time,
            end_time=end_time,
            latency_ms=end_time - start_time,
            token_usage=TokenUsage(),
            tool_call_count=0,
        ),
        provider=provider.name,
        model=model,
    )


async def evaluate(
    session: EvalSession,
    prompt: Prompt,
    provider: ModelProvider,
    model: str,
) -> EvalResult:
    """Run and grade one prompt. Never raises.

    Any exception from strategy selection, execution or grading is turned
    into a failed result with a zero score.
    """
    start_time = epoch_ms()
    try:
        strategy = select_strategy(
            prompt,
            default_max_steps=session.config.max_steps,
            default_environment=session.config.environment,
        )
        execution = await execute(strategy, session, provider, model)
        end_time = epoch_ms()

        verdict = await Judge(provider, model).grade(
            prompt, execution.tool_calls, execution.single_response
        )
        token_usage = provider.token_usage()

        tool_calls = execution.tool_calls
        return EvalResult(
            id=prompt.id,
            prompt=prompt,
            tool_response=execution.single_response,
            tool_calls=tool_calls,
            validation=verdict,
            metrics=EvalMetrics(
                start_time=start_time,
                end_time=end_time,
                latency_ms=end_time - start_time,
                token_usage=token_usage,
                tool_call_count=len(tool_calls),
                step_count=len(tool_calls) if isinstance(strategy, Conversation) else None,
            ),
            provider=provider.name,
            model=model,
        )
    except Exception as e:
        logger.exception(f"Evaluation of {prompt.id} with {provider.name}/{model} failed")
        return failed_result(prompt, provider, model, e, start_time)


class EvalRunner:
    """Runs a prompt set across providers and models.

    The tool server session is opened once for the run and closed when it
    ends, however many evaluations failed.
    """

    def __init__(
        self,
        config: EvalConfig,
        providers: list[ModelProvider],
        prompts: list[Prompt],
        recorder: EvalRecorder | None = None,
        session_factory: SessionFactory = open_session,
    ) -> None:
        self._config = config
        self._providers = providers
        self._prompts = prompts
        self._recorder = recorder
        self._session_factory = session_factory

    @property
    def prompts(self) -> list[Prompt]:
        return self._prompts

    @asynccontextmanager
    async def session(self) -> AsyncIterator[EvalSession]:
        """Open the run session and guarantee teardown."""
        async with self._session_factory(self._config) as session:
            logger.info(f"Opened evaluation session {session.run_id}")
            try:
                yield session
            finally:
                logger.info(f"Closing evaluation session {session.run_id}")

    async def run_model(
        self,
        session: EvalSession,
        provider: ModelProvider,
        model: str,
    ) -> list[EvalResult]:
        """Evaluate every prompt for one provider/model.

        A batch must fully resolve before the next one starts.
        """
        results: list[EvalResult] = []
        for batch in batched(self._prompts, self._config.concurrency):
            batch_results = await asyncio.gather(
                *(evaluate(session, prompt, provider, model) for prompt in batch)
            )
            results.extend(batch_results)
        return results

    async def run_all(self) -> EvalSummary:
        """Evaluate every combination, then summarize and persist."""
        results: list[EvalResult] = []
        selected: dict[str, list[str]] = {}

        async with self.session() as session:
            for provider in self._providers:
                models = self._config.models_for(provider.name, provider.models)
                selected[provider.name] = models
                for model in models:
                    logger.info(
                        f"Running evaluations with provider: {provider.name}, model: {model}"
                    )
                    results.extend(await self.run_model(session, provider, model))

            summary = EvalSummary.from_results(
                results,
                run_id=session.run_id,
                metadata={
                    "providers": [p.name for p in self._providers],
                    "models": selected,
                    "concurrency": self._config.concurrency,
                },
            )

        if self._recorder is not None:
            self._recorder.save(summary)

        logger.info(
            f"Evaluation complete: {summary.passed}/{summary.total_tests} passed "
            f"({summary.success_rate:.1%})"
        )
        return summary
