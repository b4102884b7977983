"""Command line interface for the evaluation harness.

Subcommands:

* ``run``: evaluate the prompt set and print the run summary.
* ``summary``: print the latest (or a given) saved summary.
* ``compare``: compare providers/models across the run history.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from honeycomb_evals import __version__
from honeycomb_evals.config import EvalConfig, LLMProvider, LogLevel
from honeycomb_evals.exceptions import HarnessError
from honeycomb_evals.loader import filter_prompts, load_prompts
from honeycomb_evals.models import EvalSummary
from honeycomb_evals.providers import create_providers
from honeycomb_evals.reporting.comparison import provider_comparison_report
from honeycomb_evals.reporting.formatting import format_summary
from honeycomb_evals.reporting.reader import latest_summary_path, load_history, load_summary
from honeycomb_evals.reporting.recorder import EvalRecorder
from honeycomb_evals.runner import EvalRunner

logger = logging.getLogger(__name__)


def setup_logging(level: LogLevel) -> None:
    """Configure logging for the harness."""
    logging.basicConfig(
        level=level.value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _add_format_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format", choices=["terminal", "markdown"], default="terminal",
        help="Output format (default: terminal)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="honeycomb-evals",
        description="Evaluate MCP tool use with LLM-graded prompts",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        default=None,
        help="Logging level (default: from config or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run all evaluations")
    run_parser.add_argument("--prompts-dir", type=Path, default=None, help="Prompt directory")
    run_parser.add_argument("--results-dir", type=Path, default=None, help="Results directory")
    run_parser.add_argument(
        "--prompt", action="append", dest="prompt_ids", default=None,
        help="Only run this prompt id (repeatable)",
    )
    run_parser.add_argument(
        "--concurrency", type=int, default=None,
        help="Evaluations in flight per provider/model",
    )
    run_parser.add_argument(
        "--server-command", default=None,
        help="Command line that starts the MCP server",
    )
    run_parser.add_argument(
        "--provider", action="append", dest="providers", default=None,
        choices=[provider.value for provider in LLMProvider],
        help="Provider to evaluate (repeatable, default: one per API key)",
    )
    _add_format_arg(run_parser)

    summary_parser = subparsers.add_parser("summary", help="Show a saved run summary")
    summary_parser.add_argument(
        "--file", type=Path, default=None,
        help="Summary file (default: latest in the results directory)",
    )
    _add_format_arg(summary_parser)

    compare_parser = subparsers.add_parser(
        "compare", help="Compare scores across providers/models",
    )
    compare_parser.add_argument("--prompt", default=None, help="Filter by prompt id")
    compare_parser.add_argument(
        "--last", type=int, default=10,
        help="Use last N records per provider group (default: 10)",
    )
    compare_parser.add_argument(
        "--file", type=Path, default=None,
        help="Path to eval_history.jsonl (default: from config)",
    )
    _add_format_arg(compare_parser)

    return parser


def _config_overrides(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.command == "run":
        if args.prompts_dir is not None:
            overrides["prompts_dir"] = args.prompts_dir
        if args.results_dir is not None:
            overrides["results_dir"] = args.results_dir
        if args.concurrency is not None:
            overrides["concurrency"] = args.concurrency
        if args.server_command is not None:
            overrides["server_command"] = args.server_command
        if args.providers:
            overrides["llm_providers"] = args.providers
    return overrides


async def run_evaluations(config: EvalConfig, prompt_ids: list[str] | None) -> EvalSummary:
    """Load prompts, run every provider/model and persist the results."""
    prompts = filter_prompts(load_prompts(config.prompts_dir), prompt_ids)
    runner = EvalRunner(
        config=config,
        providers=create_providers(config),
        prompts=prompts,
        recorder=EvalRecorder(config.results_dir, config.history_path),
    )
    logger.info("Starting evaluation run...")
    return await runner.run_all()


def main(argv: list[str] | None = None) -> int:
    """Entry point for the harness CLI."""
    args = build_parser().parse_args(argv)
    config = EvalConfig(**_config_overrides(args))
    setup_logging(config.log_level)

    if args.command == "run":
        try:
            summary = asyncio.run(run_evaluations(config, args.prompt_ids))
        except (HarnessError, OSError) as e:
            logger.error(f"Evaluation run failed: {e}")
            return 1
        print(format_summary(summary, fmt=args.format))
        return 0

    if args.command == "summary":
        path = args.file or latest_summary_path(config.results_dir)
        summary = load_summary(path) if path else None
        if summary is None:
            print("No eval summary found.")
            return 1
        print(format_summary(summary, fmt=args.format))
        return 0

    records = load_history(args.file or config.history_path)
    print(provider_comparison_report(records, prompt_id=args.prompt, last_n=args.last, fmt=args.format))
    return 0


if __name__ == "__main__":
    sys.exit(main())
