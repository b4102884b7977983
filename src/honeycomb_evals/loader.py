"""Prompt loading from a directory of JSON or YAML files."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from honeycomb_evals.models import Prompt

logger = logging.getLogger(__name__)

PROMPT_SUFFIXES = (".json", ".yaml", ".yml")


def _read(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def load_prompt_file(path: Path) -> list[Prompt]:
    """Load the prompt (or list of prompts) held by one file.

    Raises:
        ValueError: If the file does not decode to an object or a list.
        pydantic.ValidationError: If a prompt is malformed.
    """
    data = _read(path)
    if isinstance(data, dict):
        return [Prompt.model_validate(data)]
    if isinstance(data, list):
        return [Prompt.model_validate(item) for item in data]
    raise ValueError(f"{path.name} must contain a prompt object or a list of prompts")


def load_prompts(directory: Path) -> list[Prompt]:
    """Load every prompt file in a directory, sorted by file name.

    Malformed files are logged and skipped.
    """
    if not directory.is_dir():
        logger.warning(f"Prompt directory {directory} does not exist")
        return []

    prompts: list[Prompt] = []
    for path in sorted(directory.iterdir()):
        if path.suffix not in PROMPT_SUFFIXES or not path.is_file():
            continue
        try:
            prompts.extend(load_prompt_file(path))
        except (json.JSONDecodeError, yaml.YAMLError, ValidationError, ValueError) as e:
            logger.error(f"Error parsing {path.name}: {e}")

    logger.info(f"Loaded {len(prompts)} prompts from {directory}")
    return prompts


def filter_prompts(prompts: list[Prompt], ids: Iterable[str] | None) -> list[Prompt]:
    """Keep only the prompts whose id is requested; all when ids is empty."""
    wanted = set(ids or ())
    if not wanted:
        return prompts
    missing = wanted - {p.id for p in prompts}
    if missing:
        logger.warning(f"Requested prompts not found: {', '.join(sorted(missing))}")
    return [p for p in prompts if p.id in wanted]
