"""Extraction of JSON payloads from free-text model replies."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


@dataclass(frozen=True)
class Parsed:
    """A JSON value was found and decoded."""

    value: Any


@dataclass(frozen=True)
class ParseFailure:
    """No usable JSON payload was found."""

    reason: str


ParseResult = Parsed | ParseFailure


def extract_json_block(text: str | None) -> ParseResult:
    """Decode the first fenced code block of a reply as JSON.

    Never raises; failures are returned as ParseFailure.
    """
    if not text:
        return ParseFailure("LLM response was empty")

    match = FENCED_BLOCK.search(text)
    if match is None:
        return ParseFailure("LLM response did not contain valid JSON")

    try:
        return Parsed(json.loads(match.group(1)))
    except json.JSONDecodeError as e:
        return ParseFailure(f"Could not parse JSON from LLM response: {e}")
