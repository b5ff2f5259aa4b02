"""Turn raw completion text into a strict JSON object.

The completion service regularly wraps its JSON in markdown fences, adds
prose around it, or drops separators between fields. This module repairs only
the malformation classes observed in practice; it is not a general JSON fixer.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from .errors import NoJsonFound, ParseFailure

EXCERPT_LIMIT = 200

KNOWN_KEYS = (
    "questionText",
    "options",
    "correctAnswer",
    "explanation",
    "difficulty",
    "questionType",
    "title",
    "content",
    "wordCount",
    "level",
    "topic",
    "summary",
)
_KEY_ALTERNATION = "|".join(KNOWN_KEYS)

FENCE_PATTERN = re.compile(r"^```[ \t]*(?:json)?[ \t]*\r?\n?(.*?)\r?\n?```$", re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class RepairRule:
    name: str
    pattern: re.Pattern
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


REPAIR_RULES: List[RepairRule] = [
    RepairRule(
        name="trailing_comma",
        pattern=re.compile(r",(\s*[}\]])"),
        replacement=r"\1",
    ),
    RepairRule(
        name="missing_comma_between_objects",
        pattern=re.compile(r"\}(\s*)\{"),
        replacement=r"},\1{",
    ),
    RepairRule(
        name="missing_comma_before_key",
        pattern=re.compile(r'("|\}|\]|\d|true|false|null)(\s*)("(?:' + _KEY_ALTERNATION + r')"\s*:)'),
        replacement=r"\1,\2\3",
    ),
    RepairRule(
        name="missing_key_quote",
        pattern=re.compile(r'(,\s*)(' + _KEY_ALTERNATION + r')"(\s*:)'),
        replacement=r'\1"\2"\3',
    ),
]


def _truncate(text: str, limit: int = EXCERPT_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def strip_code_fence(text: str) -> str:
    match = FENCE_PATTERN.match(text)
    if match:
        return match.group(1).strip()
    return text


def extract_json_span(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise NoJsonFound(
            "No JSON object found in completion",
            {"raw_excerpt": _truncate(text)},
        )
    return text[start : end + 1]


def apply_repairs(text: str, rules: Iterable[RepairRule] = REPAIR_RULES) -> str:
    for rule in rules:
        text = rule.apply(text)
    return text


def _parse_object(text: str) -> Dict[str, Any]:
    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


def sanitize_json_response(text: str) -> Dict[str, Any]:
    """Return the JSON object contained in a completion, repairing known defects.

    Raises ``NoJsonFound`` when there is no ``{...}`` span and ``ParseFailure``
    when the span cannot be parsed as-is or after two repair passes.
    """

    raw = text or ""
    candidate = strip_code_fence(raw.strip())
    candidate = extract_json_span(candidate)
    # Repairs can rewrite text inside string values, so valid JSON is never repaired.
    try:
        return _parse_object(candidate)
    except ValueError:
        pass

    cleaned = apply_repairs(candidate)
    try:
        return _parse_object(cleaned)
    except ValueError:
        pass

    # Substitutions do not overlap within one pass, so adjacent defects need a second one.
    cleaned = apply_repairs(cleaned)
    try:
        return _parse_object(cleaned)
    except ValueError as exc:
        raise ParseFailure(
            f"Could not parse completion as JSON: {exc}",
            {"raw_excerpt": _truncate(raw), "cleaned_excerpt": _truncate(cleaned)},
        ) from exc
