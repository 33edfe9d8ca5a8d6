"""Pull a JSON value out of a full LLM response.

A response may hold the payload in a fenced block, after a ``json`` label,
or loose among prose. parse_response() tries each plausible extraction in
turn: first as-is, then through sanitize(). The first one that yields valid
JSON wins, and quality observations are recorded as result warnings.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

from jsonmend.config import SanitizerConfig
from jsonmend.diagnostics import analyze_error, parse_strict
from jsonmend.sanitizer import sanitize
from jsonmend.types import JSONRecoveryError, SanitizationResult

logger = logging.getLogger("jsonmend.extract")

# (label, pattern) in priority order; group 1 is the payload
_CANDIDATE_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("```json block", re.compile(r"```json[ \t]*\r?\n(.*?)\r?\n[ \t]*```", re.DOTALL | re.IGNORECASE)),
    ("fenced block", re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\r?\n(.*?)\r?\n[ \t]*```", re.DOTALL)),
    ("inline fence", re.compile(r"```(.*?)```", re.DOTALL)),
    ("json label", re.compile(r"^json[ \t]*\n(.*)$", re.DOTALL | re.IGNORECASE | re.MULTILINE)),
]

# (label, opener, closer): first opener through last closer
_SPANS = [
    ("object span", "{", "}"),
    ("array span", "[", "]"),
]


def _span(text: str, opener: str, closer: str) -> str | None:
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end < start:
        return None
    return text[start:end + 1]


def candidate_payloads(text: str) -> list[tuple[str, str]]:
    """Return distinct (label, payload) candidates, most specific first.

    The whole text is always the last candidate.
    """
    found: list[tuple[str, str]] = []
    for label, pattern in _CANDIDATE_PATTERNS:
        match = pattern.search(text)
        if match:
            found.append((label, match.group(1)))
    for label, opener, closer in _SPANS:
        span = _span(text, opener, closer)
        if span is not None:
            found.append((label, span))

    candidates: list[tuple[str, str]] = []
    seen: set[str] = set()
    for label, payload in found:
        payload = payload.strip()
        if payload and payload not in seen:
            seen.add(payload)
            candidates.append((label, payload))

    whole = text.strip()
    if whole not in seen:
        candidates.append(("whole text", whole))
    return candidates


def _check_structure(value: Any, required_keys: Iterable[str], warnings: list[str]) -> None:
    required = list(required_keys)
    if not required:
        return
    if not isinstance(value, dict):
        warnings.append(f"Expected a JSON object with keys {', '.join(required)}, got {type(value).__name__}")
        return
    for key in required:
        if key not in value:
            warnings.append(f"Missing required key: {key}")


def parse_response(
    text: str,
    required_keys: Iterable[str] = (),
    config: SanitizerConfig | None = None,
) -> tuple[Any, SanitizationResult]:
    """Extract and parse the JSON payload of an LLM response.

    Returns the parsed value and the SanitizationResult of the candidate
    that succeeded. Raises JSONRecoveryError if no candidate can be
    recovered.
    """
    required = tuple(required_keys)
    last_result = SanitizationResult(sanitized_text=text or "")

    for label, payload in candidate_payloads(text or ""):
        try:
            value = parse_strict(payload)
            result = SanitizationResult(success=True, sanitized_text=payload)
        except (ValueError, RecursionError):
            result = sanitize(payload, config)
            if not result.success:
                logger.debug("Candidate '%s' could not be repaired: %s", label, result.errors)
                last_result = result
                continue
            value = parse_strict(result.sanitized_text)
            result.warnings.append(
                f"Payload from {label} needed {len(result.applied_fixes)} repair(s)"
            )

        if label != "whole text":
            logger.debug("Using JSON payload from %s", label)
        _check_structure(value, required, result.warnings)
        return value, result

    raise JSONRecoveryError(
        "No JSON payload could be recovered from the response",
        last_result,
        analyze_error(last_result.sanitized_text),
    )
