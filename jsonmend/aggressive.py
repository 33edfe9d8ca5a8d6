"""Last-resort repair, run once when the ordered pipeline's output still fails to parse."""

from __future__ import annotations

import logging

from jsonmend.scanner import TokenKind, tokenize
from jsonmend.types import RepairLog

logger = logging.getLogger("jsonmend.aggressive")


def aggressive_repair(text: str, log: RepairLog) -> str:
    """Force a parseable object shell around ``text``.

    Only curly braces are rebalanced here. Square brackets were already
    handled by the pipeline and are left alone.
    """
    tokens = tokenize(text)

    # 1. Drop an incomplete member after the last comma; a "key": value tail stays
    last_comma = max((t.start for t in tokens if t.is_punct(",")), default=-1)
    last_brace = max((t.start for t in tokens if t.is_punct("}")), default=-1)
    tail = text[last_comma + 1:]
    if last_comma > last_brace and not (":" in tail and '"' in tail):
        text = text[:last_comma]
        log.add("Dropped incomplete content after the last comma")
        tokens = tokenize(text)

    # 2. Rebalance braces
    punct = [t.text for t in tokens if t.kind == TokenKind.PUNCT]
    missing = punct.count("{") - punct.count("}")
    if missing > 0:
        text += "}" * missing
        log.add(f"Appended {missing} closing brace(s) in aggressive repair")

    # 3/4. Top-level wrapper
    if not text.strip().startswith(("{", "[")):
        text = "{" + text
        log.add("Prepended opening brace")
    if not text.strip().endswith(("}", "]")):
        text = text + "}"
        log.add("Appended closing brace")

    logger.debug("Aggressive repair produced %d chars", len(text))
    return text
