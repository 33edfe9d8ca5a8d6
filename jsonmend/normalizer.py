"""Strip the wrapper noise LLMs put around a JSON payload.

Handles code fences (```json, ```python or any other language tag, bare
```), a leading ``json``/``JSON`` label line, a byte-order mark, and prose
before or after the payload. A fence that starts inside an unterminated
string is left in place. Every removal writes one entry to the repair log.
The output is never longer than the input.
"""

from __future__ import annotations

import re

from jsonmend.scanner import ends_in_open_string, tokenize
from jsonmend.types import RepairLog

# An opening fence only counts at the start of a line
_OPEN_FENCE = re.compile(r"(?:^|(?<=\n))```[ \t]*([A-Za-z0-9_+-]*)[ \t]*(?:\r?\n)?", re.IGNORECASE)
_LABEL_LINE = re.compile(r"(json|JSON)[ \t]*\r?\n")
_LITERALS = ("true", "false", "null")


def _strip_fences(text: str, log: RepairLog) -> str:
    match = _OPEN_FENCE.search(text)
    if not match:
        return text

    prefix = text[:match.start()]
    # A fence inside an unterminated string is content, not a wrapper
    if ends_in_open_string(tokenize(prefix)):
        return text

    rest = text[match.end():]
    close = rest.find("```")

    # A fence with nothing after it closes a payload that had no opener
    if not rest.strip() and prefix.strip():
        log.add("Removed closing ``` code fence")
        return prefix.strip()

    lang = (match.group(1) or "").lower()
    log.add(f"Removed ```{lang} code fence" if lang else "Removed bare ``` code fence")

    suffix = ""
    if close != -1:
        suffix = rest[close + 3:]
        rest = rest[:close]
        log.add("Removed closing ``` code fence")

    if prefix.strip() or suffix.strip():
        log.add("Removed prose around code fence")
    return rest.strip()


def _strip_label(text: str, log: RepairLog) -> str:
    match = _LABEL_LINE.match(text)
    if not match:
        return text
    log.add(f"Removed leading {match.group(1)} label")
    return text[match.end():].lstrip()


def _strip_prose(text: str, log: RepairLog) -> str:
    if not text:
        return text

    if text[0] not in '{["':
        starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
        if starts:
            first = min(starts)
            if '"' not in text[:first]:
                text = text[first:]
                log.add("Removed leading prose before JSON payload")

    if text[0] in "{[":
        closers = [t for t in tokenize(text) if t.is_punct("}]")]
        last = closers[-1].start if closers else -1
        tail = text[last + 1:].strip() if last != -1 else ""
        if (
            tail
            and tail[0].isalpha()
            and '"' not in tail
            and ":" not in tail
            and tail.split()[0].rstrip(",.") not in _LITERALS
        ):
            text = text[:last + 1]
            log.add("Removed trailing prose after JSON payload")

    return text


def normalize(text: str, log: RepairLog) -> str:
    """Return the payload part of ``text``, recording each removal in ``log``."""
    text = text.strip()
    if text.startswith("\ufeff"):
        text = text[1:].strip()
        log.add("Removed byte-order mark")

    text = _strip_fences(text, log)
    text = _strip_label(text, log)
    text = _strip_prose(text, log)
    return text
