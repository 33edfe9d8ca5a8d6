"""The ordered repair pipeline.

Each stage is a pure ``(text, log) -> text`` function wrapped in a named
RepairStage. Stages run in PIPELINE order because later stages assume the
earlier ones already normalized the structure (for example, the trailing
comma remover runs after the bracket balancer so that ``{"a": 1,`` becomes
``{"a": 1}``). A stage that finds nothing to fix returns its input unchanged
and writes nothing to the log; a stage that fixes something writes exactly
one summary entry.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from jsonmend.scanner import (
    Token,
    TokenKind,
    apply_edits,
    enclosing_contexts,
    ends_in_open_string,
    missing_closers,
    open_stack,
    tokenize,
)
from jsonmend.types import RepairLog

logger = logging.getLogger("jsonmend.stages")

StageFunc = Callable[[str, RepairLog], str]


@dataclass(frozen=True)
class RepairStage:
    """A named text-to-text repair."""

    name: str
    description: str
    func: StageFunc

    def __call__(self, text: str, log: RepairLog) -> str:
        before = len(log)
        fixed = self.func(text, log)
        if len(log) > before:
            logger.debug("%s: %s", self.name, log.entries[-1])
        return fixed


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


# ── 1. String escaping ───────────────────────────────────────────────────────

_SIMPLE_ESCAPES = frozenset('"\\/bfnrt')
_HEX = frozenset("0123456789abcdefABCDEF")
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}
# After a closing quote, only these may follow (spaces and tabs skipped)
_AFTER_CLOSING_QUOTE = frozenset(':,}]"\n\r')


def _quote_closes_string(text: str, pos: int) -> bool:
    """Decide whether the quote just before ``pos`` ends the string literal."""
    n = len(text)
    while pos < n and text[pos] in " \t":
        pos += 1
    return pos >= n or text[pos] in _AFTER_CLOSING_QUOTE


def escape_strings(text: str, log: RepairLog) -> str:
    """Escape raw control characters, lone backslashes and internal quotes in strings."""
    out: list[str] = []
    newlines = controls = backslashes = quotes = 0
    in_string = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if not in_string:
            out.append(ch)
            if ch == '"':
                in_string = True
            i += 1
            continue

        if ch == "\\":
            nxt = text[i + 1] if i + 1 < n else ""
            if nxt in _SIMPLE_ESCAPES:
                out.append(text[i:i + 2])
                i += 2
                continue
            if nxt == "u" and i + 6 <= n and all(c in _HEX for c in text[i + 2:i + 6]):
                out.append(text[i:i + 6])
                i += 6
                continue
            out.append("\\\\")
            backslashes += 1
            i += 1
            continue

        if ch == '"':
            if _quote_closes_string(text, i + 1):
                out.append('"')
                in_string = False
            else:
                out.append('\\"')
                quotes += 1
            i += 1
            continue

        if ch == "\n":
            out.append("\\n")
            newlines += 1
        elif ord(ch) < 0x20:
            out.append(_CONTROL_ESCAPES.get(ch, f"\\u{ord(ch):04x}"))
            controls += 1
        else:
            out.append(ch)
        i += 1

    parts = []
    if newlines:
        parts.append(_plural(newlines, "raw newline"))
    if controls:
        parts.append(_plural(controls, "control character"))
    if backslashes:
        parts.append(_plural(backslashes, "lone backslash"))
    if quotes:
        parts.append(_plural(quotes, "unescaped quote"))
    if not parts:
        return text
    log.add(f"Escaped characters inside strings ({', '.join(parts)})")
    return "".join(out)


# ── 2. Missing comma insertion ───────────────────────────────────────────────

def _ends_value(token: Token) -> bool:
    if token.kind == TokenKind.STRING:
        return token.closed
    if token.kind == TokenKind.BARE:
        return True
    return token.is_punct("}]")


def _starts_value(token: Token) -> bool:
    return token.kind in (TokenKind.STRING, TokenKind.BARE) or token.is_punct("{[")


def insert_commas(text: str, log: RepairLog) -> str:
    """Insert a comma wherever one value is directly followed by the next."""
    tokens = tokenize(text)
    edits: list[tuple[int, int, str]] = []

    for prev, nxt in zip(tokens, tokens[1:]):
        if not (_ends_value(prev) and _starts_value(nxt)):
            continue
        gap = text[prev.end:nxt.start]
        if "\n" in gap:
            edits.append((prev.end, len(gap), ",\n  "))
        else:
            edits.append((prev.end, 0, ","))

    if not edits:
        return text
    log.add(f"Inserted {_plural(len(edits), 'missing comma')} between adjacent values")
    return apply_edits(text, edits)


# ── 3. Duplicate commas ──────────────────────────────────────────────────────

def collapse_commas(text: str, log: RepairLog) -> str:
    """Collapse runs of commas separated only by whitespace into one comma."""
    tokens = tokenize(text)
    edits: list[tuple[int, int, str]] = []
    i = 0

    while i < len(tokens):
        if not tokens[i].is_punct(","):
            i += 1
            continue
        j = i
        while j + 1 < len(tokens) and tokens[j + 1].is_punct(","):
            j += 1
        if j > i:
            start = tokens[i].end
            edits.append((start, tokens[j].end - start, ""))
        i = j + 1

    if not edits:
        return text
    log.add(f"Collapsed {_plural(len(edits), 'duplicate comma run')}")
    return apply_edits(text, edits)


# ── 4. Bracket balancing ─────────────────────────────────────────────────────

def _describe_closers(closers: str) -> str:
    parts = []
    braces = closers.count("}")
    brackets = closers.count("]")
    if braces:
        parts.append(_plural(braces, "brace"))
    if brackets:
        parts.append(_plural(brackets, "bracket"))
    return " and ".join(parts)


def balance_brackets(text: str, log: RepairLog) -> str:
    """Append the closing braces/brackets the text is missing.

    When the text ends inside an unterminated string the closers would land
    inside that string, so this stage leaves it to fix_truncation.
    """
    tokens = tokenize(text)
    if ends_in_open_string(tokens):
        return text
    closers = missing_closers(open_stack(tokens))
    if not closers:
        return text
    log.add(f"Appended missing closing {_describe_closers(closers)}")
    return text + closers


# ── 5. Trailing commas ───────────────────────────────────────────────────────

def strip_trailing_commas(text: str, log: RepairLog) -> str:
    """Remove a comma that directly precedes a closing brace or bracket."""
    tokens = tokenize(text)
    edits = [
        (comma.start, 1, "")
        for comma, nxt in zip(tokens, tokens[1:])
        if comma.is_punct(",") and nxt.is_punct("}]")
    ]
    if not edits:
        return text
    log.add(f"Removed {_plural(len(edits), 'trailing comma')}")
    return apply_edits(text, edits)


# ── 6. Truncated output ──────────────────────────────────────────────────────

def _drop_trailing_backslash(text: str) -> str:
    run = len(text) - len(text.rstrip("\\"))
    return text[:-1] if run % 2 else text


def _dangling_member_start(tokens: list[Token], contexts: list[str], last: int) -> int | None:
    """Start offset of an incomplete member ending at tokens[last], if any.

    Recognized shapes: a dangling ``,``; a key with no colon (``, "key"``);
    a key and colon with no value (``, "key":``).
    """
    tail = tokens[last]
    if tail.is_punct(","):
        return tail.start

    key_index = None
    if tail.is_punct(":") and last >= 1:
        key_index = last - 1
    elif tail.kind in (TokenKind.STRING, TokenKind.BARE) and contexts[last] == "{":
        key_index = last
    if key_index is None or contexts[key_index] != "{":
        return None

    key = tokens[key_index]
    if key.kind not in (TokenKind.STRING, TokenKind.BARE) or key_index == 0:
        return None
    before = tokens[key_index - 1]
    if before.is_punct(","):
        return before.start
    if before.is_punct("{"):
        return key.start
    return None


def fix_truncation(text: str, log: RepairLog) -> str:
    """Close output that the generator cut off mid-string or mid-structure."""
    actions: list[str] = []
    tokens = tokenize(text)

    if ends_in_open_string(tokens):
        open_token = tokens[-1]
        body = open_token.text
        ellipsis = body.rfind("...")
        if "..." in text and not text.endswith(("}", "]")) and ellipsis > 0:
            text = text[:open_token.start + ellipsis + 3] + '"'
            actions.append("cut string after trailing ellipsis")
        else:
            is_value = len(tokens) >= 2 and tokens[-2].is_punct(":")
            text = _drop_trailing_backslash(text) + '"'
            if is_value:
                actions.append("closed unterminated property value")
            else:
                actions.append("closed unterminated string")
        tokens = tokenize(text)

    if tokens:
        contexts = enclosing_contexts(tokens)
        last = len(tokens) - 1
        while last >= 0 and tokens[last].is_punct("}]"):
            last -= 1
        if last >= 0 and (open_stack(tokens) or last < len(tokens) - 1):
            start = _dangling_member_start(tokens, contexts, last)
            if start is not None:
                text = text[:start] + text[tokens[last].end:]
                actions.append("dropped incomplete trailing member")
                tokens = tokenize(text)

    closers = missing_closers(open_stack(tokens))
    if closers:
        text += closers
        actions.append(f"appended {_describe_closers(closers)}")

    if not actions:
        return text
    log.add(f"Repaired truncated output ({'; '.join(actions)})")
    return text


# ── 7. Multiline strings ─────────────────────────────────────────────────────

_RAW_NEWLINE = re.compile(r"\r?\n")


def fix_multiline_strings(text: str, log: RepairLog) -> str:
    """Turn raw newlines left inside string literals into ``\\n`` escapes."""
    edits: list[tuple[int, int, str]] = []
    count = 0
    for token in tokenize(text):
        if token.kind != TokenKind.STRING or "\n" not in token.text:
            continue
        fixed, n = _RAW_NEWLINE.subn(r"\\n", token.text)
        count += n
        edits.append((token.start, token.end - token.start, fixed))

    if not edits:
        return text
    log.add(f"Escaped {_plural(count, 'raw newline')} in multiline strings")
    return apply_edits(text, edits)


# ── 8. Bare property names ───────────────────────────────────────────────────

_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$.-]*")


def quote_property_names(text: str, log: RepairLog) -> str:
    """Quote bare identifiers used as keys inside an object."""
    tokens = tokenize(text)
    contexts = enclosing_contexts(tokens)
    edits: list[tuple[int, int, str]] = []

    for i, (token, nxt) in enumerate(zip(tokens, tokens[1:])):
        if (
            token.kind == TokenKind.BARE
            and nxt.is_punct(":")
            and contexts[i] == "{"
            and _IDENTIFIER.fullmatch(token.text)
        ):
            edits.append((token.start, token.end - token.start, f'"{token.text}"'))

    if not edits:
        return text
    log.add(f"Quoted {_plural(len(edits), 'bare property name')}")
    return apply_edits(text, edits)


# ── Pipeline ─────────────────────────────────────────────────────────────────

PIPELINE: tuple[RepairStage, ...] = (
    RepairStage("escape_strings", "Escape control characters, backslashes and quotes in strings", escape_strings),
    RepairStage("insert_commas", "Insert commas between adjacent values", insert_commas),
    RepairStage("collapse_commas", "Collapse duplicate commas", collapse_commas),
    RepairStage("balance_brackets", "Append missing closing braces and brackets", balance_brackets),
    RepairStage("strip_trailing_commas", "Remove commas before closing braces and brackets", strip_trailing_commas),
    RepairStage("fix_truncation", "Close truncated strings and structures", fix_truncation),
    RepairStage("fix_multiline_strings", "Escape raw newlines inside strings", fix_multiline_strings),
    RepairStage("quote_property_names", "Quote bare property names", quote_property_names),
)

STAGE_NAMES: tuple[str, ...] = tuple(stage.name for stage in PIPELINE)


def get_stage(name: str) -> RepairStage:
    for stage in PIPELINE:
        if stage.name == name:
            return stage
    raise KeyError(f"Unknown repair stage: {name}")


def run_pipeline(text: str, log: RepairLog, skip: Iterable[str] = ()) -> str:
    """Run every stage not named in ``skip``, in order."""
    skipped = set(skip)
    for stage in PIPELINE:
        if stage.name in skipped:
            continue
        text = stage(text, log)
    return text
