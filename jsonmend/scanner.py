"""String-aware tokenizer and bracket-depth tracking shared by the repair stages.

The scanner is deliberately forgiving: it never fails, it only classifies.
A string literal runs from a double quote to the next unescaped double quote
(or to the end of the text, in which case the token is marked as not closed).
Everything outside strings is split into punctuation, bare words (numbers,
literals, identifiers) and single unrecognized characters. Whitespace is
skipped, so two tokens that are adjacent in the list are separated only by
whitespace in the text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    STRING = "string"
    PUNCT = "punct"
    BARE = "bare"
    OTHER = "other"


WHITESPACE = " \t\r\n"
PUNCTUATION = "{}[]:,"
OPENERS = {"{": "}", "[": "]"}
CLOSERS = {"}": "{", "]": "["}

_BARE_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_.+-$")


@dataclass(frozen=True)
class Token:
    """A lexical unit with its [start, end) span in the scanned text."""

    kind: TokenKind
    start: int
    end: int
    text: str
    closed: bool = True

    def is_punct(self, chars: str) -> bool:
        return self.kind == TokenKind.PUNCT and self.text in chars


def tokenize(text: str) -> list[Token]:
    """Split text into tokens in a single linear pass."""
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if ch in WHITESPACE:
            i += 1
            continue

        if ch == '"':
            j = i + 1
            closed = False
            while j < n:
                c = text[j]
                if c == "\\":
                    j += 2
                    continue
                if c == '"':
                    closed = True
                    j += 1
                    break
                j += 1
            end = min(j, n)
            tokens.append(Token(TokenKind.STRING, i, end, text[i:end], closed))
            i = end
            continue

        if ch in PUNCTUATION:
            tokens.append(Token(TokenKind.PUNCT, i, i + 1, ch))
            i += 1
            continue

        if ch in _BARE_CHARS:
            j = i + 1
            while j < n and text[j] in _BARE_CHARS:
                j += 1
            tokens.append(Token(TokenKind.BARE, i, j, text[i:j]))
            i = j
            continue

        tokens.append(Token(TokenKind.OTHER, i, i + 1, ch))
        i += 1

    return tokens


def push_pop(stack: list[str], token: Token) -> None:
    """Apply one token to a bracket stack.

    A closer only pops when it matches the innermost opener; a mismatched
    closer is ignored.
    """
    if token.kind != TokenKind.PUNCT:
        return
    if token.text in OPENERS:
        stack.append(token.text)
    elif token.text in CLOSERS and stack and stack[-1] == CLOSERS[token.text]:
        stack.pop()


def open_stack(tokens: list[Token]) -> list[str]:
    """Return the openers still unclosed after walking all tokens, outermost first."""
    stack: list[str] = []
    for token in tokens:
        push_pop(stack, token)
    return stack


def enclosing_contexts(tokens: list[Token]) -> list[str]:
    """For each token, the innermost opener in effect *before* it ('' at top level)."""
    stack: list[str] = []
    contexts: list[str] = []
    for token in tokens:
        contexts.append(stack[-1] if stack else "")
        push_pop(stack, token)
    return contexts


def missing_closers(stack: list[str]) -> str:
    """Closing characters for an open stack, innermost first."""
    return "".join(OPENERS[opener] for opener in reversed(stack))


def ends_in_open_string(tokens: list[Token]) -> bool:
    return bool(tokens) and tokens[-1].kind == TokenKind.STRING and not tokens[-1].closed


def apply_edits(text: str, edits: list[tuple[int, int, str]]) -> str:
    """Apply (position, delete_length, insertion) edits given in ascending position order."""
    if not edits:
        return text
    parts: list[str] = []
    cursor = 0
    for pos, delete, insert in edits:
        parts.append(text[cursor:pos])
        parts.append(insert)
        cursor = pos + delete
    parts.append(text[cursor:])
    return "".join(parts)
