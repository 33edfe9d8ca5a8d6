"""Result types returned by the sanitizer and diagnostics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SanitizationResult:
    """Outcome of a sanitize() call.

    ``sanitized_text`` is always populated. On failure it holds the last
    text the engine attempted to parse.
    """

    success: bool = False
    sanitized_text: str = ""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    applied_fixes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "sanitizedText": self.sanitized_text,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "appliedFixes": list(self.applied_fixes),
        }


@dataclass
class ErrorLocation:
    """Where a JSON parse failed."""

    line: int
    column: int
    message: str
    context: str | None = None
    offset: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "context": self.context,
            "offset": self.offset,
        }


class RepairLog:
    """Append-only audit log threaded through the repair stages."""

    def __init__(self, entries: list[str] | None = None):
        self._entries: list[str] = entries if entries is not None else []

    def add(self, entry: str) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> list[str]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)


class JSONRecoveryError(ValueError):
    """Raised by parse_response() when no candidate payload could be recovered."""

    def __init__(self, message: str, result: SanitizationResult, location: ErrorLocation | None = None):
        super().__init__(message)
        self.result = result
        self.location = location
