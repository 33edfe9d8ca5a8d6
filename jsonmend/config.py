"""Configuration constants and SanitizerConfig dataclass."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path


# Base directory for all jsonmend data (logs, config file)
DATA_DIR = Path(os.environ.get("JSONMEND_HOME", str(Path.home() / ".jsonmend")))
LOGS_DIR = DATA_DIR / "logs"
CONFIG_FILE = DATA_DIR / "config.toml"

# Log rotation: 5 MB per file, 3 backups
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# Characters of context shown on each side of a parse failure
CONTEXT_RADIUS = 50

# Inputs above this size are reported as failures instead of repaired
MAX_INPUT_CHARS = 2_000_000

# Prefix of the terminal diagnostic put in SanitizationResult.errors
FINAL_PARSE_ERROR_PREFIX = "Final JSON parse failed: "
INTERNAL_ERROR_PREFIX = "Error while sanitizing JSON: "


def load_config_file() -> dict:
    """Load settings from ~/.jsonmend/config.toml. Returns empty dict if not found."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        return tomllib.loads(CONFIG_FILE.read_text())
    except (OSError, tomllib.TOMLDecodeError):
        return {}


@dataclass
class SanitizerConfig:
    """Runtime options for a sanitize() call.

    The default instance runs every repair stage followed by the aggressive
    pass, which is the behavior callers get when they pass no config.
    """

    skip_stages: tuple[str, ...] = field(default_factory=tuple)
    aggressive: bool = True
    max_input_chars: int = MAX_INPUT_CHARS

    def validate(self) -> None:
        """Raise ValueError if a skipped stage name is unknown."""
        from jsonmend.stages import STAGE_NAMES

        unknown = [name for name in self.skip_stages if name not in STAGE_NAMES]
        if unknown:
            raise ValueError(
                f"Unknown repair stage(s): {', '.join(unknown)}. "
                f"Valid stages: {', '.join(STAGE_NAMES)}"
            )
        if self.max_input_chars <= 0:
            raise ValueError("max_input_chars must be positive")

    @classmethod
    def from_file(cls) -> SanitizerConfig:
        """Build a config from the [sanitizer] table of ~/.jsonmend/config.toml."""
        data = load_config_file().get("sanitizer", {})
        return cls(
            skip_stages=tuple(data.get("skip_stages", ())),
            aggressive=bool(data.get("aggressive", True)),
            max_input_chars=int(data.get("max_input_chars", MAX_INPUT_CHARS)),
        )
