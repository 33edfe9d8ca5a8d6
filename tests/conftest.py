"""Shared fixtures for jsonmend tests."""

import json
import logging

import pytest

from jsonmend import config
from jsonmend.types import RepairLog


# Already-valid documents: every stage must leave these untouched
VALID_DOCUMENTS = [
    '{"a": 1}',
    "{}",
    "[]",
    '[1, -2.5e10, true, false, null]',
    '{"name": "O\'Brien said \\"hi\\""}',
    '"text with \\"quotes\\" and a \\\\ backslash"',
    '{"url": "http://example.com/a?b=c&d=[1]"}',
    '{"unicode": "caf\\u00e9", "korean": "한국어"}',
    '{"nested": {"list": [{"x": "y"}, []], "empty": {}}}',
    '{"code": "```py\\nprint(1)\\n```"}',
    json.dumps({"a": [1, {"b": "c"}], "d": None, "e": "x, y: z"}, indent=2),
    '{"ellipsis": "to be continued..."}',
]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point config and log files at a temporary directory."""
    monkeypatch.setattr(config, "DATA_DIR", tmp_path)
    monkeypatch.setattr(config, "LOGS_DIR", tmp_path / "logs")
    monkeypatch.setattr(config, "CONFIG_FILE", tmp_path / "config.toml")
    yield tmp_path
    for name in ("jsonmend", "jsonmend.audit"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


@pytest.fixture
def log() -> RepairLog:
    """Fresh audit log."""
    return RepairLog()
