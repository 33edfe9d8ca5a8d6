"""Turn near-JSON text from an LLM into valid JSON.

Flow: normalize -> ordered repair pipeline -> validate. If validation
fails, one aggressive repair pass runs and the text is validated once more;
that second verdict is final. The function keeps no state between calls.
"""

from __future__ import annotations

import logging

from jsonmend.aggressive import aggressive_repair
from jsonmend.config import FINAL_PARSE_ERROR_PREFIX, INTERNAL_ERROR_PREFIX, SanitizerConfig
from jsonmend.diagnostics import describe_error, parse_error
from jsonmend.normalizer import normalize
from jsonmend.stages import run_pipeline
from jsonmend.types import RepairLog, SanitizationResult

logger = logging.getLogger("jsonmend.sanitizer")


def sanitize(text: str, config: SanitizerConfig | None = None) -> SanitizationResult:
    """Repair ``text`` into valid JSON where possible.

    Never raises for bad input: every failure is reported through the
    returned result's ``errors``. Bytes are decoded as UTF-8 and other
    non-string values are converted with str(). An invalid ``config``
    raises ValueError.
    """
    config = config or SanitizerConfig()
    config.validate()

    if text is None:
        text = ""
    elif isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    elif not isinstance(text, str):
        text = str(text)

    result = SanitizationResult(sanitized_text=text)
    if len(text) > config.max_input_chars:
        result.errors.append(
            f"Input too large to repair ({len(text)} chars, limit {config.max_input_chars})"
        )
        return result

    log = RepairLog(result.applied_fixes)

    try:
        current = normalize(text, log)
        current = run_pipeline(current, log, skip=config.skip_stages)
        result.sanitized_text = current

        error = parse_error(current)
        if error is not None and config.aggressive:
            logger.debug("Pipeline output still invalid (%s), trying aggressive repair", error)
            current = aggressive_repair(current, log)
            result.sanitized_text = current
            error = parse_error(current)

        if error is None:
            result.success = True
        else:
            result.errors.append(FINAL_PARSE_ERROR_PREFIX + describe_error(error))
            logger.warning("Could not repair JSON: %s", describe_error(error))
    except Exception as e:
        logger.exception("Unexpected error while sanitizing JSON")
        result.success = False
        result.errors.append(INTERNAL_ERROR_PREFIX + str(e))

    return result
