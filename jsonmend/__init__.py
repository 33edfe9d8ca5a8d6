"""Best-effort repair of malformed JSON produced by language models."""

from jsonmend.config import SanitizerConfig
from jsonmend.diagnostics import analyze_error, is_valid_structure
from jsonmend.extract import candidate_payloads, parse_response
from jsonmend.sanitizer import sanitize
from jsonmend.stages import PIPELINE, STAGE_NAMES, RepairStage
from jsonmend.types import ErrorLocation, JSONRecoveryError, RepairLog, SanitizationResult

__all__ = [
    "sanitize",
    "is_valid_structure",
    "analyze_error",
    "parse_response",
    "candidate_payloads",
    "SanitizationResult",
    "ErrorLocation",
    "RepairLog",
    "JSONRecoveryError",
    "SanitizerConfig",
    "RepairStage",
    "PIPELINE",
    "STAGE_NAMES",
]
