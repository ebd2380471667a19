"""Record quality validation."""

from rulebook_extractor.validation.validator import (
    ValidationResult,
    ValidationStats,
    validate,
    validate_records,
    write_report,
)

__all__ = ["ValidationResult", "ValidationStats", "validate", "validate_records", "write_report"]
