"""
Validation framework for parsed statements.
"""

from .base_validator import (
    ValidationSeverity,
    ValidationIssue,
    ValidationResult,
    BaseValidator,
    COMMON_CURRENCIES,
    IBAN_LENGTHS,
    validate_iban,
    validate_bic,
    validate_currency_code,
    looks_like_iban,
)

__all__ = [
    "ValidationSeverity",
    "ValidationIssue",
    "ValidationResult",
    "BaseValidator",
    "COMMON_CURRENCIES",
    "IBAN_LENGTHS",
    "validate_iban",
    "validate_bic",
    "validate_currency_code",
    "looks_like_iban",
]
