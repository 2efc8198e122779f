"""
Validation Framework

Result types and field checks shared by the statement validators. Parsing
never depends on validation: a statement that parses may still fail these
checks, and the failure is reported, not raised.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Dict, FrozenSet, List, Optional


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""

    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class ValidationIssue:
    """A single finding, either an error or a warning."""

    code: str
    message: str
    field_name: str = ""
    severity: ValidationSeverity = ValidationSeverity.ERROR
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "field": self.field_name,
            "severity": self.severity.name,
            "details": self.details,
        }


@dataclass
class ValidationResult:
    """Errors and warnings collected by one validator run."""

    is_valid: bool = True
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    validated_at: datetime = field(default_factory=datetime.now)
    validator_name: str = ""
    validator_version: str = "1.0"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_error(
        self,
        code: str,
        message: str,
        field: str = "",
        severity: ValidationSeverity = ValidationSeverity.ERROR,
        **details,
    ) -> None:
        self.errors.append(ValidationIssue(code, message, field, severity, details))
        self.is_valid = False

    def add_warning(self, code: str, message: str, field: str = "", **details) -> None:
        self.warnings.append(
            ValidationIssue(code, message, field, ValidationSeverity.WARNING, details)
        )

    def merge(self, other: "ValidationResult") -> None:
        """Fold the findings of ``other`` into this result."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.is_valid = self.is_valid and other.is_valid

    def error_codes(self) -> List[str]:
        return [e.code for e in self.errors]

    def warning_codes(self) -> List[str]:
        return [w.code for w in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "validated_at": self.validated_at.isoformat(),
            "validator_name": self.validator_name,
            "validator_version": self.validator_version,
            "metadata": self.metadata,
        }

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


class BaseValidator(ABC):
    """
    Abstract base class for validators.

    Args:
        strict: Report warnings as errors
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    @property
    @abstractmethod
    def name(self) -> str:
        """Return validator name."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Return validator version."""

    @abstractmethod
    def validate(self, data: Any) -> ValidationResult:
        """Validate ``data`` and return the findings."""

    def _create_result(self) -> ValidationResult:
        return ValidationResult(validator_name=self.name, validator_version=self.version)

    def _finish(self, result: ValidationResult) -> ValidationResult:
        """Promote warnings to errors in strict mode."""
        if self.strict and result.warnings:
            for warning in result.warnings:
                result.add_error(warning.code, warning.message, warning.field_name, **warning.details)
            result.warnings = []
        return result


# ISO 4217 codes seen on European bank statements
COMMON_CURRENCIES: FrozenSet[str] = frozenset(
    {
        "AUD", "CAD", "CHF", "CNY", "CZK", "DKK", "EUR", "GBP", "HKD", "HUF",
        "JPY", "NOK", "NZD", "PLN", "RON", "SEK", "SGD", "TRY", "USD", "ZAR",
    }
)

# IBAN length per country (ISO 13616 registry, SEPA area)
IBAN_LENGTHS: Dict[str, int] = {
    "AT": 20, "BE": 16, "BG": 22, "CH": 21, "CY": 28, "CZ": 24, "DE": 22,
    "DK": 18, "EE": 20, "ES": 24, "FI": 18, "FR": 27, "GB": 22, "GR": 27,
    "HR": 21, "HU": 28, "IE": 22, "IS": 26, "IT": 27, "LI": 21, "LT": 20,
    "LU": 20, "LV": 21, "MC": 27, "MT": 31, "NL": 18, "NO": 15, "PL": 28,
    "PT": 25, "RO": 24, "SE": 24, "SI": 19, "SK": 24, "SM": 27,
}


def validate_iban(iban: str) -> Optional[str]:
    """
    Check an IBAN (ISO 13616) including its mod-97 check digits.

    Returns an error message, or None when valid.
    """
    if not iban:
        return "IBAN is required"

    iban = iban.replace(" ", "").upper()
    if not 15 <= len(iban) <= 34:
        return "IBAN length must be between 15 and 34 characters"
    if not iban[:2].isalpha():
        return "IBAN must start with 2-letter country code"
    if not iban[2:4].isdigit():
        return "IBAN check digits must be numeric"
    if not iban.isalnum():
        return "IBAN must be alphanumeric"
    expected = IBAN_LENGTHS.get(iban[:2])
    if expected and len(iban) != expected:
        return f"IBAN for {iban[:2]} must be {expected} characters"

    # Country code and check digits move to the end, letters become 10..35
    digits = "".join(str(int(char, 36)) for char in iban[4:] + iban[:4])
    if int(digits) % 97 != 1:
        return "Invalid IBAN checksum"
    return None


def looks_like_iban(account: str) -> bool:
    """Cheap shape test: country letters, check digits, alphanumeric BBAN."""
    account = account.replace(" ", "")
    return (
        15 <= len(account) <= 34
        and account[:2].isalpha()
        and account[2:4].isdigit()
        and account.isalnum()
    )


def validate_bic(bic: str) -> Optional[str]:
    """
    Check a BIC (ISO 9362) for its 8 or 11 character layout.

    Returns an error message, or None when valid.
    """
    if not bic:
        return "BIC is required"

    bic = bic.replace(" ", "").upper()
    if len(bic) not in (8, 11):
        return "BIC must be 8 or 11 characters"
    if not bic[:4].isalpha():
        return "BIC bank code must be 4 letters"
    if not bic[4:6].isalpha():
        return "BIC country code must be 2 letters"
    if not bic[6:].isalnum():
        return "BIC location and branch codes must be alphanumeric"
    return None


def validate_currency_code(currency: str) -> Optional[str]:
    """
    Check the shape of an ISO 4217 currency code.

    Returns an error message, or None when valid. Codes outside
    ``COMMON_CURRENCIES`` are valid; callers may warn about them.
    """
    if not currency:
        return "Currency code is required"
    if len(currency) != 3 or not currency.isalpha() or not currency.isupper():
        return "Currency code must be 3 uppercase letters"
    return None
