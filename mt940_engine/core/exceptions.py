"""
MT940 Engine - Custom Exceptions

This module defines the exception classes surfaced by the statement parser.
"""

from typing import Any, Dict, List, Optional


class Mt940Exception(Exception):
    """Base exception for all MT940 engine errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "MT940_ERROR"
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (Code: {self.error_code}, Context: {self.context})"
        return f"{self.message} (Code: {self.error_code})"


class ConfigurationException(Mt940Exception):
    """Exception raised for configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(
            message,
            error_code="CONFIG_ERROR",
            context={"config_key": config_key} if config_key else {},
        )


class StatementParseError(Mt940Exception):
    """
    Base exception for document parsing failures.

    ``statements`` holds the statements that were completed before the
    failure, so callers can keep the partial result of a multi-statement
    document.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "PARSE_ERROR",
        line_number: Optional[int] = None,
        tag: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        context = dict(context or {})
        if line_number is not None:
            context["line_number"] = line_number
        if tag:
            context["tag"] = tag

        super().__init__(message, error_code=error_code, context=context)
        self.line_number = line_number
        self.tag = tag
        self.statements: List[Any] = []

    def locate(self, line_number: int, tag: Optional[str] = None) -> "StatementParseError":
        """Attach the document position where the error occurred."""
        self.line_number = line_number
        self.context["line_number"] = line_number
        if tag and not self.tag:
            self.tag = tag
            self.context["tag"] = tag
        return self


class UnrecognizedDialect(StatementParseError):
    """No registered dialect accepts the document."""

    def __init__(self, message: str, candidates: Optional[List[str]] = None):
        context = {"candidates": candidates} if candidates else {}
        super().__init__(message, error_code="UNRECOGNIZED_DIALECT", context=context)


class MalformedStatementStructure(StatementParseError):
    """Tag ordering violates the statement structure."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        tag: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code="MALFORMED_STRUCTURE",
            line_number=line_number,
            tag=tag,
        )


class UnparseableDate(StatementParseError):
    """A mandatory date field fails its format check."""

    def __init__(
        self,
        message: str,
        value: Optional[str] = None,
        line_number: Optional[int] = None,
        tag: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code="UNPARSEABLE_DATE",
            line_number=line_number,
            tag=tag,
            context={"value": value} if value is not None else None,
        )
        self.value = value


class UnparseableAmount(StatementParseError):
    """A mandatory amount field fails its format check."""

    def __init__(
        self,
        message: str,
        value: Optional[str] = None,
        line_number: Optional[int] = None,
        tag: Optional[str] = None,
    ):
        super().__init__(
            message,
            error_code="UNPARSEABLE_AMOUNT",
            line_number=line_number,
            tag=tag,
            context={"value": value} if value is not None else None,
        )
        self.value = value
