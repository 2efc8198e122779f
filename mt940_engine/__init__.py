"""
MT940 Engine

Dialect-aware parser for SWIFT MT940 bank statement documents.
"""

__version__ = "1.0.0"

from mt940_engine.statements import (
    Statement,
    Transaction,
    Balance,
    Mt940Parser,
    Mt940ParseResult,
    parse_mt940,
)

__all__ = [
    "__version__",
    "Statement",
    "Transaction",
    "Balance",
    "Mt940Parser",
    "Mt940ParseResult",
    "parse_mt940",
]
