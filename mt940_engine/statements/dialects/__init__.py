"""
MT940 bank dialects.

Each supported bank is one DialectGrammar variant; the registry picks the
variant for a document.
"""

from .base import DialectGrammar
from .ing import IngDialect
from .abn_amro import AbnAmroDialect
from .german_bank import GermanBankDialect
from .generic import GenericDialect
from .registry import DialectRegistry, build_registry, get_default_registry

__all__ = [
    "DialectGrammar",
    "IngDialect",
    "AbnAmroDialect",
    "GermanBankDialect",
    "GenericDialect",
    "DialectRegistry",
    "build_registry",
    "get_default_registry",
]
