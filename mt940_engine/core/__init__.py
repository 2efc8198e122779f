"""
MT940 Engine - Core Module

Configuration, exception hierarchy, logging setup and metrics shared by the
statement parser.
"""

from .config import Config, ParserConfig, InvalidTransactionPolicy, get_config, set_config, load_config
from .exceptions import (
    Mt940Exception,
    ConfigurationException,
    StatementParseError,
    UnrecognizedDialect,
    MalformedStatementStructure,
    UnparseableDate,
    UnparseableAmount,
)

__all__ = [
    "Config",
    "ParserConfig",
    "InvalidTransactionPolicy",
    "get_config",
    "set_config",
    "load_config",
    "Mt940Exception",
    "ConfigurationException",
    "StatementParseError",
    "UnrecognizedDialect",
    "MalformedStatementStructure",
    "UnparseableDate",
    "UnparseableAmount",
]
