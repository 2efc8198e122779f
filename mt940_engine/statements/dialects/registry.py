"""
Dialect Registry

Ordered set of dialect grammars. Selection returns the first grammar whose
acceptance test matches, so bank specific grammars are registered ahead of
the generic fallback.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from mt940_engine.core.config import ParserConfig
from mt940_engine.core.exceptions import ConfigurationException, UnrecognizedDialect
from mt940_engine.statements.dialects.abn_amro import AbnAmroDialect
from mt940_engine.statements.dialects.base import DialectGrammar
from mt940_engine.statements.dialects.generic import GenericDialect
from mt940_engine.statements.dialects.german_bank import GermanBankDialect
from mt940_engine.statements.dialects.ing import IngDialect

logger = logging.getLogger(__name__)


class DialectRegistry:
    """Immutable, ordered collection of dialect grammars."""

    def __init__(self, dialects: Iterable[DialectGrammar]):
        dialects = tuple(dialects)
        seen = set()
        for dialect in dialects:
            if dialect.name in seen:
                raise ConfigurationException(
                    f"Dialect registered twice: {dialect.name}", config_key="dialects"
                )
            seen.add(dialect.name)
        self._dialects: Tuple[DialectGrammar, ...] = dialects

    @property
    def dialects(self) -> Tuple[DialectGrammar, ...]:
        return self._dialects

    def names(self) -> List[str]:
        return [dialect.name for dialect in self._dialects]

    def get(self, name: str) -> Optional[DialectGrammar]:
        for dialect in self._dialects:
            if dialect.name == name:
                return dialect
        return None

    def select(self, document: str) -> DialectGrammar:
        """
        Pick the grammar for ``document``.

        Raises:
            UnrecognizedDialect: No registered grammar accepts the document
        """
        for dialect in self._dialects:
            if dialect.accepts(document):
                logger.debug(f"Selected dialect {dialect.name}")
                return dialect

        raise UnrecognizedDialect(
            "No registered dialect accepts the document", candidates=self.names()
        )

    def __len__(self) -> int:
        return len(self._dialects)

    def __iter__(self):
        return iter(self._dialects)


def build_registry(config: Optional[ParserConfig] = None) -> DialectRegistry:
    """Build the standard registry: ING, ABN AMRO, German banks, generic."""
    config = config or ParserConfig()
    dialects: List[DialectGrammar] = [
        IngDialect(),
        AbnAmroDialect(),
        GermanBankDialect(bank_codes=config.german_bank_codes),
    ]
    if config.enable_generic_fallback:
        dialects.append(GenericDialect())
    return DialectRegistry(dialects)


_default_registry: Optional[DialectRegistry] = None


def get_default_registry() -> DialectRegistry:
    """Get the process-wide registry built from the default configuration."""
    global _default_registry
    if _default_registry is None:
        _default_registry = build_registry()
    return _default_registry
