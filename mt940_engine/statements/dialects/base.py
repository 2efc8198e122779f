"""
Dialect Grammar Base

Every supported bank is a direct subclass of DialectGrammar. The assembler
only talks to this interface: document acceptance, statement and account
number extraction, and transaction reconciliation.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import FrozenSet, Optional

from mt940_engine.statements.line_normalizer import normalize
from mt940_engine.statements.mt940_message import RawLineBlock, SubfieldMap, Transaction
from mt940_engine.statements.subfield_tokenizer import SubfieldTokenizer
from mt940_engine.validators.base_validator import IBAN_LENGTHS

logger = logging.getLogger(__name__)

# IBAN (country, check digits, 11+ BBAN characters) followed by an ISO 4217
# alphabetic or numeric code
_IBAN_WITH_CURRENCY = re.compile(
    r"^([A-Z]{2}[0-9]{2}[A-Z0-9]{11,30})([A-Za-z]{3}|[0-9]{3})$"
)


class DialectGrammar(ABC):
    """
    Bank specific grammar layered on the nominal MT940 format.

    Subclasses set ``name`` and ``subfield_identifiers`` and implement
    ``accepts``. The remaining hooks default to nominal MT940 behaviour.
    """

    name: str = ""
    subfield_identifiers: FrozenSet[str] = frozenset()
    tokenizer: SubfieldTokenizer = SubfieldTokenizer()

    @abstractmethod
    def accepts(self, document: str) -> bool:
        """Cheap structural test on the raw document. Never a full parse."""

    def statement_number(self, body: str) -> Optional[str]:
        """Statement number from :28C: (or :28:), None when absent."""
        return self._get_line("28C", body) or self._get_line("28", body)

    def account_number(self, body: str) -> Optional[str]:
        """Account identification from :25:."""
        return self._get_line("25", body)

    def reconcile_transaction(self, raw: RawLineBlock, draft: Transaction) -> Transaction:
        """Complete ``draft`` from the remittance text. Identity by default."""
        return draft

    def subfields(self, remittance: str) -> SubfieldMap:
        """Tokenize a remittance text with this dialect's vocabulary."""
        return self.tokenizer.tokenize(remittance, self.subfield_identifiers)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"

    @staticmethod
    def _get_line(tag: str, body: str) -> Optional[str]:
        """Return the first-line content of ``:tag:`` inside a statement body."""
        match = re.search(rf"^:{re.escape(tag)}:(.*)$", body, re.MULTILINE)
        if not match:
            return None
        value = match.group(1).strip()
        return value or None

    @staticmethod
    def _strip_currency_suffix(account: str) -> Optional[str]:
        """
        ``NL00INGB0001234567EUR`` -> ``NL00INGB0001234567``, else None.

        A numeric code (``...978``) is only stripped when the remainder has
        the IBAN length of its country, since the digits may end the BBAN.
        """
        match = _IBAN_WITH_CURRENCY.match(account)
        if not match:
            return None
        if match.group(2).isdigit() and IBAN_LENGTHS.get(account[:2]) != len(match.group(1)):
            return None
        return match.group(1)

    @staticmethod
    def _parse_embedded_date(value: str, fmt: str = "%d-%m-%Y") -> Optional[date]:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            logger.debug(f"Ignoring unparseable embedded date {value!r}")
            return None

    @staticmethod
    def _flatten(remittance: str) -> str:
        return normalize(remittance)
