"""
German Bank Dialect

Statements of German banks (Sparkassen, Volksbanken and others following
the DK format). :25: carries ``BLZ/account`` and :86: is structured with
``?xx`` field markers:

    GVC (3 digits) directly after the tag
    ?00      booking text
    ?10      primanota
    ?20-?29  purpose lines, continued in ?60-?63
    ?30      counterparty BIC or BLZ
    ?31      counterparty IBAN or account number
    ?32-?33  counterparty name

SEPA purpose lines are further split into ``?2xEREF+...`` style subfields.
"""

import logging
import re
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from mt940_engine.statements.dialects.base import DialectGrammar
from mt940_engine.statements.mt940_codes import SEPA_IDENTIFIERS
from mt940_engine.statements.mt940_message import RawLineBlock, Transaction
from mt940_engine.statements.subfield_tokenizer import GERMAN_DELIMITER, SubfieldTokenizer

logger = logging.getLogger(__name__)

_BANK_CODE_ACCOUNT = re.compile(r"^:25:(\d{8})/", re.MULTILINE)
_FIELD_MARKER = re.compile(r"\?(\d{2})")
_PURPOSE_FIELDS = {str(n) for n in range(20, 30)} | {"60", "61", "62", "63"}

# Transaction attribute -> SEPA subfield
_REFERENCE_SUBFIELDS = {
    "end_to_end_reference": "EREF",
    "customer_reference": "KREF",
    "mandate_reference": "MREF",
    "creditor_id": "CRED",
    "debtor_id": "DEBT",
    "purpose": "SVWZ",
    "ultimate_debtor": "ABWA",
    "ultimate_creditor": "ABWE",
}


class GermanBankDialect(DialectGrammar):
    """
    DK format statements.

    Args:
        bank_codes: BLZ values this dialect accepts; empty accepts any
            ``BLZ/account`` statement
    """

    name = "german_bank"
    subfield_identifiers = SEPA_IDENTIFIERS
    tokenizer = SubfieldTokenizer(
        delimiter=GERMAN_DELIMITER,
        terminator=None,
        continuation_marker=r"\?(?:2[0-9]|6[0-3])",
    )

    def __init__(self, bank_codes: Iterable[str] = ()):
        self.bank_codes = frozenset(str(code) for code in bank_codes)

    def accepts(self, document: str) -> bool:
        match = _BANK_CODE_ACCOUNT.search(document)
        if not match:
            return False
        return not self.bank_codes or match.group(1) in self.bank_codes

    def reconcile_transaction(self, raw: RawLineBlock, draft: Transaction) -> Transaction:
        payload = self._flatten(raw.remittance)
        if "?" not in payload:
            return replace(draft, description=raw.remittance)

        code, fields = self.split_fields(payload)
        purpose_text = "".join(f"?{key}{value}" for key, value in fields if key in _PURPOSE_FIELDS)
        purpose_lines = [value for key, value in fields if key in _PURPOSE_FIELDS]
        subfields = self.subfields(purpose_text)

        changes: Dict[str, Any] = {
            "transaction_code": code,
            "booking_text": self._field(fields, "00"),
            "counterparty_bic": self._field(fields, "30"),
            "counterparty_account": self._field(fields, "31"),
            "counterparty_name": self._field(fields, "32", "33"),
            "description": subfields.get("SVWZ") or "".join(purpose_lines) or raw.remittance,
        }
        for attribute, identifier in _REFERENCE_SUBFIELDS.items():
            if subfields.get(identifier):
                changes[attribute] = subfields[identifier]

        return replace(draft, **changes)

    @staticmethod
    def split_fields(payload: str) -> Tuple[Optional[str], List[Tuple[str, str]]]:
        """
        Split a flattened :86: text into its GVC and ``?xx`` fields.

        Returns:
            (GVC or None, [(field key, content), ...]) in document order
        """
        parts = _FIELD_MARKER.split(payload)
        prefix = parts[0].strip()
        code = prefix[:3] if re.match(r"\d{3}", prefix) else None
        if prefix and code is None:
            logger.debug(f"No transaction code in remittance prefix {prefix!r}")

        fields = list(zip(parts[1::2], parts[2::2]))
        return code, fields

    @staticmethod
    def _field(fields: List[Tuple[str, str]], *keys: str) -> Optional[str]:
        value = "".join(content for key, content in fields if key in keys).strip()
        return value or None
