"""
ING Dialect

ING (Netherlands) deviations from nominal MT940:
- the document starts with the basic header block ``{1:F01INGBNL2A...``
- :25: carries an IBAN with the ISO 4217 currency appended
- the single :61: date is the book date, not the value date; the value date
  may be embedded in the remittance text as ``transactiedatum: dd-mm-yyyy``
- :86: uses ``/IDENT/`` subfields with a positional CNTP block
  (account/BIC/name/city) and USTD/STRD description blocks
"""

import re
from dataclasses import replace
from typing import Any, Dict, Optional

from mt940_engine.statements.dialects.base import DialectGrammar
from mt940_engine.statements.mt940_codes import (
    ING_IDENTIFIERS,
    SWIFT_X_NO_SLASH,
    SWIFT_X_WITH_SLASH,
)
from mt940_engine.statements.mt940_message import RawLineBlock, Transaction

_X = SWIFT_X_NO_SLASH
_X2 = SWIFT_X_WITH_SLASH

_VALUE_DATE = re.compile(r"transactiedatum: (\d{2}-\d{2}-\d{4})")
# account / BIC / name / city
_CNTP = re.compile(rf"/CNTP/({_X}*)/({_X}*)/({_X}*)/({_X}*)/")
# USTD sometimes carries two parts; the second one may contain slashes
_USTD = re.compile(rf"/USTD/({_X}*)/({_X2}*)/")
# type / description
_STRD = re.compile(rf"/STRD/({_X}*)/({_X}*)/")

# Transaction attribute -> subfields, ING's own identifier before the SEPA one
_REFERENCE_SUBFIELDS = {
    "end_to_end_reference": ("EREF",),
    "customer_reference": ("KREF",),
    "payment_reference": ("PREF",),
    "mandate_reference": ("MARF", "MREF"),
    "creditor_id": ("CSID", "CRED"),
    "debtor_id": ("DEBT",),
    "purpose": ("PURP", "SVWZ"),
    "ultimate_creditor": ("ULTC", "ABWE"),
    "ultimate_debtor": ("ULTD", "ABWA"),
}


class IngDialect(DialectGrammar):
    """ING Bank N.V. statements."""

    name = "ing"
    subfield_identifiers = ING_IDENTIFIERS

    def accepts(self, document: str) -> bool:
        return document[6:12] == "INGBNL"

    def statement_number(self, body: str) -> Optional[str]:
        return self._get_line("28C", body)

    def account_number(self, body: str) -> Optional[str]:
        account = self._get_line("25", body)
        if account is None:
            return None
        return self._strip_currency_suffix(account) or account.lstrip("0")

    def reconcile_transaction(self, raw: RawLineBlock, draft: Transaction) -> Transaction:
        payload = self._flatten(raw.remittance)
        changes: Dict[str, Any] = {"description": self.description(raw.remittance)}

        # An entry date in :61: is the book date already; nothing to swap then
        if draft.book_date is None:
            changes["book_date"] = draft.value_date
            changes["value_date"] = None
            match = _VALUE_DATE.search(payload)
            if match:
                changes["value_date"] = self._parse_embedded_date(match.group(1))

        counterparty = _CNTP.search(payload)
        if counterparty:
            changes["counterparty_account"] = counterparty.group(1) or None
            changes["counterparty_bic"] = counterparty.group(2) or None
            changes["counterparty_name"] = counterparty.group(3) or None

        subfields = self.subfields(raw.remittance)
        for attribute, identifiers in _REFERENCE_SUBFIELDS.items():
            value = next((subfields[i] for i in identifiers if subfields.get(i)), None)
            if value:
                changes[attribute] = value

        return replace(draft, **changes)

    def description(self, remittance: str) -> str:
        """USTD parts concatenated, else the STRD description, else the raw text."""
        payload = self._flatten(remittance)

        match = _USTD.search(payload)
        if match:
            return match.group(1) + match.group(2)

        match = _STRD.search(payload)
        if match:
            return match.group(2)

        return remittance
