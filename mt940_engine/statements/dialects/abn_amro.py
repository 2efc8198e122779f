"""
ABN AMRO Dialect

ABN AMRO exports start with the ``ABNANL2A`` sender line instead of a SWIFT
envelope. SEPA remittance texts use ``/TRTP/.../IBAN/.../BIC/.../NAME/...``
subfields; older non-SEPA lines start with a dotted account number or a
``GIRO`` number.
"""

import re
from dataclasses import replace
from typing import Any, Dict, Optional

from mt940_engine.statements.dialects.base import DialectGrammar
from mt940_engine.statements.mt940_codes import ABN_AMRO_IDENTIFIERS
from mt940_engine.statements.mt940_message import RawLineBlock, Transaction

_LEGACY_ACCOUNT = re.compile(r"^([0-9]{1,3}\.[0-9]{1,2}\.[0-9]{1,2}\.[0-9]{1,3})")
_LEGACY_GIRO = re.compile(r"^GIRO +([0-9]+)")


class AbnAmroDialect(DialectGrammar):
    """ABN AMRO Bank N.V. statements."""

    name = "abn_amro"
    subfield_identifiers = ABN_AMRO_IDENTIFIERS

    def accepts(self, document: str) -> bool:
        return document.startswith("ABNANL")

    def account_number(self, body: str) -> Optional[str]:
        account = self._get_line("25", body)
        if account is None:
            return None
        return self._strip_currency_suffix(account) or account.lstrip("0")

    def reconcile_transaction(self, raw: RawLineBlock, draft: Transaction) -> Transaction:
        payload = self._flatten(raw.remittance)
        subfields = self.subfields(raw.remittance)
        changes: Dict[str, Any] = {"description": subfields.get("REMI") or raw.remittance}

        if subfields:
            changes["counterparty_account"] = subfields.get("IBAN") or None
            changes["counterparty_bic"] = subfields.get("BIC") or None
            changes["counterparty_name"] = subfields.get("NAME") or None
            changes["end_to_end_reference"] = subfields.get("EREF") or None
            changes["creditor_id"] = subfields.get("CSID") or None
            changes["mandate_reference"] = subfields.get("MARF") or None
        else:
            account = self._legacy_account(payload)
            if account:
                changes["counterparty_account"] = account

        return replace(draft, **changes)

    @staticmethod
    def _legacy_account(payload: str) -> Optional[str]:
        match = _LEGACY_ACCOUNT.match(payload)
        if match:
            return match.group(1).replace(".", "")
        match = _LEGACY_GIRO.match(payload)
        if match:
            return match.group(1)
        return None
