"""
Generic Dialect

Nominal MT940 as described by SWIFT, used when no bank specific grammar
claims the document. Dates are taken as the standard lays them out and the
remittance text is only mined for the common ``/IDENT/`` subfields.
"""

from dataclasses import replace

from mt940_engine.statements.dialects.base import DialectGrammar
from mt940_engine.statements.mt940_codes import GENERIC_IDENTIFIERS
from mt940_engine.statements.mt940_message import RawLineBlock, Transaction


class GenericDialect(DialectGrammar):
    """Fallback grammar for any tagged statement document."""

    name = "generic"
    subfield_identifiers = GENERIC_IDENTIFIERS

    def accepts(self, document: str) -> bool:
        return ":20:" in document and ":25:" in document

    def reconcile_transaction(self, raw: RawLineBlock, draft: Transaction) -> Transaction:
        subfields = self.subfields(raw.remittance)

        # Ordering party pays us, beneficiary is paid by us
        if draft.is_credit:
            name = subfields.get("ORDP") or subfields.get("BENM")
        else:
            name = subfields.get("BENM") or subfields.get("ORDP")

        return replace(
            draft,
            description=subfields.get("REMI") or raw.remittance,
            counterparty_name=name or None,
            end_to_end_reference=subfields.get("EREF") or None,
            mandate_reference=subfields.get("MARF") or None,
            creditor_id=subfields.get("CSID") or None,
        )
