"""
MT940 Statement Data Structures

Immutable result model produced by statement assembly:
- Balance (opening, closing and available balances)
- Transaction (one :61: statement line with its :86: details)
- Statement (one :20:/:25: block)
- RawLineBlock (transient :61:/:86: pair handed to a dialect)
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, NamedTuple, Optional, Tuple

from mt940_engine.statements.mt940_codes import (
    DebitCreditMark,
    get_transaction_type_description,
)

# Subfield identifier -> trimmed content, built per remittance line
SubfieldMap = Dict[str, str]


class RawLineBlock(NamedTuple):
    """Unparsed materials of one transaction."""

    primary: str  # :61: content
    remittance: str = ""  # :86: content, physical line breaks preserved


@dataclass(frozen=True)
class Balance:
    """A dated, signed balance (:60F:, :62F:, :64:, :65:)."""

    debit_credit: DebitCreditMark
    date: date
    currency: str
    amount: Decimal  # signed, debit balances negative

    def to_dict(self) -> Dict[str, Any]:
        return {
            "debit_credit": self.debit_credit.code,
            "date": self.date.isoformat(),
            "currency": self.currency,
            "amount": str(self.amount),
        }


@dataclass(frozen=True)
class Transaction:
    """
    A single statement line.

    Populated from the :61: primary line first; the active dialect then
    fills the remaining fields from the :86: remittance text.
    """

    amount: Decimal  # signed, debits negative
    debit_credit: DebitCreditMark
    value_date: Optional[date] = None
    book_date: Optional[date] = None
    funds_code: Optional[str] = None
    transaction_type: str = ""
    reference: str = ""
    bank_reference: Optional[str] = None
    supplementary_details: Optional[str] = None
    description: str = ""

    # Counterparty
    counterparty_account: Optional[str] = None
    counterparty_bic: Optional[str] = None
    counterparty_name: Optional[str] = None

    # SEPA references found in the remittance text
    end_to_end_reference: Optional[str] = None
    customer_reference: Optional[str] = None
    mandate_reference: Optional[str] = None
    creditor_id: Optional[str] = None
    debtor_id: Optional[str] = None
    payment_reference: Optional[str] = None
    purpose: Optional[str] = None
    ultimate_debtor: Optional[str] = None
    ultimate_creditor: Optional[str] = None

    # German DK business transaction code (GVC) and booking text
    transaction_code: Optional[str] = None
    booking_text: Optional[str] = None

    @property
    def is_credit(self) -> bool:
        return self.amount > 0 or (self.amount == 0 and self.debit_credit.is_credit)

    @property
    def is_reversal(self) -> bool:
        return self.debit_credit.is_reversal

    @property
    def transaction_type_description(self) -> Optional[str]:
        return get_transaction_type_description(self.transaction_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount),
            "debit_credit": self.debit_credit.code,
            "value_date": self.value_date.isoformat() if self.value_date else None,
            "book_date": self.book_date.isoformat() if self.book_date else None,
            "funds_code": self.funds_code,
            "transaction_type": self.transaction_type,
            "reference": self.reference,
            "bank_reference": self.bank_reference,
            "description": self.description,
            "counterparty_account": self.counterparty_account,
            "counterparty_bic": self.counterparty_bic,
            "counterparty_name": self.counterparty_name,
            "end_to_end_reference": self.end_to_end_reference,
            "customer_reference": self.customer_reference,
            "mandate_reference": self.mandate_reference,
            "creditor_id": self.creditor_id,
            "debtor_id": self.debtor_id,
            "payment_reference": self.payment_reference,
            "purpose": self.purpose,
            "ultimate_debtor": self.ultimate_debtor,
            "ultimate_creditor": self.ultimate_creditor,
            "transaction_code": self.transaction_code,
            "booking_text": self.booking_text,
        }


@dataclass(frozen=True)
class Statement:
    """One account statement with its transactions in bank order."""

    account: str
    statement_number: Optional[str] = None
    reference: Optional[str] = None
    opening_balance: Optional[Balance] = None
    closing_balance: Optional[Balance] = None
    closing_available_balance: Optional[Balance] = None
    forward_available_balances: Tuple[Balance, ...] = ()
    information: Optional[str] = None
    transactions: Tuple[Transaction, ...] = field(default_factory=tuple)
    dialect: str = ""

    @property
    def currency(self) -> Optional[str]:
        balance = self.opening_balance or self.closing_balance
        return balance.currency if balance else None

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def total_credits(self) -> Decimal:
        return sum((t.amount for t in self.transactions if t.amount > 0), Decimal("0"))

    @property
    def total_debits(self) -> Decimal:
        return sum((-t.amount for t in self.transactions if t.amount < 0), Decimal("0"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "statement_number": self.statement_number,
            "reference": self.reference,
            "currency": self.currency,
            "opening_balance": self.opening_balance.to_dict() if self.opening_balance else None,
            "closing_balance": self.closing_balance.to_dict() if self.closing_balance else None,
            "closing_available_balance": (
                self.closing_available_balance.to_dict()
                if self.closing_available_balance
                else None
            ),
            "forward_available_balances": [b.to_dict() for b in self.forward_available_balances],
            "information": self.information,
            "transactions": [t.to_dict() for t in self.transactions],
            "dialect": self.dialect,
            "summary": {
                "transaction_count": self.transaction_count,
                "total_credits": str(self.total_credits),
                "total_debits": str(self.total_debits),
            },
        }
