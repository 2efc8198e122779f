"""
MT940 Codes and Constants

Defines:
- Statement field tags consumed by the assembler
- Debit/credit marks
- Remittance subfield identifiers per bank vocabulary
- SWIFT character classes used by structural matches
- Transaction type identification codes
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional


class Mt940Tag(Enum):
    """MT940 field tags handled by statement assembly."""

    F20 = ("20", "Transaction Reference Number")
    F21 = ("21", "Related Reference")
    F25 = ("25", "Account Identification")
    F28 = ("28", "Statement Number")
    F28C = ("28C", "Statement Number/Sequence Number")
    F60 = ("60", "Opening Balance")
    F60F = ("60F", "Opening Balance (First)")
    F60M = ("60M", "Opening Balance (Intermediate)")
    F61 = ("61", "Statement Line")
    F86 = ("86", "Information to Account Owner")
    F62 = ("62", "Closing Balance")
    F62F = ("62F", "Closing Balance (Final)")
    F62M = ("62M", "Closing Balance (Intermediate)")
    F64 = ("64", "Closing Available Balance")
    F65 = ("65", "Forward Available Balance")

    def __init__(self, tag: str, name: str):
        self._tag = tag
        self._name = name

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def field_name(self) -> str:
        return self._name

    @property
    def is_header(self) -> bool:
        return self in (Mt940Tag.F20, Mt940Tag.F25)

    @property
    def is_opening_balance(self) -> bool:
        return self in (Mt940Tag.F60, Mt940Tag.F60F, Mt940Tag.F60M)

    @property
    def is_closing_balance(self) -> bool:
        return self in (Mt940Tag.F62, Mt940Tag.F62F, Mt940Tag.F62M)

    @property
    def is_balance(self) -> bool:
        return (
            self.is_opening_balance
            or self.is_closing_balance
            or self in (Mt940Tag.F64, Mt940Tag.F65)
        )

    @property
    def allowed_after_close(self) -> bool:
        """Tags that may still follow the closing balance of a statement."""
        return self in (Mt940Tag.F64, Mt940Tag.F65, Mt940Tag.F86)

    @classmethod
    def from_tag(cls, tag: str) -> Optional["Mt940Tag"]:
        """Get field definition from tag."""
        tag = tag.upper()
        for field in cls:
            if field.tag == tag:
                return field
        return None


class DebitCreditMark(Enum):
    """Debit/credit mark of a :61: statement line or a balance."""

    CREDIT = ("C", 1, False)
    DEBIT = ("D", -1, False)
    REVERSAL_OF_CREDIT = ("RC", -1, True)
    REVERSAL_OF_DEBIT = ("RD", 1, True)

    def __init__(self, code: str, sign: int, reversal: bool):
        self._code = code
        self._sign = sign
        self._reversal = reversal

    @property
    def code(self) -> str:
        return self._code

    @property
    def sign(self) -> int:
        """Multiplier applied to the unsigned wire amount."""
        return self._sign

    @property
    def is_reversal(self) -> bool:
        return self._reversal

    @property
    def is_credit(self) -> bool:
        return self._sign > 0

    @classmethod
    def from_code(cls, code: str) -> Optional["DebitCreditMark"]:
        code = code.strip().upper()
        for mark in cls:
            if mark.code == code:
                return mark
        return None


# SWIFT 'x' character class without the slash and apostrophe. Whitespace and
# curly braces are admitted because banks emit them inside free text.
SWIFT_X_NO_SLASH = r"[0-9a-zA-Z\-\?\(\)\.,+\{\}\:\s]"
# Same class including the slash, for trailing fields that may contain it
SWIFT_X_WITH_SLASH = r"[0-9a-zA-Z\-\?\(\)\.,+\{\}\:\s\/]"

# German DK continuation marker inside :86: (?20 .. ?29)
CONTINUATION_MARKER_PATTERN = r"\?2[0-9]"


# SEPA subfield identifiers shared by German banks (Verwendungszweck keys)
SEPA_IDENTIFIERS: FrozenSet[str] = frozenset(
    {
        "EREF",
        "KREF",
        "MREF",
        "CRED",
        "DEBT",
        "COAM",
        "OAMT",
        "SVWZ",
        "ABWA",
        "ABWE",
    }
)

ING_IDENTIFIERS: FrozenSet[str] = SEPA_IDENTIFIERS | frozenset(
    {
        "PREF",
        "CNTP",
        "REMI",
        "RTRN",
        "MARF",
        "CSID",
        "PURP",
        "ULTC",
        "ULTD",
    }
)

ABN_AMRO_IDENTIFIERS: FrozenSet[str] = frozenset(
    {"TRTP", "IBAN", "BIC", "NAME", "REMI", "EREF", "CSID", "MARF"}
)

GENERIC_IDENTIFIERS: FrozenSet[str] = frozenset(
    {"EREF", "REMI", "MARF", "ORDP", "BENM", "CSID"}
)


# Transaction type identification codes (third sub-field of :61:)
TRANSACTION_TYPE_CODES: Dict[str, str] = {
    "BNK": "Securities related item - bank fees",
    "BOE": "Bill of exchange",
    "BRF": "Brokerage fee",
    "CHG": "Charges and other expenses",
    "CHK": "Cheques",
    "CLR": "Cash letters/cheques remittance",
    "CMI": "Cash management item - no detail",
    "CMN": "Cash management item - notional pooling",
    "CMS": "Cash management item - sweeping",
    "CMT": "Cash management item - topping",
    "CMZ": "Cash management item - zero balancing",
    "COL": "Collections",
    "COM": "Commission",
    "DCR": "Documentary credit",
    "DDT": "Direct debit item",
    "DIS": "Dishonoured item",
    "DIV": "Dividends-warrants",
    "EQA": "Equivalent amount",
    "FEX": "Foreign exchange",
    "INT": "Interest",
    "LBX": "Lock box",
    "LDP": "Loan deposit",
    "MSC": "Miscellaneous",
    "RTI": "Returned item",
    "SEC": "Securities",
    "STO": "Standing order",
    "TCK": "Travellers cheques",
    "TRF": "Transfer",
    "VDA": "Value date adjustment",
}


def get_transaction_type_description(type_code: str) -> Optional[str]:
    """
    Describe a :61: transaction type such as ``NTRF`` or ``FCHG``.

    The first character is the identification type (N, F or S); the
    remaining three characters carry the code.
    """
    if not type_code or len(type_code) != 4:
        return None
    if type_code[0] == "S":
        return "SWIFT transfer (MT" + type_code[1:] + ")"
    return TRANSACTION_TYPE_CODES.get(type_code[1:].upper())
