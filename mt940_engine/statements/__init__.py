"""
MT940 Customer Statement Support

Parsing of SWIFT MT940 statement documents as emitted by:
- ING (Netherlands)
- ABN AMRO
- German banks using the DK ?xx remittance format
- Any other bank following nominal MT940

Supports:
- Dialect detection from the raw document
- Statement and transaction assembly
- Remittance subfield tokenization (/EREF/, ?20SVWZ+, ...)
- Balance and continuity validation
"""

from mt940_engine.statements.mt940_codes import (
    Mt940Tag,
    DebitCreditMark,
    SEPA_IDENTIFIERS,
    ING_IDENTIFIERS,
    ABN_AMRO_IDENTIFIERS,
    GENERIC_IDENTIFIERS,
    get_transaction_type_description,
)
from mt940_engine.statements.mt940_message import (
    Balance,
    Transaction,
    Statement,
    RawLineBlock,
    SubfieldMap,
)
from mt940_engine.statements.line_normalizer import normalize
from mt940_engine.statements.subfield_tokenizer import (
    SubfieldTokenizer,
    tokenize,
    serialize,
)
from mt940_engine.statements.dialects import (
    DialectGrammar,
    IngDialect,
    AbnAmroDialect,
    GermanBankDialect,
    GenericDialect,
    DialectRegistry,
    build_registry,
    get_default_registry,
)
from mt940_engine.statements.mt940_parser import (
    AssemblerState,
    StatementAssembler,
    Mt940Parser,
    Mt940ParseResult,
    parse_mt940,
)
from mt940_engine.statements.mt940_validator import (
    Mt940StatementValidator,
    validate_statements,
)

__all__ = [
    # Codes
    "Mt940Tag",
    "DebitCreditMark",
    "SEPA_IDENTIFIERS",
    "ING_IDENTIFIERS",
    "ABN_AMRO_IDENTIFIERS",
    "GENERIC_IDENTIFIERS",
    "get_transaction_type_description",
    # Model
    "Balance",
    "Transaction",
    "Statement",
    "RawLineBlock",
    "SubfieldMap",
    # Tokenizing
    "normalize",
    "SubfieldTokenizer",
    "tokenize",
    "serialize",
    # Dialects
    "DialectGrammar",
    "IngDialect",
    "AbnAmroDialect",
    "GermanBankDialect",
    "GenericDialect",
    "DialectRegistry",
    "build_registry",
    "get_default_registry",
    # Parsing
    "AssemblerState",
    "StatementAssembler",
    "Mt940Parser",
    "Mt940ParseResult",
    "parse_mt940",
    # Validation
    "Mt940StatementValidator",
    "validate_statements",
]
