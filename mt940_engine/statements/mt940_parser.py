"""
MT940 Statement Parser

Turns a raw MT940 document into Statements:
- the dialect registry picks the bank grammar
- the StatementAssembler walks the tagged fields as a state machine
- the grammar reconciles every :61:/:86: pair into a Transaction
"""

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

from mt940_engine.core import metrics
from mt940_engine.core.config import InvalidTransactionPolicy, ParserConfig, get_config
from mt940_engine.core.exceptions import (
    MalformedStatementStructure,
    StatementParseError,
    UnparseableAmount,
    UnparseableDate,
)
from mt940_engine.statements.dialects.base import DialectGrammar
from mt940_engine.statements.dialects.registry import (
    DialectRegistry,
    build_registry,
    get_default_registry,
)
from mt940_engine.statements.mt940_codes import DebitCreditMark, Mt940Tag
from mt940_engine.statements.mt940_message import (
    Balance,
    RawLineBlock,
    Statement,
    Transaction,
)

logger = logging.getLogger(__name__)


# Field pattern: :TAG: at the start of a line
FIELD_START_PATTERN = re.compile(r"^:(\d{2}[A-Z]?):")

# Message trailers ending a SWIFT text block or an ABN AMRO message
TRAILER_LINES = frozenset({"-}", "-"})

STATEMENT_LINE_PATTERN = re.compile(
    r"^(?P<value_date>\d{6})"
    r"(?P<entry_date>\d{4})?"
    r"(?P<mark>R?[CD])"
    r"(?P<funds_code>[A-Z])?"
    r"(?P<amount>\d[\d,]*)"
    r"(?P<type>[A-Z][A-Z0-9]{3})"
    r"(?P<reference>.*?)"
    r"(?://(?P<bank_reference>.*))?$"
)

BALANCE_PATTERN = re.compile(
    r"^(?P<mark>[CD])(?P<date>\d{6})(?P<currency>[A-Z]{3})(?P<amount>\d[\d,]*)$"
)


class AssemblerState(Enum):
    """States of the statement assembly state machine."""

    AWAIT_HEADER = "await_header"
    IN_BODY = "in_body"
    AWAIT_DETAILS = "await_details"
    CLOSED = "closed"
    SKIP_TO_HEADER = "skip_to_header"


@dataclass
class TaggedField:
    """One logical field: the tag, its content (continuation lines joined) and position."""

    tag: str
    value: str
    line_number: int

    @property
    def first_line(self) -> str:
        return self.value.split("\n", 1)[0].strip()


def split_fields(document: str) -> List[TaggedField]:
    """
    Split a document into tagged fields.

    Lines before the first tag (SWIFT envelope blocks, ABN AMRO sender lines)
    and everything between a trailer and the next tag are skipped.
    """
    fields: List[TaggedField] = []
    current: Optional[TaggedField] = None

    lines = document.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    for line_number, line in enumerate(lines, 1):
        match = FIELD_START_PATTERN.match(line)
        if match:
            current = TaggedField(match.group(1), line[match.end():], line_number)
            fields.append(current)
        elif line.strip() in TRAILER_LINES or line.startswith("-}"):
            current = None
        elif current is not None and line.strip():
            current.value += "\n" + line

    return fields


def parse_date(yymmdd: str) -> date:
    """Parse a YYMMDD date. Years 80-99 belong to the 20th century."""
    try:
        year = int(yymmdd[0:2])
        year = 2000 + year if year < 80 else 1900 + year
        return date(year, int(yymmdd[2:4]), int(yymmdd[4:6]))
    except (ValueError, IndexError):
        raise UnparseableDate(f"Invalid date: {yymmdd!r}", value=yymmdd)


def parse_entry_date(mmdd: str, value_date: date) -> date:
    """Parse an MMDD entry date, taking the year from the value date."""
    try:
        month, day = int(mmdd[0:2]), int(mmdd[2:4])
        year = value_date.year
        # Booked across the turn of the year
        if value_date.month == 12 and month == 1:
            year += 1
        elif value_date.month == 1 and month == 12:
            year -= 1
        return date(year, month, day)
    except (ValueError, IndexError):
        raise UnparseableDate(f"Invalid entry date: {mmdd!r}", value=mmdd)


def parse_amount(amount: str, mark: DebitCreditMark) -> Decimal:
    """Parse a comma-decimal amount and apply the mark's sign."""
    try:
        value = Decimal(amount.replace(",", "."))
    except InvalidOperation:
        raise UnparseableAmount(f"Invalid amount: {amount!r}", value=amount)
    return value * mark.sign


def parse_balance(value: str) -> Balance:
    """Parse a balance field such as ``C240115EUR1234,56``."""
    value = value.strip()
    match = BALANCE_PATTERN.match(value)
    if not match:
        if not re.match(r"^[CD]\d{6}", value):
            raise UnparseableDate(f"Invalid balance date: {value!r}", value=value)
        raise UnparseableAmount(f"Invalid balance: {value!r}", value=value)

    mark = DebitCreditMark.from_code(match.group("mark"))
    return Balance(
        debit_credit=mark,
        date=parse_date(match.group("date")),
        currency=match.group("currency"),
        amount=parse_amount(match.group("amount"), mark),
    )


def parse_statement_line(primary: str) -> Transaction:
    """
    Build a draft Transaction from a :61: statement line.

    Layout: ``YYMMDD[MMDD](C|D|RC|RD)[funds code]amount type
    [reference][//bank reference][\\nsupplementary details]``.
    The first date is read as the value date, the optional entry date as
    the book date.

    Raises:
        UnparseableDate: The value or entry date is malformed
        UnparseableAmount: The mark, amount or type cannot be read
    """
    first, _, rest = primary.strip().partition("\n")
    first = first.strip()

    if not re.match(r"^\d{6}", first):
        raise UnparseableDate(f"Statement line has no value date: {first!r}", value=first[:6])
    value_date = parse_date(first[:6])

    match = STATEMENT_LINE_PATTERN.match(first)
    if not match:
        raise UnparseableAmount(f"Unreadable statement line: {first!r}", value=first)

    book_date = None
    if match.group("entry_date"):
        book_date = parse_entry_date(match.group("entry_date"), value_date)

    mark = DebitCreditMark.from_code(match.group("mark"))
    return Transaction(
        amount=parse_amount(match.group("amount"), mark),
        debit_credit=mark,
        value_date=value_date,
        book_date=book_date,
        funds_code=match.group("funds_code"),
        transaction_type=match.group("type"),
        reference=match.group("reference").strip(),
        bank_reference=(match.group("bank_reference") or "").strip() or None,
        supplementary_details=rest.strip() or None,
    )


@dataclass
class _PendingTransaction:
    primary: str
    draft: Transaction
    remittance: List[str] = field(default_factory=list)


@dataclass
class _StatementDraft:
    """Mutable statement under assembly."""

    start_line: int
    reference: Optional[str] = None
    has_account: bool = False
    fields: List[TaggedField] = field(default_factory=list)
    opening_balance: Optional[Balance] = None
    closing_balance: Optional[Balance] = None
    closing_available_balance: Optional[Balance] = None
    forward_available_balances: List[Balance] = field(default_factory=list)
    information: Optional[str] = None
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def body(self) -> str:
        return "\n".join(f":{f.tag}:{f.value}" for f in self.fields)


class StatementAssembler:
    """
    State machine grouping tagged fields into statements and transactions.

    One assembler handles one document; create a new one per parse.

    Args:
        dialect: Grammar selected for the document
        strict: Raise the first fatal error instead of collecting it
        invalid_transaction_policy: Abort the statement or skip the
            transaction when a :61: line is unparseable
    """

    def __init__(
        self,
        dialect: DialectGrammar,
        strict: bool = True,
        invalid_transaction_policy: InvalidTransactionPolicy = InvalidTransactionPolicy.ABORT_STATEMENT,
    ):
        self.dialect = dialect
        self.strict = strict
        self.invalid_transaction_policy = invalid_transaction_policy

        self.state = AssemblerState.AWAIT_HEADER
        self.statements: List[Statement] = []
        self.errors: List[StatementParseError] = []
        self.warnings: List[str] = []
        self._current: Optional[_StatementDraft] = None
        self._pending: Optional[_PendingTransaction] = None

    def assemble(self, document: str) -> List[Statement]:
        """
        Assemble all statements of ``document``.

        Raises:
            StatementParseError: In strict mode, on the first fatal error.
                ``statements`` holds what was completed before it.
        """
        for item in split_fields(document):
            try:
                self._consume(item)
            except StatementParseError as e:
                if e.line_number is None:
                    e.locate(item.line_number, item.tag)
                self._fail(e)

        self._emit_current()
        return self.statements

    def _consume(self, item: TaggedField) -> None:
        tag = item.tag
        field_tag = Mt940Tag.from_tag(tag)

        if self.state is AssemblerState.SKIP_TO_HEADER:
            if field_tag is None or not field_tag.is_header:
                return
            self.state = AssemblerState.AWAIT_HEADER

        if field_tag is Mt940Tag.F20:
            self._open_statement(item)
            self._current.reference = item.first_line or None
            self._current.fields.append(item)
            return

        if field_tag is Mt940Tag.F25:
            if self._current is None or self._current.has_account:
                self._open_statement(item)
            self._current.has_account = True
            self._current.fields.append(item)
            return

        if field_tag is None:
            if self._current is not None:
                self._current.fields.append(item)
            logger.debug(f"Ignoring unsupported tag :{tag}: at line {item.line_number}")
            return

        if self._current is None:
            if field_tag.is_balance or field_tag is Mt940Tag.F61:
                raise MalformedStatementStructure(
                    f":{tag}: ({field_tag.field_name}) outside of a statement"
                )
            logger.debug(f"Ignoring :{tag}: outside of a statement")
            return

        self._current.fields.append(item)

        if self.state is AssemblerState.CLOSED and not field_tag.allowed_after_close:
            if field_tag.is_balance or field_tag is Mt940Tag.F61:
                raise MalformedStatementStructure(
                    f":{tag}: ({field_tag.field_name}) after closing balance"
                )

        if field_tag is Mt940Tag.F61:
            self._finalize_pending()
            self._open_transaction(item)
        elif field_tag is Mt940Tag.F86:
            self._attach_details(item)
        elif field_tag.is_opening_balance:
            self._finalize_pending()
            self._current.opening_balance = parse_balance(item.first_line)
        elif field_tag.is_closing_balance:
            self._finalize_pending()
            self._current.closing_balance = parse_balance(item.first_line)
            self.state = AssemblerState.CLOSED
        elif field_tag is Mt940Tag.F64:
            self._finalize_pending()
            self._current.closing_available_balance = parse_balance(item.first_line)
        elif field_tag is Mt940Tag.F65:
            self._finalize_pending()
            self._current.forward_available_balances.append(parse_balance(item.first_line))
        elif field_tag not in (Mt940Tag.F28, Mt940Tag.F28C):
            logger.debug(f"Ignoring :{tag}: ({field_tag.field_name}) at line {item.line_number}")

    def _open_statement(self, item: TaggedField) -> None:
        self._emit_current()
        self._current = _StatementDraft(start_line=item.line_number)
        self.state = AssemblerState.IN_BODY

    def _open_transaction(self, item: TaggedField) -> None:
        try:
            draft = parse_statement_line(item.value)
        except (UnparseableDate, UnparseableAmount) as e:
            if self.invalid_transaction_policy is not InvalidTransactionPolicy.SKIP_TRANSACTION:
                raise
            message = f"Line {item.line_number}: skipped transaction - {e.message}"
            self.warnings.append(message)
            logger.warning(message)
            # Details of the skipped line are dropped with it
            self.state = AssemblerState.AWAIT_DETAILS
            return

        self._pending = _PendingTransaction(primary=item.value, draft=draft)
        self.state = AssemblerState.AWAIT_DETAILS

    def _attach_details(self, item: TaggedField) -> None:
        if self.state is AssemblerState.AWAIT_DETAILS:
            if self._pending is not None:
                self._pending.remittance.append(item.value)
            return

        # Statement level information not bound to a transaction
        if self._current.information:
            self._current.information += "\n" + item.value
        else:
            self._current.information = item.value

    def _finalize_pending(self) -> None:
        if self.state is AssemblerState.AWAIT_DETAILS:
            self.state = AssemblerState.IN_BODY
        if self._pending is None:
            return

        raw = RawLineBlock(self._pending.primary, "\n".join(self._pending.remittance))
        transaction = self.dialect.reconcile_transaction(raw, self._pending.draft)
        self._current.transactions.append(transaction)
        self._pending = None

    def _emit_current(self) -> None:
        if self._current is None:
            return

        self._finalize_pending()
        draft = self._current
        self._current = None
        self.state = AssemblerState.AWAIT_HEADER

        body = draft.body
        account = self.dialect.account_number(body)
        if not account:
            self._fail(
                MalformedStatementStructure(
                    "Statement has no account identification",
                    line_number=draft.start_line,
                    tag="25",
                )
            )
            return

        statement = Statement(
            account=account,
            statement_number=self.dialect.statement_number(body),
            reference=draft.reference,
            opening_balance=draft.opening_balance,
            closing_balance=draft.closing_balance,
            closing_available_balance=draft.closing_available_balance,
            forward_available_balances=tuple(draft.forward_available_balances),
            information=draft.information,
            transactions=tuple(draft.transactions),
            dialect=self.dialect.name,
        )
        self.statements.append(statement)
        logger.debug(
            f"Assembled statement {statement.statement_number} for {account} "
            f"with {statement.transaction_count} transactions"
        )

    def _fail(self, error: StatementParseError) -> None:
        error.statements = list(self.statements)
        if self.strict:
            raise error

        self.errors.append(error)
        logger.warning(f"Dropping statement: {error}")
        self._current = None
        self._pending = None
        self.state = AssemblerState.SKIP_TO_HEADER


@dataclass
class Mt940ParseResult:
    """Outcome of parsing one document."""

    statements: List[Statement] = field(default_factory=list)
    errors: List[StatementParseError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    dialect: Optional[str] = None

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def transaction_count(self) -> int:
        return sum(s.transaction_count for s in self.statements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dialect": self.dialect,
            "success": self.success,
            "statements": [s.to_dict() for s in self.statements],
            "errors": [str(e) for e in self.errors],
            "warnings": list(self.warnings),
        }


class Mt940Parser:
    """
    Parser for MT940 statement documents.

    Args:
        config: Parser settings; defaults to the ``parser`` section of the
            global configuration
        registry: Dialect registry; built from ``config`` when omitted
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        registry: Optional[DialectRegistry] = None,
    ):
        self.config = config or get_config().parser
        if registry is None:
            if self.config == ParserConfig():
                registry = get_default_registry()
            else:
                registry = build_registry(self.config)
        self.registry = registry

    def parse(self, document: str) -> Mt940ParseResult:
        """
        Parse a complete MT940 document.

        Raises:
            UnrecognizedDialect: No dialect accepts the document
            StatementParseError: In strict mode, on the first fatal error
        """
        started = time.perf_counter()
        dialect = self.registry.select(document)
        if self.config.metrics_enabled:
            metrics.DIALECT_SELECTION.labels(dialect=dialect.name).inc()

        assembler = StatementAssembler(
            dialect,
            strict=self.config.strict,
            invalid_transaction_policy=self.config.invalid_transaction_policy,
        )
        try:
            statements = assembler.assemble(document)
        except StatementParseError as e:
            self._record(dialect.name, e.statements, 1, started)
            logger.error(f"Failed to parse {dialect.name} document: {e}")
            raise

        result = Mt940ParseResult(
            statements=statements,
            errors=assembler.errors,
            warnings=assembler.warnings,
            dialect=dialect.name,
        )
        self._record(dialect.name, statements, len(result.errors), started)
        logger.info(
            f"Parsed {len(statements)} statements with {result.transaction_count} "
            f"transactions ({dialect.name}, {len(result.errors)} errors, "
            f"{len(result.warnings)} warnings)"
        )
        return result

    def parse_statements(self, document: str) -> List[Statement]:
        """Parse a document and return only its statements."""
        return self.parse(document).statements

    def _record(self, dialect: str, statements: List[Statement], failed: int, started: float) -> None:
        if not self.config.metrics_enabled:
            return
        metrics.record_document(
            dialect,
            statements=len(statements),
            transactions=sum(s.transaction_count for s in statements),
            failed=failed,
            duration=time.perf_counter() - started,
        )


def parse_mt940(document: str, config: Optional[ParserConfig] = None) -> Mt940ParseResult:
    """
    Convenience function to parse an MT940 document.

    Args:
        document: Raw MT940 text
        config: Parser settings

    Returns:
        Mt940ParseResult
    """
    return Mt940Parser(config).parse(document)
