"""
Tests for MT940 Statement Parsing

Tests cover:
- :61: statement line and balance parsing
- Statement assembly for every supported bank
- Transaction grouping and ordering
- Error policies (strict, lenient, invalid transaction handling)
- Metrics and logging of a parse
"""

import logging

import pytest
from datetime import date
from decimal import Decimal
from prometheus_client import REGISTRY

from mt940_engine.core import config as config_module
from mt940_engine.core.config import InvalidTransactionPolicy, ParserConfig
from mt940_engine.core.exceptions import (
    MalformedStatementStructure,
    StatementParseError,
    UnparseableAmount,
    UnparseableDate,
    UnrecognizedDialect,
)
from mt940_engine.statements import (
    DebitCreditMark,
    GenericDialect,
    Mt940Parser,
    Mt940Tag,
    StatementAssembler,
    parse_mt940,
)
from mt940_engine.statements.mt940_parser import (
    AssemblerState,
    parse_balance,
    parse_date,
    parse_statement_line,
    split_fields,
)


TWO_STATEMENTS = """:20:STMT1
:25:ACC1
:60F:C240101EUR0,00
:61:240101C1,00NTRFA
:86:first
:62F:C240101EUR1,00
:20:STMT2
:25:ACC2
:60F:C240102EUR0,00
:61:240102C2,00NTRFB
:86:second
:61:240102C3,00NTRFC
:62F:C240102EUR5,00"""


BROKEN_MIDDLE_STATEMENT = """:20:S1
:25:A1
:60F:C240101EUR0,00
:61:240101C1,00NTRFA
:62F:C240101EUR1,00
:20:S2
:25:A2
:60F:C240101EUR0,00
:62F:C240101EUR0,00
:61:240101C1,00NTRFB
:86:orphan
:20:S3
:25:A3
:60F:C240101EUR0,00
:62F:C240101EUR0,00"""


BAD_TRANSACTION = """:20:S1
:25:A1
:60F:C240101EUR0,00
:61:240101C1,00NTRFA
:86:good one
:61:241301C2,00NTRFB
:86:bad date
:61:240102C3,00NTRFC
:62F:C240102EUR4,00"""


def make_parser(**settings):
    settings.setdefault("metrics_enabled", False)
    return Mt940Parser(ParserConfig(**settings))


class TestStatementLine:
    """Tests for :61: primary line parsing."""

    def test_full_statement_line(self):
        """Test every part of a :61: line."""
        transaction = parse_statement_line(
            "1402200220C1,56NTRFEREF//00000000001005\n/TRCD/00100/"
        )
        assert transaction.value_date == date(2014, 2, 20)
        assert transaction.book_date == date(2014, 2, 20)
        assert transaction.debit_credit == DebitCreditMark.CREDIT
        assert transaction.amount == Decimal("1.56")
        assert transaction.transaction_type == "NTRF"
        assert transaction.reference == "EREF"
        assert transaction.bank_reference == "00000000001005"
        assert transaction.supplementary_details == "/TRCD/00100/"
        assert transaction.description == ""

    def test_debit_is_negative(self):
        """Test the sign of a debit."""
        transaction = parse_statement_line("240101D12,50NCHGNONREF")
        assert transaction.amount == Decimal("-12.50")
        assert transaction.book_date is None
        assert transaction.bank_reference is None

    @pytest.mark.parametrize(
        "line,mark,amount",
        [
            ("240101RC5,00NTRFX", DebitCreditMark.REVERSAL_OF_CREDIT, Decimal("-5")),
            ("240101RD5,00NTRFX", DebitCreditMark.REVERSAL_OF_DEBIT, Decimal("5")),
        ],
    )
    def test_reversals(self, line, mark, amount):
        """Test reversal marks and their signs."""
        transaction = parse_statement_line(line)
        assert transaction.debit_credit == mark
        assert transaction.amount == amount
        assert transaction.is_reversal

    def test_funds_code(self):
        """Test the optional funds code after the mark."""
        transaction = parse_statement_line("240101CR5,00NTRFX")
        assert transaction.funds_code == "R"
        assert transaction.amount == Decimal("5.00")

    def test_amount_without_decimals(self):
        """Test an amount ending in the decimal comma."""
        assert parse_statement_line("110522D9,N192NONREF").amount == Decimal("-9")

    def test_entry_date_year_rollover(self):
        """Test entry dates booked across the turn of the year."""
        forward = parse_statement_line("2312290102C1,00NTRFX")
        assert forward.book_date == date(2024, 1, 2)

        backward = parse_statement_line("2401021229D1,00NTRFX")
        assert backward.book_date == date(2023, 12, 29)

    def test_missing_value_date(self):
        """Test that a line without a date is an unparseable date."""
        with pytest.raises(UnparseableDate):
            parse_statement_line("ABC")

    def test_invalid_value_date(self):
        """Test an impossible calendar date."""
        with pytest.raises(UnparseableDate):
            parse_statement_line("241301C2,00NTRFB")

    def test_invalid_entry_date(self):
        """Test an impossible entry date."""
        with pytest.raises(UnparseableDate):
            parse_statement_line("2401011340C2,00NTRFB")

    def test_unreadable_amount(self):
        """Test a line whose amount cannot be read."""
        with pytest.raises(UnparseableAmount):
            parse_statement_line("240101C,50NTRFA")

    def test_malformed_amount(self):
        """Test an amount with more than one decimal comma."""
        with pytest.raises(UnparseableAmount):
            parse_statement_line("240101C1,2,3NTRFA")

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("790101", date(2079, 1, 1)),
            ("800101", date(1980, 1, 1)),
            ("000229", date(2000, 2, 29)),
        ],
    )
    def test_century(self, value, expected):
        """Test the two-digit year rule."""
        assert parse_date(value) == expected


class TestBalance:
    """Tests for balance fields."""

    def test_credit_balance(self):
        """Test a credit opening balance."""
        balance = parse_balance("C140219EUR662,23")
        assert balance.debit_credit == DebitCreditMark.CREDIT
        assert balance.date == date(2014, 2, 19)
        assert balance.currency == "EUR"
        assert balance.amount == Decimal("662.23")

    def test_debit_balance(self):
        """Test that debit balances are negative."""
        assert parse_balance("D240101EUR10,00").amount == Decimal("-10.00")

    def test_bad_balance_amount(self):
        """Test a balance with an unreadable amount."""
        with pytest.raises(UnparseableAmount):
            parse_balance("C240101EURabc")

    def test_bad_balance_date(self):
        """Test a balance without a date."""
        with pytest.raises(UnparseableDate):
            parse_balance("CXXEUR1,00")


class TestSplitFields:
    """Tests for tagged field extraction."""

    def test_envelope_and_trailer_skipped(self):
        """Test that SWIFT blocks and trailers never become fields."""
        fields = split_fields("{1:F01X}\n{4:\n:20:REF\n:25:ACC\n-}\n{5:{CHK:1}}")
        assert [(f.tag, f.value) for f in fields] == [("20", "REF"), ("25", "ACC")]

    def test_continuation_lines_joined(self):
        """Test that continuation lines stay in the field with their breaks."""
        fields = split_fields(":86:line one\nline two\n:62F:C240101EUR1,00")
        assert fields[0].value == "line one\nline two"
        assert fields[1].line_number == 3

    def test_crlf(self):
        """Test CRLF documents."""
        fields = split_fields(":20:REF\r\n:25:ACC\r\n")
        assert [f.value for f in fields] == ["REF", "ACC"]


class TestIngStatement:
    """Tests for a complete ING document."""

    def test_statement(self, parser, ing_document):
        """Test statement level fields."""
        result = parser.parse(ing_document)
        assert result.dialect == "ing"
        assert result.success
        assert len(result.statements) == 1

        statement = result.statements[0]
        assert statement.account == "NL00INGB0001234567"
        assert statement.statement_number == "00000"
        assert statement.reference == "P140220000000001"
        assert statement.dialect == "ing"
        assert statement.currency == "EUR"
        assert statement.opening_balance.amount == Decimal("662.23")
        assert statement.closing_balance.amount == Decimal("752.22")
        assert statement.closing_available_balance.amount == Decimal("752.22")
        assert [b.date for b in statement.forward_available_balances] == [date(2014, 2, 24)]
        assert statement.information == "/SUM/4/2/11,57/101,56/"

    def test_transactions(self, parser, ing_document):
        """Test reconciled ING transactions in bank order."""
        statement = parser.parse(ing_document).statements[0]
        first, second, third, fourth = statement.transactions

        assert first.amount == Decimal("1.56")
        assert first.book_date == date(2014, 2, 20)
        assert first.value_date == date(2014, 2, 20)
        assert first.counterparty_account == "NL32INGB0000012345"
        assert first.counterparty_bic == "INGBNL2A"
        assert first.counterparty_name == "ING BANK NV INZAKE WEB"
        assert first.description == "EV10001REP1000000T1000"
        assert first.end_to_end_reference == "EV12341REP1231456T1234"

        assert second.amount == Decimal("-1.57")
        assert second.book_date == date(2014, 2, 20)
        assert second.value_date == date(2014, 2, 19)
        assert second.description == "TOTAAL 1 VZ"
        assert second.payment_reference == "M000000003333333"

        assert third.amount == Decimal("100.00")
        assert third.description == ""
        assert third.book_date == date(2014, 2, 21)
        assert third.value_date is None

        assert fourth.amount == Decimal("-10.00")
        assert fourth.description == "Factuur 2014-001"

    def test_crlf_document(self, parser, ing_document):
        """Test that CRLF line endings give the same result."""
        lf = parser.parse(ing_document).statements
        crlf = parser.parse(ing_document.replace("\n", "\r\n")).statements
        assert crlf == lf


class TestOtherBankStatements:
    """Tests for complete German, ABN AMRO and generic documents."""

    def test_german_statement(self, parser, german_document):
        """Test a DK format statement."""
        result = parser.parse(german_document)
        assert result.dialect == "german_bank"

        statement = result.statements[0]
        assert statement.account == "10020030/1234567890"
        assert statement.statement_number == "00001/001"

        debit, credit = statement.transactions
        assert debit.amount == Decimal("-50.00")
        assert debit.transaction_type == "N005"
        assert debit.description == "Stromrechnung Januar"
        assert debit.counterparty_name == "Stadtwerke Musterstadt GmbH"
        assert credit.amount == Decimal("250.00")
        assert credit.description == "Gehalt Januar Danke"

    def test_abn_amro_statement(self, parser, abn_amro_document):
        """Test an ABN AMRO statement with sender lines."""
        result = parser.parse(abn_amro_document)
        assert result.dialect == "abn_amro"

        statement = result.statements[0]
        assert statement.account == "517852257"
        assert statement.statement_number == "19321/1"
        assert statement.reference == "ABN AMRO BANK NV"

        legacy, sepa = statement.transactions
        assert legacy.amount == Decimal("-9")
        assert legacy.counterparty_account == "428428"
        assert legacy.description.startswith("GIRO   428428 KPN")
        assert "INCL. 1,44 BTW" in legacy.description
        assert sepa.counterparty_name == "J DOE"
        assert sepa.book_date == date(2011, 5, 23)
        assert sepa.value_date == date(2011, 5, 21)

    def test_generic_statement(self, parser, generic_document):
        """Test a nominal MT940 statement."""
        result = parser.parse(generic_document)
        assert result.dialect == "generic"

        statement = result.statements[0]
        assert statement.account == "GB82WEST12345698765432"
        assert statement.statement_number == "7/1"
        assert statement.total_credits == Decimal("150.00")
        assert statement.total_debits == Decimal("20.00")

        credit, fee = statement.transactions
        assert credit.reference == "INV-1001"
        assert credit.bank_reference == "BANKREF1"
        assert credit.counterparty_name == "ACME LTD"
        assert fee.description == "Monthly account fee"


class TestFieldTags:
    """Tests for the tag classification used by assembly."""

    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("20", Mt940Tag.F20),
            ("28c", Mt940Tag.F28C),
            ("60", Mt940Tag.F60),
            ("62M", Mt940Tag.F62M),
            ("13D", None),
        ],
    )
    def test_from_tag(self, tag, expected):
        """Test lookup by wire tag, case insensitive."""
        assert Mt940Tag.from_tag(tag) is expected

    def test_balance_classification(self):
        """Test which tags carry balances."""
        opening = {t for t in Mt940Tag if t.is_opening_balance}
        closing = {t for t in Mt940Tag if t.is_closing_balance}
        assert opening == {Mt940Tag.F60, Mt940Tag.F60F, Mt940Tag.F60M}
        assert closing == {Mt940Tag.F62, Mt940Tag.F62F, Mt940Tag.F62M}
        assert Mt940Tag.F64.is_balance and Mt940Tag.F65.is_balance
        assert not Mt940Tag.F61.is_balance

    def test_header_and_trailing_tags(self):
        """Test header tags and tags allowed after the closing balance."""
        assert {t for t in Mt940Tag if t.is_header} == {Mt940Tag.F20, Mt940Tag.F25}
        assert {t for t in Mt940Tag if t.allowed_after_close} == {
            Mt940Tag.F64,
            Mt940Tag.F65,
            Mt940Tag.F86,
        }


class TestAssembly:
    """Tests for statement and transaction grouping."""

    def test_two_header_blocks(self, parser):
        """Test that consecutive header blocks give separate statements."""
        statements = parser.parse_statements(TWO_STATEMENTS)

        assert [s.account for s in statements] == ["ACC1", "ACC2"]
        assert [t.description for t in statements[0].transactions] == ["first"]
        assert [t.amount for t in statements[1].transactions] == [Decimal("2"), Decimal("3")]

    def test_transaction_order_preserved(self, parser):
        """Test that transactions keep their :61: order."""
        document = """:20:S
:25:A
:60F:C240101EUR0,00
:61:240103C3,00NTRFC
:61:240101C1,00NTRFA
:61:240102C2,00NTRFB
:62F:C240103EUR6,00"""
        statement = parser.parse_statements(document)[0]
        assert [t.reference for t in statement.transactions] == ["C", "A", "B"]

    def test_statement_line_without_details(self, parser):
        """Test that a :61: followed by another :61: is kept with an empty description."""
        document = """:20:S
:25:A
:60F:C240101EUR0,00
:61:240101C1,00NTRFA
:61:240101C2,00NTRFB
:86:details of B
:62F:C240101EUR3,00"""
        first, second = parser.parse_statements(document)[0].transactions
        assert first.description == ""
        assert second.description == "details of B"

    def test_last_statement_line_without_details(self, parser):
        """Test a pending transaction finalized by end of document."""
        document = ":20:S\n:25:A\n:60F:C240101EUR0,00\n:61:240101C1,00NTRFA"
        statement = parser.parse_statements(document)[0]
        assert len(statement.transactions) == 1
        assert statement.closing_balance is None

    def test_repeated_details_joined(self, parser):
        """Test that several :86: tags of one transaction are joined."""
        document = """:20:S
:25:A
:61:240101C1,00NTRFA
:86:line one
:86:line two
:62F:C240101EUR1,00"""
        transaction = parser.parse_statements(document)[0].transactions[0]
        assert transaction.description == "line one\nline two"

    def test_statement_information(self, parser):
        """Test an :86: not bound to a transaction."""
        document = """:20:S
:25:A
:60F:C240101EUR0,00
:86:statement note
:62F:C240101EUR0,00"""
        statement = parser.parse_statements(document)[0]
        assert statement.information == "statement note"
        assert statement.transactions == ()

    def test_account_tag_opens_statement(self, parser):
        """Test that a second :25: starts a new statement without :20:."""
        document = """:20:S1
:25:A1
:60F:C240101EUR0,00
:62F:C240101EUR0,00
:25:A2
:60F:C240101EUR0,00
:62F:C240101EUR0,00"""
        statements = parser.parse_statements(document)
        assert [s.account for s in statements] == ["A1", "A2"]
        assert statements[1].reference is None

    def test_plain_balance_tags(self, parser):
        """Test :60: and :62: without the F/M qualifier."""
        document = """:20:S
:25:A
:60:C240101EUR0,00
:61:240101C1,00NTRFA
:62:C240101EUR1,00"""
        statement = parser.parse_statements(document)[0]
        assert statement.opening_balance.amount == Decimal("0.00")
        assert statement.closing_balance.amount == Decimal("1.00")
        assert len(statement.transactions) == 1

    def test_unknown_tags_ignored(self, parser):
        """Test that unsupported tags do not disturb assembly."""
        document = """:20:S
:21:RELATED
:25:A
:13D:2401011200+0100
:60F:C240101EUR0,00
:61:240101C1,00NTRFA
:86:details
:62F:C240101EUR1,00"""
        statement = parser.parse_statements(document)[0]
        assert statement.transactions[0].description == "details"

    def test_assembler_state(self):
        """Test the state after a closed statement."""
        assembler = StatementAssembler(GenericDialect())
        assembler.assemble(":20:S\n:25:A\n:62F:C240101EUR0,00")
        assert assembler.state is AssemblerState.AWAIT_HEADER
        assert len(assembler.statements) == 1


class TestErrorPolicies:
    """Tests for strict and lenient error handling."""

    def test_statement_line_outside_statement(self, parser):
        """Test a :61: before any header."""
        document = ":61:240101C1,00NTRFA\n:20:S\n:25:A"
        with pytest.raises(MalformedStatementStructure) as exc_info:
            parser.parse(document)

        assert exc_info.value.line_number == 1
        assert exc_info.value.tag == "61"

    def test_balance_after_closing_balance(self, parser):
        """Test an opening balance following the closing one."""
        document = ":20:S\n:25:A\n:62F:C240101EUR0,00\n:60F:C240101EUR0,00"
        with pytest.raises(MalformedStatementStructure) as exc_info:
            parser.parse(document)

        assert exc_info.value.tag == "60F"
        assert exc_info.value.line_number == 4
        assert "Opening Balance (First)" in str(exc_info.value)

    def test_strict_keeps_completed_statements(self, parser):
        """Test the partial result attached to a strict failure."""
        with pytest.raises(MalformedStatementStructure) as exc_info:
            parser.parse(BROKEN_MIDDLE_STATEMENT)

        assert exc_info.value.line_number == 10
        assert [s.account for s in exc_info.value.statements] == ["A1"]

    def test_lenient_resumes_at_next_header(self, lenient_parser):
        """Test that statements after a malformed one are still returned."""
        result = lenient_parser.parse(BROKEN_MIDDLE_STATEMENT)

        assert [s.account for s in result.statements] == ["A1", "A3"]
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], MalformedStatementStructure)
        assert not result.success

    def test_missing_account(self, lenient_parser):
        """Test a statement without :25:."""
        document = """:20:S1
:60F:C240101EUR0,00
:62F:C240101EUR0,00
:20:S2
:25:A2
:60F:C240101EUR0,00
:62F:C240101EUR0,00"""
        result = lenient_parser.parse(document)
        assert [s.account for s in result.statements] == ["A2"]
        assert result.errors[0].line_number == 1

    def test_abort_statement_policy(self):
        """Test that an unparseable :61: aborts the statement by default."""
        with pytest.raises(UnparseableDate) as exc_info:
            make_parser().parse(BAD_TRANSACTION)
        assert exc_info.value.line_number == 6

        result = make_parser(strict=False).parse(BAD_TRANSACTION)
        assert result.statements == []
        assert isinstance(result.errors[0], UnparseableDate)

    def test_skip_transaction_policy(self, caplog):
        """Test that only the bad transaction is omitted."""
        parser = make_parser(invalid_transaction_policy=InvalidTransactionPolicy.SKIP_TRANSACTION)

        with caplog.at_level(logging.WARNING, logger="mt940_engine"):
            result = parser.parse(BAD_TRANSACTION)

        statement = result.statements[0]
        assert [t.amount for t in statement.transactions] == [Decimal("1"), Decimal("3")]
        assert statement.transactions[0].description == "good one"
        assert statement.information is None
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("Line 6")
        assert "skipped transaction" in caplog.text

    def test_bad_balance_aborts_even_when_skipping(self):
        """Test that balances are never skipped."""
        document = ":20:S\n:25:A\n:60F:C240101EURabc\n:62F:C240101EUR0,00"
        parser = make_parser(
            strict=False,
            invalid_transaction_policy=InvalidTransactionPolicy.SKIP_TRANSACTION,
        )
        result = parser.parse(document)
        assert result.statements == []
        assert isinstance(result.errors[0], UnparseableAmount)

    def test_unrecognized_dialect_always_raised(self, lenient_parser):
        """Test that dialect failure has no partial result."""
        with pytest.raises(UnrecognizedDialect):
            lenient_parser.parse("no statement here")

    def test_errors_share_base_class(self, parser):
        """Test that every parse failure is a StatementParseError."""
        with pytest.raises(StatementParseError):
            parser.parse(BAD_TRANSACTION)


class TestParserFacade:
    """Tests for the parser entry points."""

    def test_parse_mt940(self, generic_document):
        """Test the convenience function."""
        result = parse_mt940(generic_document, ParserConfig(metrics_enabled=False))
        assert result.transaction_count == 2

    def test_global_config_used_by_default(self, monkeypatch):
        """Test that a parser built without settings follows the environment."""
        monkeypatch.setattr(config_module, "_config", None)
        monkeypatch.setenv("MT940_INVALID_TRANSACTION_POLICY", "skip_transaction")
        monkeypatch.setenv("MT940_METRICS_ENABLED", "false")

        parser = Mt940Parser()
        result = parser.parse(BAD_TRANSACTION)

        assert parser.config.invalid_transaction_policy is InvalidTransactionPolicy.SKIP_TRANSACTION
        assert [t.amount for t in result.statements[0].transactions] == [Decimal("1"), Decimal("3")]
        assert len(result.warnings) == 1

    def test_result_to_dict(self, parser, generic_document):
        """Test the dictionary form of a result."""
        data = parser.parse(generic_document).to_dict()
        assert data["dialect"] == "generic"
        assert data["success"] is True
        assert data["statements"][0]["summary"]["transaction_count"] == 2
        assert data["statements"][0]["transactions"][0]["amount"] == "150.00"

    def test_independent_parses(self, parser, ing_document, generic_document):
        """Test that one parser instance handles documents independently."""
        first = parser.parse(ing_document)
        second = parser.parse(generic_document)
        again = parser.parse(ing_document)
        assert second.dialect == "generic"
        assert again.statements == first.statements

    def test_metrics_recorded(self, generic_document):
        """Test dialect selection and transaction counters."""
        labels = {"dialect": "generic"}
        selected = REGISTRY.get_sample_value("mt940_dialect_selection_total", labels) or 0
        parsed = REGISTRY.get_sample_value("mt940_transactions_parsed_total", labels) or 0

        Mt940Parser(ParserConfig(metrics_enabled=True)).parse(generic_document)

        assert REGISTRY.get_sample_value("mt940_dialect_selection_total", labels) == selected + 1
        assert REGISTRY.get_sample_value("mt940_transactions_parsed_total", labels) == parsed + 2

    def test_summary_logged(self, parser, generic_document, caplog):
        """Test the info summary of a parse."""
        with caplog.at_level(logging.INFO, logger="mt940_engine"):
            parser.parse(generic_document)
        assert "Parsed 1 statements with 2 transactions (generic" in caplog.text
