"""
MT940 Statement Validator

Validates assembled statements:
- Opening and closing balances present
- Currency consistency
- Balance arithmetic (opening + transactions == closing)
- Account and counterparty IBAN/BIC format
- Continuity between consecutive statements of one account
"""

from decimal import Decimal
from typing import Any, Dict, List, Sequence

from mt940_engine.statements.mt940_message import Statement
from mt940_engine.validators.base_validator import (
    COMMON_CURRENCIES,
    BaseValidator,
    ValidationResult,
    ValidationSeverity,
    looks_like_iban,
    validate_bic,
    validate_currency_code,
    validate_iban,
)


class Mt940StatementValidator(BaseValidator):
    """
    Validator for parsed MT940 statements.

    Args:
        strict: Report warnings as errors
        check_counterparties: Validate counterparty IBAN and BIC formats
    """

    def __init__(self, strict: bool = False, check_counterparties: bool = True):
        super().__init__(strict)
        self.check_counterparties = check_counterparties

    @property
    def name(self) -> str:
        return "Mt940StatementValidator"

    @property
    def version(self) -> str:
        return "1.0"

    def validate(self, data: Any) -> ValidationResult:
        """
        Validate one statement, or a sequence of statements including
        their continuity.
        """
        result = self._create_result()

        if isinstance(data, Statement):
            self._validate_statement(data, result)
        elif isinstance(data, (list, tuple)) and all(isinstance(s, Statement) for s in data):
            for statement in data:
                self._validate_statement(statement, result)
            result.merge(self.check_sequence(data))
        else:
            result.add_error(
                "MT940_INVALID_INPUT",
                "Input must be a Statement or a sequence of Statements",
                severity=ValidationSeverity.CRITICAL,
            )

        return self._finish(result)

    def check_sequence(self, statements: Sequence[Statement]) -> ValidationResult:
        """
        Check that consecutive statements of the same account follow each
        other: same currency, and each opening balance equals the previous
        closing balance.
        """
        result = self._create_result()
        previous: Dict[str, Statement] = {}

        for statement in statements:
            before = previous.get(statement.account)
            previous[statement.account] = statement
            if before is None:
                continue

            label = statement.statement_number or statement.reference or "?"
            if before.currency and statement.currency and before.currency != statement.currency:
                result.add_error(
                    "MT940_SEQUENCE_CURRENCY",
                    f"Statement {label} changes currency from {before.currency} to {statement.currency}",
                    field="currency",
                    account=statement.account,
                )
            if before.closing_balance and statement.opening_balance:
                if before.closing_balance.amount != statement.opening_balance.amount:
                    result.add_error(
                        "MT940_SEQUENCE_BREAK",
                        f"Statement {label} does not open with the previous closing balance",
                        field="opening_balance",
                        account=statement.account,
                        expected=str(before.closing_balance.amount),
                        actual=str(statement.opening_balance.amount),
                    )

        result.metadata["statement_count"] = len(statements)
        return result

    def _validate_statement(self, statement: Statement, result: ValidationResult) -> None:
        label = statement.statement_number or statement.reference or statement.account

        if statement.opening_balance is None:
            result.add_error(
                "MT940_MISSING_OPENING_BALANCE",
                f"Statement {label} has no opening balance",
                field="opening_balance",
            )
        if statement.closing_balance is None:
            result.add_error(
                "MT940_MISSING_CLOSING_BALANCE",
                f"Statement {label} has no closing balance",
                field="closing_balance",
            )

        self._validate_currencies(statement, label, result)
        self._validate_balance_arithmetic(statement, label, result)
        self._validate_account(statement, label, result)

        if self.check_counterparties:
            self._validate_counterparties(statement, result)

    def _validate_currencies(self, statement: Statement, label: str, result: ValidationResult) -> None:
        balances = [
            b
            for b in (
                statement.opening_balance,
                statement.closing_balance,
                statement.closing_available_balance,
                *statement.forward_available_balances,
            )
            if b is not None
        ]
        currencies = {b.currency for b in balances}

        for currency in sorted(currencies):
            error = validate_currency_code(currency)
            if error:
                result.add_error("MT940_INVALID_CURRENCY", error, field="currency", value=currency)
            elif currency not in COMMON_CURRENCIES:
                result.add_warning(
                    "MT940_UNCOMMON_CURRENCY",
                    f"Currency {currency} is not common on bank statements",
                    field="currency",
                )

        if len(currencies) > 1:
            result.add_error(
                "MT940_CURRENCY_MISMATCH",
                f"Statement {label} mixes currencies: {', '.join(sorted(currencies))}",
                field="currency",
            )

    def _validate_balance_arithmetic(self, statement: Statement, label: str, result: ValidationResult) -> None:
        if statement.opening_balance is None or statement.closing_balance is None:
            return

        movement = sum((t.amount for t in statement.transactions), Decimal("0"))
        expected = statement.opening_balance.amount + movement
        if expected != statement.closing_balance.amount:
            result.add_error(
                "MT940_BALANCE_MISMATCH",
                f"Statement {label}: opening balance plus transactions does not match closing balance",
                field="closing_balance",
                expected=str(expected),
                actual=str(statement.closing_balance.amount),
            )

        if statement.opening_balance.date > statement.closing_balance.date:
            result.add_warning(
                "MT940_BALANCE_DATES",
                f"Statement {label} closes before it opens",
                field="closing_balance",
            )

    def _validate_account(self, statement: Statement, label: str, result: ValidationResult) -> None:
        if not looks_like_iban(statement.account):
            return
        error = validate_iban(statement.account)
        if error:
            result.add_error(
                "MT940_INVALID_ACCOUNT",
                f"Statement {label}: {error}",
                field="account",
                value=statement.account,
            )

    def _validate_counterparties(self, statement: Statement, result: ValidationResult) -> None:
        for index, transaction in enumerate(statement.transactions):
            account = transaction.counterparty_account
            if account and looks_like_iban(account):
                error = validate_iban(account)
                if error:
                    result.add_warning(
                        "MT940_INVALID_COUNTERPARTY_IBAN",
                        f"Transaction {index + 1}: {error}",
                        field="counterparty_account",
                        value=account,
                    )

            bic = transaction.counterparty_bic
            # German statements put a BLZ in the BIC position for domestic transfers
            if bic and not bic.isdigit():
                error = validate_bic(bic)
                if error:
                    result.add_warning(
                        "MT940_INVALID_COUNTERPARTY_BIC",
                        f"Transaction {index + 1}: {error}",
                        field="counterparty_bic",
                        value=bic,
                    )


def validate_statements(statements: List[Statement], strict: bool = False) -> ValidationResult:
    """Convenience function to validate parsed statements."""
    return Mt940StatementValidator(strict=strict).validate(statements)
