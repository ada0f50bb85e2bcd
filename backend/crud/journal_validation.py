from decimal import Decimal, InvalidOperation
from typing import Sequence, Tuple

from errors import ErrorKind, LedgerValidationError
from utils.money import ZERO, TOLERANCE, round_amount


def _amount(line, field: str, index: int) -> Decimal:
    value = line.get(field) if isinstance(line, dict) else getattr(line, field, None)
    if value is None:
        return ZERO
    try:
        value = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise LedgerValidationError(
            f"Line {index}: {field} must be a number, got {value!r}", ErrorKind.INVALID_AMOUNT
        )
    if not value.is_finite():
        raise LedgerValidationError(
            f"Line {index}: {field} must be a finite number", ErrorKind.INVALID_AMOUNT
        )
    return round_amount(value)


def validate_journal_lines(lines: Sequence) -> Tuple[Decimal, Decimal]:
    """
    Enforce the double-entry rules on a candidate set of lines.

    Accepts JournalItemCreate objects or plain dicts with ``debit``/``credit``.
    Amounts that are not finite numbers are rejected up front, the rest are
    rounded to cents before any check. Rules are applied in a
    fixed order and the first violation is raised with its own error kind.
    Nothing is written here.

    Returns:
        (total_debits, total_credits)
    """
    if not lines or len(lines) < 2:
        raise LedgerValidationError(
            "Journal entry must have at least 2 lines", ErrorKind.INSUFFICIENT_LINES
        )

    rounded = [
        (_amount(line, "debit", index), _amount(line, "credit", index))
        for index, line in enumerate(lines, start=1)
    ]

    for index, (debit, credit) in enumerate(rounded, start=1):
        if debit < 0 or credit < 0:
            raise LedgerValidationError(
                f"Line {index}: debit and credit amounts cannot be negative",
                ErrorKind.NEGATIVE_AMOUNT,
            )

    for index, (debit, credit) in enumerate(rounded, start=1):
        if debit > 0 and credit > 0:
            raise LedgerValidationError(
                f"Line {index}: a line cannot have both debit and credit amounts",
                ErrorKind.AMBIGUOUS_LINE,
            )

    for index, (debit, credit) in enumerate(rounded, start=1):
        if debit == ZERO and credit == ZERO:
            raise LedgerValidationError(
                f"Line {index}: a line must have either a debit or a credit amount",
                ErrorKind.EMPTY_LINE,
            )

    total_debits = sum((d for d, _ in rounded), ZERO)
    total_credits = sum((c for _, c in rounded), ZERO)
    if abs(total_debits - total_credits) > TOLERANCE:
        raise LedgerValidationError(
            f"Journal entry is not balanced. Debits: {total_debits:.2f}, Credits: {total_credits:.2f}",
            ErrorKind.UNBALANCED_ENTRY,
        )

    return total_debits, total_credits
