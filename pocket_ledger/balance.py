"""Running balance computation over a period's transactions."""

from collections.abc import Iterable, Sequence
from decimal import Decimal

from pocket_ledger.logging_setup import get_logger
from pocket_ledger.models import BalanceRow, Transaction, TransactionType, as_transactions
from pocket_ledger.money import parse_amount, to_money

logger = get_logger(__name__)

_CREDIT_TYPES = (TransactionType.INCOME, TransactionType.GIFT)


def is_eligible(txn: Transaction) -> bool:
    """A row moves the balance only with a positive amount and a known type."""
    if txn.amount is None or txn.amount <= 0:
        return False
    return txn.type in (TransactionType.INCOME, TransactionType.GIFT, TransactionType.EXPENSE)


def compute_running_balances(opening_balance, transactions: Iterable) -> list[BalanceRow]:
    """Compute the balance after each transaction, in entry order.

    Incomplete rows carry the previous balance forward unchanged. The
    result has one row per input transaction, and recomputing from the
    same inputs always gives the same output.

    Args:
        opening_balance: Balance before the first transaction.
        transactions: Transactions (or mappings of their fields) in the order entered.

    Returns:
        One BalanceRow per transaction

    Raises:
        InvalidState: If the opening balance is not a finite number.
    """
    running = to_money(opening_balance, "opening balance")
    rows = []

    for idx, txn in enumerate(as_transactions(transactions), 1):
        if not is_eligible(txn):
            logger.debug("Row %d is incomplete, carrying balance %s forward", idx, running)
            rows.append(BalanceRow(transaction=txn, running_balance=running, eligible=False))
            continue

        if txn.type in _CREDIT_TYPES:
            running = running + txn.amount
        else:
            running = running - txn.amount
        rows.append(BalanceRow(transaction=txn, running_balance=running, eligible=True))

    return rows


def running_balance_values(opening_balance, transactions: Iterable) -> list[Decimal]:
    """Balances aligned 1:1 with the input rows, ready to write back."""
    return [row.running_balance for row in compute_running_balances(opening_balance, transactions)]


def closing_balance(opening_balance, transactions: Iterable) -> Decimal:
    """Balance after the last eligible transaction, or the opening balance if there is none."""
    closing = to_money(opening_balance, "opening balance")
    for row in compute_running_balances(closing, transactions):
        if row.eligible:
            closing = row.running_balance
    return closing


def changed_rows(previous: Sequence, current: Sequence[Decimal]) -> list[int]:
    """Indices whose balance differs from a previously stored column.

    ``previous`` holds whatever the host had stored (numbers, text or
    None). Rows beyond the end of ``previous`` count as changed.
    """
    changed = []
    for idx, value in enumerate(current):
        old = parse_amount(previous[idx]) if idx < len(previous) else None
        if old is None or old != value:
            changed.append(idx)
    return changed
