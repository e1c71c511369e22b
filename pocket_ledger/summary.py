"""Period totals: income, expense, savings and closing balance."""

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal

from pocket_ledger.balance import closing_balance
from pocket_ledger.errors import BalanceMismatch
from pocket_ledger.logging_setup import get_logger
from pocket_ledger.models import SummaryReport, Transaction, TransactionType, as_transactions
from pocket_ledger.money import to_money

logger = get_logger(__name__)

INCOME_TYPES = frozenset({TransactionType.INCOME, TransactionType.GIFT})
EXPENSE_TYPES = frozenset({TransactionType.EXPENSE})

UNCATEGORIZED = "Uncategorized"
UNKNOWN_MODE = "Unknown"


def _counts_toward_totals(txn: Transaction) -> bool:
    # Kept separate from balance.is_eligible; the two are cross-checked.
    return (
        isinstance(txn.amount, Decimal)
        and txn.amount > 0
        and (txn.type in INCOME_TYPES or txn.type in EXPENSE_TYPES)
    )


def summarize(opening_balance, transactions: Iterable) -> SummaryReport:
    """Aggregate a period's transactions into a SummaryReport.

    Empty or entirely incomplete input is a legitimate empty period:
    every total is zero and the closing balance equals the opening one.

    Raises:
        InvalidState: If the opening balance is not a finite number.
    """
    opening = to_money(opening_balance, "opening balance")
    total_income = Decimal("0")
    total_expense = Decimal("0")
    income_count = expense_count = skipped = 0

    for txn in as_transactions(transactions):
        if not _counts_toward_totals(txn):
            skipped += 1
        elif txn.type in INCOME_TYPES:
            total_income += txn.amount
            income_count += 1
        else:
            total_expense += txn.amount
            expense_count += 1

    net_savings = total_income - total_expense
    return SummaryReport(
        total_income=total_income,
        total_expense=total_expense,
        net_savings=net_savings,
        opening_balance=opening,
        closing_balance=opening + net_savings,
        current_account_balance=opening + net_savings,
        income_count=income_count,
        expense_count=expense_count,
        skipped_count=skipped,
    )


def expense_by_category(transactions: Iterable) -> dict[str, Decimal]:
    """Total expense per category, largest first."""
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for txn in as_transactions(transactions):
        if _counts_toward_totals(txn) and txn.type in EXPENSE_TYPES:
            key = txn.category.value if txn.category else UNCATEGORIZED
            totals[key] += txn.amount
    return dict(sorted(totals.items(), key=lambda item: (-item[1], item[0])))


def expense_by_mode(transactions: Iterable) -> dict[str, Decimal]:
    """Total expense per payment mode, largest first."""
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for txn in as_transactions(transactions):
        if _counts_toward_totals(txn) and txn.type in EXPENSE_TYPES:
            key = txn.mode.value if txn.mode else UNKNOWN_MODE
            totals[key] += txn.amount
    return dict(sorted(totals.items(), key=lambda item: (-item[1], item[0])))


def verify_closing_balance(opening_balance, transactions: Iterable) -> SummaryReport:
    """Summarize and check the result against the running balance.

    Raises:
        BalanceMismatch: If the two computations disagree.
    """
    txns = as_transactions(transactions)
    report = summarize(opening_balance, txns)
    running_closing = closing_balance(opening_balance, txns)
    if running_closing != report.closing_balance:
        logger.error(
            "Closing balance mismatch: running=%s summary=%s",
            running_closing,
            report.closing_balance,
        )
        raise BalanceMismatch(running_closing, report.closing_balance)
    return report
