from .balance import (
    changed_rows,
    closing_balance,
    compute_running_balances,
    is_eligible,
    running_balance_values,
)
from .errors import BalanceMismatch, InvalidState

# Data models
from .models import (
    BalanceRow,
    Category,
    NextPeriod,
    PaymentMode,
    Period,
    PeriodKey,
    SummaryReport,
    Transaction,
    TransactionType,
)
from .rollover import (
    disambiguate,
    format_period_name,
    next_period,
    parse_period_name,
    rebuild_chain,
)
from .summary import (
    expense_by_category,
    expense_by_mode,
    summarize,
    verify_closing_balance,
)

# Spreadsheet host adapter
from .workbook import LedgerSheetConfig, LedgerWorkbook, RecalcResult, is_ledger_file

__all__ = [
    # Running balances
    "changed_rows",
    "closing_balance",
    "compute_running_balances",
    "is_eligible",
    "running_balance_values",
    # Summaries
    "expense_by_category",
    "expense_by_mode",
    "summarize",
    "verify_closing_balance",
    # Rollover
    "disambiguate",
    "format_period_name",
    "next_period",
    "parse_period_name",
    "rebuild_chain",
    # Errors
    "BalanceMismatch",
    "InvalidState",
    # Data models
    "BalanceRow",
    "Category",
    "NextPeriod",
    "PaymentMode",
    "Period",
    "PeriodKey",
    "SummaryReport",
    "Transaction",
    "TransactionType",
    # Workbook
    "LedgerSheetConfig",
    "LedgerWorkbook",
    "RecalcResult",
    "is_ledger_file",
]
