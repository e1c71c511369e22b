"""Shared pytest fixtures for pocket-ledger tests."""

import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from openpyxl import Workbook

from pocket_ledger.models import Transaction, TransactionType
from pocket_ledger.workbook import EXPECTED_HEADERS, LedgerSheetConfig, LedgerWorkbook


# =============================================================================
# Clock Fixtures
# =============================================================================


@pytest.fixture
def fixed_today() -> datetime.date:
    """The date the injected clock reports."""
    return datetime.date(2025, 8, 14)


@pytest.fixture
def clock(fixed_today):
    """A clock that always returns fixed_today."""
    return lambda: fixed_today


# =============================================================================
# Transaction Fixtures
# =============================================================================


@pytest.fixture
def income_txn() -> Transaction:
    """A salary credit."""
    return Transaction(
        date=datetime.date(2025, 3, 1),
        category="Salary",
        description="March salary",
        amount=Decimal("500"),
        type=TransactionType.INCOME,
        mode="Bank",
    )


@pytest.fixture
def expense_txn() -> Transaction:
    """A grocery purchase."""
    return Transaction(
        date=datetime.date(2025, 3, 3),
        category="Groceries",
        description="Weekly shop",
        amount=Decimal("200"),
        type=TransactionType.EXPENSE,
        mode="UPI",
    )


@pytest.fixture
def incomplete_txn() -> Transaction:
    """An expense row the user has not filled an amount in for yet."""
    return Transaction(
        date=datetime.date(2025, 3, 4),
        category="Food",
        description="Lunch",
        amount=None,
        type=TransactionType.EXPENSE,
        mode="Cash",
    )


@pytest.fixture
def gift_txn() -> Transaction:
    """Money received as a gift."""
    return Transaction(
        date=datetime.date(2025, 3, 9),
        category="Gift",
        description="Birthday",
        amount=Decimal("300"),
        type=TransactionType.GIFT,
        mode="Cash",
    )


@pytest.fixture
def scenario_txns(income_txn, expense_txn, incomplete_txn, gift_txn) -> list[Transaction]:
    """Income 500, expense 200, incomplete expense, gift 300."""
    return [income_txn, expense_txn, incomplete_txn, gift_txn]


# =============================================================================
# Workbook Fixtures
# =============================================================================


@pytest.fixture
def sheet_config() -> LedgerSheetConfig:
    """Default sheet layout."""
    return LedgerSheetConfig()


def _write_ledger_sheet(ws, opening, income, rows):
    ws.cell(row=1, column=1, value="Opening Balance")
    ws.cell(row=1, column=2, value=opening)
    ws.cell(row=2, column=1, value="Monthly Income")
    ws.cell(row=2, column=2, value=income)
    for col, header in enumerate(EXPECTED_HEADERS, 1):
        ws.cell(row=4, column=col, value=header)
    for row_num, row in enumerate(rows, 5):
        for col, value in enumerate(row, 1):
            ws.cell(row=row_num, column=col, value=value)


@pytest.fixture
def ledger_file(tmp_path) -> Path:
    """A workbook with a 'March 2025' period matching the scenario transactions."""
    wb = Workbook()
    ws = wb.active
    ws.title = "March 2025"

    _write_ledger_sheet(
        ws,
        1000,
        25000,
        [
            (datetime.datetime(2025, 3, 1), "Salary", "March salary", 500, "In pocket", "Bank"),
            (datetime.datetime(2025, 3, 3), "Groceries", "Weekly shop", 200, "Expense", "UPI"),
            (datetime.datetime(2025, 3, 4), "Food", "Lunch", None, "Expense", "Cash"),
            # Blank row left between entries
            (None, None, None, None, None, None),
            (datetime.datetime(2025, 3, 9), "Gift", "Birthday", 300, "Gift", "Cash"),
        ],
    )

    file_path = tmp_path / "ledger.xlsx"
    wb.save(file_path)
    return file_path


@pytest.fixture
def december_file(tmp_path) -> Path:
    """A workbook whose only period is December 2024, with January 2025 already taken."""
    wb = Workbook()
    ws = wb.active
    ws.title = "December 2024"
    _write_ledger_sheet(
        ws,
        5000,
        None,
        [(datetime.datetime(2024, 12, 5), "Rent", "Rent", 1200, "Expense", "Bank")],
    )
    _write_ledger_sheet(wb.create_sheet("January 2025"), 0, None, [])

    file_path = tmp_path / "december.xlsx"
    wb.save(file_path)
    return file_path


@pytest.fixture
def ledger(ledger_file) -> LedgerWorkbook:
    """The scenario workbook, loaded."""
    return LedgerWorkbook.load(ledger_file)
