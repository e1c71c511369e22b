"""Tests for the Excel workbook adapter.

These tests verify the full data flow:
    Excel sheet -> Period -> running balances / summary -> cells written back
"""

import datetime
from decimal import Decimal

import pytest
from openpyxl import Workbook, load_workbook

from pocket_ledger.errors import InvalidState
from pocket_ledger.models import TransactionType
from pocket_ledger.workbook import (
    COL_BALANCE,
    LedgerSheetConfig,
    LedgerWorkbook,
    is_ledger_file,
)


class TestIsLedgerFile:
    """Tests for is_ledger_file."""

    def test_identifies_ledger_file(self, ledger_file):
        assert is_ledger_file(str(ledger_file)) is True

    def test_rejects_wrong_extension(self, tmp_path):
        txt_file = tmp_path / "ledger.txt"
        txt_file.write_text("not an excel file")
        assert is_ledger_file(str(txt_file)) is False

    def test_rejects_missing_file(self, tmp_path):
        assert is_ledger_file(str(tmp_path / "missing.xlsx")) is False

    def test_rejects_corrupt_xlsx(self, tmp_path):
        bad = tmp_path / "corrupt.xlsx"
        bad.write_bytes(b"this is not a zip archive")
        assert is_ledger_file(str(bad)) is False

    def test_rejects_workbook_without_ledger_headers(self, tmp_path):
        wb = Workbook()
        wb.active.cell(row=4, column=1, value="Dato")
        path = tmp_path / "other.xlsx"
        wb.save(path)
        assert is_ledger_file(str(path)) is False


class TestReadPeriod:
    """Tests for reading a period sheet."""

    def test_period_names(self, ledger):
        assert ledger.period_names() == ["March 2025"]

    def test_reads_seeds(self, ledger):
        period = ledger.read_period("March 2025")
        assert period.opening_balance == Decimal("1000")
        assert period.monthly_income_declared == Decimal("25000")

    def test_reads_transactions_in_order(self, ledger):
        """Blank rows are skipped; incomplete rows are kept."""
        period = ledger.read_period("March 2025")
        assert len(period.transactions) == 4
        first = period.transactions[0]
        assert first.date == datetime.date(2025, 3, 1)
        assert first.type is TransactionType.INCOME
        assert period.transactions[2].amount is None

    def test_missing_sheet(self, ledger):
        with pytest.raises(KeyError):
            ledger.read_period("April 2025")

    def test_invalid_opening_balance_cell(self, ledger):
        ledger.workbook["March 2025"].cell(row=1, column=2, value="lots")
        with pytest.raises(InvalidState):
            ledger.read_period("March 2025")

    def test_invalid_income_cell(self, ledger):
        ledger.workbook["March 2025"].cell(row=2, column=2, value=-10)
        with pytest.raises(InvalidState):
            ledger.read_period("March 2025")

    def test_summary(self, ledger):
        report = ledger.summary("March 2025")
        assert report.total_income == Decimal("800")
        assert report.total_expense == Decimal("200")
        assert report.closing_balance == Decimal("1600")


class TestRecalculate:
    """Tests for recalculate."""

    def test_writes_running_balances(self, ledger):
        result = ledger.recalculate("March 2025")
        ws = ledger.workbook["March 2025"]
        assert [ws.cell(row=r, column=COL_BALANCE).value for r in (5, 6, 7, 9)] == [
            Decimal("1500"),
            Decimal("1300"),
            Decimal("1300"),
            Decimal("1600"),
        ]
        assert ws.cell(row=8, column=COL_BALANCE).value is None
        assert result.balances[-1] == Decimal("1600")

    def test_writes_summary_block(self, ledger):
        ledger.recalculate("March 2025")
        ws = ledger.workbook["March 2025"]
        values = {ws.cell(row=r, column=9).value: ws.cell(row=r, column=10).value for r in range(1, 7)}
        assert values["Total Income"] == Decimal("800")
        assert values["Net Savings"] == Decimal("600")
        assert values["Closing Balance"] == Decimal("1600")

    def test_first_run_marks_all_rows_changed(self, ledger):
        result = ledger.recalculate("March 2025")
        assert result.changed_rows == [5, 6, 7, 9]

    def test_rerun_is_idempotent(self, ledger):
        """A second run changes nothing and produces the same balances."""
        first = ledger.recalculate("March 2025")
        second = ledger.recalculate("March 2025")
        assert second.changed_rows == []
        assert second.balances == first.balances

    def test_edit_highlights_changed_rows(self, ledger, tmp_path):
        ledger.recalculate("March 2025")
        path = tmp_path / "saved.xlsx"
        ledger.save(path)

        reloaded = LedgerWorkbook.load(path)
        reloaded.workbook["March 2025"].cell(row=6, column=4, value=250)
        result = reloaded.recalculate("March 2025")

        assert result.changed_rows == [6, 7, 9]
        ws = reloaded.workbook["March 2025"]
        assert ws.cell(row=6, column=COL_BALANCE).fill.fill_type == "solid"
        assert ws.cell(row=5, column=COL_BALANCE).fill.fill_type is None

    def test_cleared_row_loses_its_balance(self, ledger):
        """A row emptied after a recalculation does not keep a stale balance."""
        ledger.recalculate("March 2025")
        ws = ledger.workbook["March 2025"]
        for col in range(1, COL_BALANCE):
            ws.cell(row=9, column=col).value = None

        result = ledger.recalculate("March 2025")

        balance_cell = ws.cell(row=9, column=COL_BALANCE)
        assert balance_cell.value is None
        assert balance_cell.fill.fill_type is None
        assert result.report.closing_balance == Decimal("1300")
        assert result.balances[-1] == Decimal("1300")
        values = {ws.cell(row=r, column=9).value: ws.cell(row=r, column=10).value for r in range(1, 7)}
        assert values["Closing Balance"] == Decimal("1300")

    def test_highlighting_can_be_disabled(self, ledger_file):
        ledger = LedgerWorkbook.load(ledger_file, config=LedgerSheetConfig(highlight_changes=False))
        ledger.recalculate("March 2025")
        ws = ledger.workbook["March 2025"]
        assert ws.cell(row=5, column=COL_BALANCE).fill.fill_type is None


class TestCreateAndRollOver:
    """Tests for create_period and roll_over."""

    def test_create_period(self, tmp_path):
        ledger = LedgerWorkbook.new()
        period = ledger.create_period("January 2025", "5000", 30000)
        assert period.opening_balance == Decimal("5000")
        assert ledger.period_names() == ["January 2025"]

        path = tmp_path / "new.xlsx"
        ledger.save(path)
        assert is_ledger_file(str(path)) is True

    @pytest.mark.parametrize("opening,income", [("-1", None), ("abc", None), ("10", "0")])
    def test_create_period_rejects_bad_seeds(self, opening, income):
        ledger = LedgerWorkbook.new()
        with pytest.raises(InvalidState):
            ledger.create_period("January 2025", opening, income)
        assert ledger.workbook.sheetnames == []

    def test_create_period_rejects_existing_name(self, ledger):
        with pytest.raises(InvalidState):
            ledger.create_period("March 2025", 0)

    def test_roll_over(self, ledger, clock):
        upcoming = ledger.roll_over("March 2025", declared_income=26000, clock=clock)
        assert upcoming.name == "April 2025"
        assert upcoming.opening_balance == Decimal("1600")

        april = ledger.read_period("April 2025")
        assert april.opening_balance == Decimal("1600")
        assert april.monthly_income_declared == Decimal("26000")
        assert april.transactions == []

    def test_roll_over_leaves_source_untouched(self, ledger, clock):
        before = ledger.read_period("March 2025")
        ledger.roll_over("March 2025", clock=clock)
        assert ledger.read_period("March 2025") == before

    def test_roll_over_without_clock(self, ledger):
        """The clock is optional when the sheet name can be read."""
        upcoming = ledger.roll_over("March 2025")
        assert upcoming.name == "April 2025"
        assert ledger.period_names() == ["March 2025", "April 2025"]

    def test_roll_over_unreadable_name_without_clock(self, ledger):
        """An unreadable sheet name rolls over from the real current month."""
        ledger.workbook["March 2025"].title = "Budget"
        today = datetime.date.today()

        upcoming = ledger.roll_over("Budget")

        assert upcoming.previous.defaulted is True
        assert (upcoming.previous.year, upcoming.previous.month) == (today.year, today.month)
        assert upcoming.opening_balance == Decimal("1600")
        assert upcoming.name in ledger.workbook.sheetnames

    def test_roll_over_across_year_with_collision(self, december_file, clock):
        """January 2025 exists already, so the new sheet is January 2025 (1)."""
        ledger = LedgerWorkbook.load(december_file)
        upcoming = ledger.roll_over("December 2024", clock=clock)
        assert upcoming.name == "January 2025 (1)"
        assert upcoming.opening_balance == Decimal("3800")

    def test_roll_over_saved_and_reloaded(self, ledger, clock, tmp_path):
        ledger.roll_over("March 2025", clock=clock)
        path = tmp_path / "rolled.xlsx"
        ledger.save(path)

        wb = load_workbook(path)
        assert wb.sheetnames == ["March 2025", "April 2025"]
        assert wb["April 2025"].cell(row=1, column=2).value == 1600
