"""Excel workbook adapter: one worksheet per monthly period."""

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils.exceptions import InvalidFileException

from pocket_ledger.balance import changed_rows, is_eligible, running_balance_values
from pocket_ledger.errors import InvalidState
from pocket_ledger.logging_setup import get_logger
from pocket_ledger.models import NextPeriod, Period, SummaryReport, Transaction
from pocket_ledger.money import (
    to_money,
    validate_declared_income,
    validate_opening_balance,
)
from pocket_ledger.rollover import Clock, next_period
from pocket_ledger.summary import verify_closing_balance

logger = get_logger(__name__)

# Expected transaction table headers, left to right from column A
EXPECTED_HEADERS = ("Date", "Category", "Description", "Amount", "Type", "Mode", "Balance")

COL_DATE = 1
COL_CATEGORY = 2
COL_DESCRIPTION = 3
COL_AMOUNT = 4
COL_TYPE = 5
COL_MODE = 6
COL_BALANCE = 7

OPENING_BALANCE_LABEL = "Opening Balance"
DECLARED_INCOME_LABEL = "Monthly Income"

SUMMARY_LABELS = (
    ("Total Income", "total_income"),
    ("Total Expense", "total_expense"),
    ("Net Savings", "net_savings"),
    ("Opening Balance", "opening_balance"),
    ("Closing Balance", "closing_balance"),
    ("Current Account Balance", "current_account_balance"),
)

HEADER_FONT = Font(bold=True)
NO_FILL = PatternFill(fill_type=None)


@dataclass
class LedgerSheetConfig:
    """Where things live on a monthly ledger sheet.

    Attributes:
        opening_balance_row: Row of the opening balance seed (label in A, value in B).
        declared_income_row: Row of the declared monthly income seed.
        header_row: Row holding EXPECTED_HEADERS; transactions start below it.
        summary_column: Column of the summary labels; values go one column right.
        highlight_changes: When True, fill balance cells that changed on recalculation.
        highlight_color: RGB hex colour of that fill.
        headers: Transaction table headers, left to right from column A.
    """

    opening_balance_row: int = 1
    declared_income_row: int = 2
    header_row: int = 4
    summary_column: int = 9
    highlight_changes: bool = True
    highlight_color: str = "FFF59D"
    headers: tuple[str, ...] = EXPECTED_HEADERS

    @property
    def first_data_row(self) -> int:
        return self.header_row + 1


@dataclass
class RecalcResult:
    """Outcome of recalculating one period sheet."""

    period: Period
    report: SummaryReport
    balances: list[Decimal]
    changed_rows: list[int]


def _headers_of(ws, config: LedgerSheetConfig) -> tuple:
    return tuple(
        ws.cell(row=config.header_row, column=col).value
        for col in range(1, len(config.headers) + 1)
    )


def is_ledger_file(filepath: str, config: LedgerSheetConfig | None = None) -> bool:
    """Check if a file is an .xlsx workbook with at least one ledger sheet."""
    config = config or LedgerSheetConfig()
    path = Path(filepath)

    if path.suffix.lower() != ".xlsx" or not path.exists():
        return False

    try:
        wb = load_workbook(filepath, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, OSError, KeyError) as e:
        logger.debug("Cannot open %s as a workbook: %s", filepath, e)
        return False

    try:
        return any(_headers_of(ws, config) == config.headers for ws in wb.worksheets)
    finally:
        wb.close()


class LedgerWorkbook:
    """Monthly ledger stored in an openpyxl workbook.

    Each period is a worksheet named after it. The engine modules do all
    the arithmetic; this class only moves values in and out of cells.
    """

    def __init__(
        self,
        workbook: Workbook,
        config: LedgerSheetConfig | None = None,
        debug: bool = False,
    ):
        """Wrap an openpyxl workbook.

        Args:
            workbook: The workbook to read and write.
            config: Sheet layout (defaults to LedgerSheetConfig()).
            debug: Log every skipped row at DEBUG level.
        """
        self.workbook = workbook
        self.config = config or LedgerSheetConfig()
        self.debug = debug

    @classmethod
    def new(
        cls, config: LedgerSheetConfig | None = None, debug: bool = False
    ) -> "LedgerWorkbook":
        wb = Workbook()
        # Remove the default empty sheet
        if "Sheet" in wb.sheetnames:
            del wb["Sheet"]
        return cls(wb, config=config, debug=debug)

    @classmethod
    def load(
        cls, filepath, config: LedgerSheetConfig | None = None, debug: bool = False
    ) -> "LedgerWorkbook":
        return cls(load_workbook(filepath), config=config, debug=debug)

    def save(self, filepath) -> None:
        self.workbook.save(filepath)

    def period_names(self) -> list[str]:
        """Names of the worksheets laid out as ledger periods, in sheet order."""
        return [
            ws.title
            for ws in self.workbook.worksheets
            if _headers_of(ws, self.config) == self.config.headers
        ]

    def _sheet(self, name: str):
        if name not in self.workbook.sheetnames:
            raise KeyError(f"No period sheet named {name!r}")
        return self.workbook[name]

    def _write_period_sheet(
        self, name: str, opening_balance: Decimal, declared_income: Decimal | None
    ):
        if name in self.workbook.sheetnames:
            raise InvalidState(f"A sheet named {name!r} already exists")

        cfg = self.config
        ws = self.workbook.create_sheet(title=name)
        ws.cell(row=cfg.opening_balance_row, column=1, value=OPENING_BALANCE_LABEL).font = HEADER_FONT
        ws.cell(row=cfg.opening_balance_row, column=2, value=opening_balance)
        ws.cell(row=cfg.declared_income_row, column=1, value=DECLARED_INCOME_LABEL).font = HEADER_FONT
        ws.cell(row=cfg.declared_income_row, column=2, value=declared_income)
        for col, header in enumerate(cfg.headers, 1):
            ws.cell(row=cfg.header_row, column=col, value=header).font = HEADER_FONT
        return ws

    def create_period(self, name: str, opening_balance, declared_income=None) -> Period:
        """Create a period sheet from user-entered seeds.

        Raises:
            InvalidState: For a negative or non-numeric opening balance, a
                non-positive declared income, or an existing sheet name.
        """
        opening = validate_opening_balance(opening_balance)
        declared = validate_declared_income(declared_income)
        self._write_period_sheet(name, opening, declared)
        logger.info("Created period %r with opening balance %s", name, opening)
        return Period(name=name, opening_balance=opening, monthly_income_declared=declared)

    def _read_rows(self, ws) -> list[tuple[int, Transaction, object]]:
        """Read (sheet row, transaction, stored balance) for every non-empty row."""
        rows = []
        last_col = len(self.config.headers)
        for row_num, values in enumerate(
            ws.iter_rows(min_row=self.config.first_data_row, max_col=last_col, values_only=True),
            self.config.first_data_row,
        ):
            values = tuple(values) + (None,) * (last_col - len(values))
            # Skip empty rows
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in values[:COL_MODE]):
                continue

            txn = Transaction(
                date=values[COL_DATE - 1],
                category=values[COL_CATEGORY - 1],
                description=values[COL_DESCRIPTION - 1],
                amount=values[COL_AMOUNT - 1],
                type=values[COL_TYPE - 1],
                mode=values[COL_MODE - 1],
            )
            if self.debug and not is_eligible(txn):
                logger.debug("Row %d of %r is incomplete and will be skipped", row_num, ws.title)
            rows.append((row_num, txn, values[COL_BALANCE - 1]))
        return rows

    def read_period(self, name: str) -> Period:
        """Load a period sheet into a Period.

        Raises:
            KeyError: If there is no sheet with that name.
            InvalidState: If the stored seeds are not usable numbers.
        """
        period, _ = self._load(self._sheet(name))
        return period

    def _load(self, ws) -> tuple[Period, list[tuple[int, Transaction, object]]]:
        cfg = self.config
        opening = to_money(ws.cell(row=cfg.opening_balance_row, column=2).value, "opening balance")
        declared_cell = ws.cell(row=cfg.declared_income_row, column=2).value
        if isinstance(declared_cell, str) and not declared_cell.strip():
            declared_cell = None
        declared = validate_declared_income(declared_cell)

        rows = self._read_rows(ws)
        period = Period(
            name=ws.title,
            opening_balance=opening,
            monthly_income_declared=declared,
            transactions=[txn for _, txn, _ in rows],
        )
        return period, rows

    def summary(self, name: str) -> SummaryReport:
        period = self.read_period(name)
        return verify_closing_balance(period.opening_balance, period.transactions)

    def _write_summary(self, ws, report: SummaryReport) -> None:
        col = self.config.summary_column
        for offset, (label, attr) in enumerate(SUMMARY_LABELS):
            ws.cell(row=1 + offset, column=col, value=label).font = HEADER_FONT
            ws.cell(row=1 + offset, column=col + 1, value=getattr(report, attr))

    def recalculate(self, name: str) -> RecalcResult:
        """Recompute running balances and the summary block of a period sheet.

        Balance cells whose value changed since the last run are
        highlighted when the config asks for it.
        """
        ws = self._sheet(name)
        period, rows = self._load(ws)

        balances = running_balance_values(period.opening_balance, period.transactions)
        report = verify_closing_balance(period.opening_balance, period.transactions)
        changed = set(changed_rows([stored for _, _, stored in rows], balances))

        color = self.config.highlight_color
        fill = PatternFill(start_color=color, end_color=color, fill_type="solid")
        for idx, ((row_num, _, _), balance) in enumerate(zip(rows, balances)):
            cell = ws.cell(row=row_num, column=COL_BALANCE, value=balance)
            if self.config.highlight_changes:
                cell.fill = fill if idx in changed else NO_FILL

        # Rows cleared since the last run must not keep their old balance
        kept = {row_num for row_num, _, _ in rows}
        for row_num in range(self.config.first_data_row, ws.max_row + 1):
            if row_num not in kept:
                cell = ws.cell(row=row_num, column=COL_BALANCE)
                if cell.value is not None:
                    cell.value = None
                    cell.fill = NO_FILL

        self._write_summary(ws, report)
        changed_sheet_rows = [rows[idx][0] for idx in sorted(changed)]
        logger.info(
            "Recalculated %r: closing balance %s, %d changed rows",
            name,
            report.closing_balance,
            len(changed_sheet_rows),
        )
        return RecalcResult(
            period=period,
            report=report,
            balances=balances,
            changed_rows=changed_sheet_rows,
        )

    def roll_over(
        self, name: str, declared_income=None, clock: Clock | None = None
    ) -> NextPeriod:
        """Create the sheet for the period after ``name``.

        The new sheet opens with the closing balance of ``name``, which is
        itself left unchanged.
        """
        period = self.read_period(name)
        report = verify_closing_balance(period.opening_balance, period.transactions)
        upcoming = next_period(
            name,
            report.closing_balance,
            declared_income,
            existing_names=self.workbook.sheetnames,
            clock=clock,
        )
        if upcoming.previous.defaulted:
            logger.warning(
                "Sheet name %r is not '<Month> <Year>'; rolled over from the current month", name
            )

        self._write_period_sheet(
            upcoming.name, upcoming.opening_balance, upcoming.monthly_income_declared
        )
        logger.info("Rolled %r over into %r", name, upcoming.name)
        return upcoming
