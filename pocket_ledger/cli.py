"""Command-line interface for ledger workbooks."""

import argparse
import sys
from pathlib import Path
from zipfile import BadZipFile

from openpyxl.utils.exceptions import InvalidFileException

from pocket_ledger.errors import InvalidState
from pocket_ledger.logging_setup import configure_logging, get_logger
from pocket_ledger.models import SummaryReport
from pocket_ledger.summary import expense_by_category
from pocket_ledger.workbook import LedgerWorkbook, SUMMARY_LABELS

logger = get_logger(__name__)


def _format_report(name: str, report: SummaryReport) -> str:
    lines = [name]
    for label, attr in SUMMARY_LABELS:
        lines.append(f"  {label:<24} {getattr(report, attr):>14,.2f}")
    return "\n".join(lines)


def _cmd_init(args) -> int:
    path = Path(args.file)
    ledger = LedgerWorkbook.load(path) if path.exists() else LedgerWorkbook.new()
    period = ledger.create_period(args.name, args.opening, args.income)
    ledger.save(path)
    print(f"Created {period.name!r} with opening balance {period.opening_balance:,.2f}")
    return 0


def _cmd_recalc(args) -> int:
    ledger = LedgerWorkbook.load(args.file, debug=args.verbose)
    result = ledger.recalculate(args.sheet)
    ledger.save(args.file)
    print(_format_report(args.sheet, result.report))
    print(f"  {len(result.changed_rows)} balance cell(s) changed")
    return 0


def _cmd_summary(args) -> int:
    ledger = LedgerWorkbook.load(args.file, debug=args.verbose)
    print(_format_report(args.sheet, ledger.summary(args.sheet)))
    breakdown = expense_by_category(ledger.read_period(args.sheet).transactions)
    if breakdown:
        print("  Expenses by category:")
        for category, total in breakdown.items():
            print(f"    {category:<22} {total:>14,.2f}")
    return 0


def _cmd_rollover(args) -> int:
    ledger = LedgerWorkbook.load(args.file, debug=args.verbose)
    upcoming = ledger.roll_over(args.sheet, args.income)
    ledger.save(args.file)
    print(f"Created {upcoming.name!r} with opening balance {upcoming.opening_balance:,.2f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pocket-ledger",
        description="Running balances and monthly summaries for an Excel ledger.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: WARNING)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log skipped rows")
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init", help="Create a new period sheet")
    p_init.add_argument("file")
    p_init.add_argument("--name", required=True, help="Period name, e.g. 'January 2025'")
    p_init.add_argument("--opening", required=True, help="Opening balance")
    p_init.add_argument("--income", default=None, help="Declared monthly income")
    p_init.set_defaults(func=_cmd_init)

    p_recalc = sub.add_parser("recalc", help="Recompute running balances of a period")
    p_recalc.add_argument("file")
    p_recalc.add_argument("sheet")
    p_recalc.set_defaults(func=_cmd_recalc)

    p_summary = sub.add_parser("summary", help="Print the summary of a period")
    p_summary.add_argument("file")
    p_summary.add_argument("sheet")
    p_summary.set_defaults(func=_cmd_summary)

    p_roll = sub.add_parser("rollover", help="Start the period following a sheet")
    p_roll.add_argument("file")
    p_roll.add_argument("sheet")
    p_roll.add_argument("--income", default=None, help="Declared income for the new period")
    p_roll.set_defaults(func=_cmd_rollover)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``pocket-ledger`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose and args.log_level is None else args.log_level)

    try:
        return args.func(args)
    except InvalidState as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
    except KeyError as e:
        print(f"Error: {e.args[0] if e.args else e}", file=sys.stderr)
    except (InvalidFileException, BadZipFile, OSError, ValueError) as e:
        logger.error("Cannot process %s: %s", args.file, e)
        print(f"Error: cannot process {args.file}: {e}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
