"""Deriving the next monthly period from the current one."""

import datetime
import re
from collections.abc import Callable, Iterable, Sequence

from dateutil.relativedelta import relativedelta

from pocket_ledger.errors import InvalidState
from pocket_ledger.logging_setup import get_logger
from pocket_ledger.models import NextPeriod, Period, PeriodKey, SummaryReport
from pocket_ledger.money import to_money, validate_declared_income

logger = get_logger(__name__)

Clock = Callable[[], datetime.date]

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_MONTH_LOOKUP = {name.casefold(): idx for idx, name in enumerate(MONTH_NAMES, 1)}

# "<MonthName> <Year>", optionally followed by a " (n)" disambiguator
_PERIOD_NAME = re.compile(r"^\s*([A-Za-z]+)\s+(\d{4})(?:\s*\((\d+)\))?\s*$")


def format_period_name(year: int, month: int) -> str:
    """Format a period name like 'January 2025'."""
    return f"{MONTH_NAMES[month - 1]} {year}"


def parse_period_name(name: str | None, clock: Clock | None = None) -> PeriodKey:
    """Read the month and year out of a period name.

    Names that do not look like '<MonthName> <Year>' fall back to the
    month and year of ``clock()`` (today by default), with ``defaulted``
    set on the result.
    """
    match = _PERIOD_NAME.match(name or "")
    if match:
        month = _MONTH_LOOKUP.get(match.group(1).casefold())
        year = int(match.group(2))
        if month is not None and year >= 1:
            return PeriodKey(year=year, month=month)

    today = (clock or datetime.date.today)()
    logger.debug("Period name %r not recognized, using %s-%02d", name, today.year, today.month)
    return PeriodKey(year=today.year, month=today.month, defaulted=True)


def following_month(key: PeriodKey) -> PeriodKey:
    """The period key one calendar month after ``key``.

    Raises:
        InvalidState: If the following month is past the last supported year.
    """
    try:
        first = datetime.date(key.year, key.month, 1) + relativedelta(months=1)
    except (ValueError, OverflowError) as e:
        raise InvalidState(f"No month follows {format_period_name(key.year, key.month)}") from e
    return PeriodKey(year=first.year, month=first.month)


def disambiguate(name: str, existing: Iterable[str]) -> str:
    """Return ``name``, or ``name (n)`` with the lowest free n if it is taken."""
    taken = set(existing)
    if name not in taken:
        return name
    n = 1
    while f"{name} ({n})" in taken:
        n += 1
    return f"{name} ({n})"


def next_period(
    current_name: str | None,
    current_closing_balance,
    declared_income_for_next=None,
    existing_names: Iterable[str] = (),
    clock: Clock | None = None,
) -> NextPeriod:
    """Derive the name and opening balance of the period after ``current_name``.

    The new period opens with exactly the current closing balance. A
    declared income is carried alongside it and is never added to the
    opening balance.

    Args:
        current_name: Name of the period being closed.
        current_closing_balance: Its closing balance.
        declared_income_for_next: Salary/stipend declared for the new period, if any.
        existing_names: Period names already in use.
        clock: Source of today's date for unreadable period names
            (datetime.date.today when None).

    Raises:
        InvalidState: If the closing balance is not a finite number, or
            the declared income is not a positive number, or no month
            follows the current one.
    """
    opening = to_money(current_closing_balance, "closing balance")
    declared = validate_declared_income(declared_income_for_next)

    current = parse_period_name(current_name, clock)
    upcoming = following_month(current)
    name = disambiguate(format_period_name(upcoming.year, upcoming.month), existing_names)

    logger.debug("Rolling %r over into %r with opening balance %s", current_name, name, opening)
    return NextPeriod(
        name=name,
        opening_balance=opening,
        monthly_income_declared=declared,
        key=upcoming,
        previous=current,
    )


def rebuild_chain(
    opening_balance, periods: Sequence[Period]
) -> list[tuple[Period, SummaryReport]]:
    """Recompute a run of consecutive periods in order.

    The first period opens with ``opening_balance``; every later one opens
    with the closing balance of the one before it. The input periods are
    left untouched; each is returned rebuilt, paired with its summary.

    Raises:
        InvalidState: If the opening balance is not finite, or the period
            names are not in chronological order.
    """
    opening = to_money(opening_balance, "opening balance")
    rebuilt = []
    last_key = None

    for period in periods:
        key = parse_period_name(period.name)
        if not key.defaulted:
            if last_key is not None and (key.year, key.month) < (last_key.year, last_key.month):
                raise InvalidState(f"Period {period.name!r} is out of chronological order")
            last_key = key

        current = Period(
            name=period.name,
            opening_balance=opening,
            monthly_income_declared=period.monthly_income_declared,
            transactions=list(period.transactions),
        )
        report = current.summary()
        rebuilt.append((current, report))
        opening = report.closing_balance

    return rebuilt
