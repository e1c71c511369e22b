"""Data models for the monthly ledger."""

import datetime
from collections.abc import Iterable, Mapping
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pocket_ledger.money import parse_amount, to_money, validate_declared_income

# Date formats accepted for text cells, tried in order
DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d %b %Y", "%d %B %Y")


class _LabelledEnum(str, Enum):
    """Enum that resolves user-typed labels case-insensitively."""

    @classmethod
    def from_label(cls, value):
        """Return the member for a label, or None if it is not recognized."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        label = str(value).strip().casefold()
        for member in cls:
            if member.value.casefold() == label:
                return member
        return cls._aliases().get(label)

    @classmethod
    def _aliases(cls) -> dict:
        return {}


class TransactionType(_LabelledEnum):
    """How a transaction moves the balance."""

    INCOME = "Income"
    EXPENSE = "Expense"
    GIFT = "Gift"

    @classmethod
    def _aliases(cls) -> dict:
        # Older sheets label income rows "In pocket"
        return {"in pocket": cls.INCOME}


class Category(_LabelledEnum):
    """Spending/earning categories offered in the category column."""

    FOOD = "Food"
    GROCERIES = "Groceries"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    RENT = "Rent"
    HEALTH = "Health"
    EDUCATION = "Education"
    ENTERTAINMENT = "Entertainment"
    TRAVEL = "Travel"
    SALARY = "Salary"
    GIFT = "Gift"
    OTHER = "Other"


class PaymentMode(_LabelledEnum):
    """Payment channel used for a transaction."""

    CASH = "Cash"
    UPI = "UPI"
    CARD = "Card"
    BANK = "Bank"


def _parse_date(value) -> datetime.date | None:
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    return None


class Transaction(BaseModel):
    """One ledger row as entered by the user.

    Every field is optional. Values that cannot be understood (an unknown
    type, a non-numeric amount, a malformed date) are stored as None so a
    half-typed row never stops the ledger from being computed.
    """

    date: datetime.date | None = None
    category: Category | None = None
    description: str | None = None
    amount: Decimal | None = None
    type: TransactionType | None = None
    mode: PaymentMode | None = None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return _parse_date(v)

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v):
        """Store the amount as a Decimal, or None when it is not a number."""
        return parse_amount(v)

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v):
        return TransactionType.from_label(v)

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v):
        return Category.from_label(v)

    @field_validator("mode", mode="before")
    @classmethod
    def validate_mode(cls, v):
        return PaymentMode.from_label(v)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @property
    def is_eligible(self) -> bool:
        """True when the row has a positive amount and a known type.

        The date plays no part: a row with an unreadable date still counts.
        """
        return self.amount is not None and self.amount > 0 and self.type is not None


def as_transactions(rows: Iterable) -> list[Transaction]:
    """Coerce host rows (Transaction objects or mappings) into Transactions."""
    transactions = []
    for row in rows:
        if isinstance(row, Transaction):
            transactions.append(row)
        elif isinstance(row, Mapping):
            transactions.append(Transaction.model_validate(dict(row)))
        else:
            raise TypeError(f"Unsupported transaction row: {row!r}")
    return transactions


class BalanceRow(BaseModel):
    """A transaction annotated with the balance after it."""

    model_config = ConfigDict(frozen=True)

    transaction: Transaction
    running_balance: Decimal
    eligible: bool


class SummaryReport(BaseModel):
    """Income, expense and balance totals for one period."""

    model_config = ConfigDict(frozen=True)

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    net_savings: Decimal = Decimal("0")
    opening_balance: Decimal = Decimal("0")
    closing_balance: Decimal = Decimal("0")
    current_account_balance: Decimal = Decimal("0")
    income_count: int = 0
    expense_count: int = 0
    skipped_count: int = 0


class PeriodKey(BaseModel):
    """Month and year of a period, and whether they came from the clock.

    ``defaulted`` is True when the period name could not be read and the
    current calendar month was used instead.
    """

    model_config = ConfigDict(frozen=True)

    year: int = Field(ge=1)
    month: int = Field(ge=1, le=12)
    defaulted: bool = False


class NextPeriod(BaseModel):
    """Seed values for the period following a rollover."""

    model_config = ConfigDict(frozen=True)

    name: str
    opening_balance: Decimal
    monthly_income_declared: Decimal | None = None
    key: PeriodKey
    previous: PeriodKey


class Period(BaseModel):
    """One monthly ledger: its seeds and the transactions entered in it."""

    model_config = ConfigDict(frozen=True)

    name: str
    opening_balance: Decimal
    monthly_income_declared: Decimal | None = None
    transactions: list[Transaction] = Field(default_factory=list)

    @field_validator("opening_balance", mode="before")
    @classmethod
    def validate_opening_balance(cls, v):
        return to_money(v, "opening balance")

    @field_validator("monthly_income_declared", mode="before")
    @classmethod
    def validate_income(cls, v):
        return validate_declared_income(v)

    @classmethod
    def open(cls, name: str, opening_balance, monthly_income_declared=None, transactions=()):
        """Create a period, raising InvalidState for bad seeds.

        Constructing the model directly reports the same problems as a
        pydantic ValidationError instead.
        """
        return cls(
            name=name,
            opening_balance=to_money(opening_balance, "opening balance"),
            monthly_income_declared=validate_declared_income(monthly_income_declared),
            transactions=as_transactions(transactions),
        )

    def add(self, transaction) -> Transaction:
        """Append a transaction (or a mapping of its fields) to the period."""
        (txn,) = as_transactions([transaction])
        self.transactions.append(txn)
        return txn

    def running_balances(self) -> list[BalanceRow]:
        from pocket_ledger.balance import compute_running_balances

        return compute_running_balances(self.opening_balance, self.transactions)

    @property
    def closing_balance(self) -> Decimal:
        from pocket_ledger.balance import closing_balance

        return closing_balance(self.opening_balance, self.transactions)

    def summary(self) -> SummaryReport:
        from pocket_ledger.summary import summarize

        return summarize(self.opening_balance, self.transactions)
