"""
Derived Report Models

Nothing in this module is persisted. Summaries, insights and reports are
recomputed from the current record snapshot on every request and
discarded after use.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from finance_manager.models.records import (
    BorrowLend,
    Category,
    PaymentMethod,
    Transaction,
)


class InsightType(str, Enum):
    """What an insight is about."""
    SPENDING_PATTERN = "spending_pattern"
    SAVINGS_RATE = "savings_rate"
    DEBT_MANAGEMENT = "debt_management"
    INCOME_GROWTH = "income_growth"
    BUDGET_ALERT = "budget_alert"


class InsightSeverity(str, Enum):
    """How an insight should be presented."""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    WARNING = "warning"
    CRITICAL = "critical"


class ReportPeriod(str, Enum):
    """
    Reporting period label.

    NOTE: The period only labels the report. Transactions are not
    filtered by it.
    """
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


# =============================================================================
# SUMMARY / INSIGHT / REPORT
# =============================================================================

class FinancialSummary(BaseModel):
    """
    Aggregated view over one transaction snapshot.

    Two key policies coexist:
    - ``category_breakdown`` only holds categories that have expenses
    - ``wallet_balances`` holds every payment method, zero included
    """
    model_config = ConfigDict(frozen=True)

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    savings_rate: float = Field(
        default=0.0,
        description="Net balance as a percentage of income (0 when there is no income)"
    )
    top_spending_category: Optional[Category] = None
    top_spending_amount: Decimal = Decimal("0")
    wallet_balances: dict[PaymentMethod, Decimal] = Field(default_factory=dict)

    # Passed through from the storage layer, never recomputed here
    total_receivable: Decimal = Decimal("0")
    total_repayable: Decimal = Decimal("0")

    category_breakdown: dict[Category, Decimal] = Field(default_factory=dict)


class WalletSummary(BaseModel):
    """Income, expense and balance of one wallet."""
    model_config = ConfigDict(frozen=True)

    method: PaymentMethod
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense


class FinancialInsight(BaseModel):
    """A single rule-based observation about the user's finances."""
    model_config = ConfigDict(frozen=True)

    type: InsightType
    title: str
    message: str
    recommendation: Optional[str] = None
    severity: InsightSeverity


class FinancialReport(BaseModel):
    """
    Report snapshot for one period.

    ``transactions`` is the full snapshot the report was built from.
    ``receivables`` / ``repayables`` are the unsettled LENT / BORROWED
    records of that snapshot.
    """
    model_config = ConfigDict(frozen=True)

    period: ReportPeriod
    summary: FinancialSummary
    transactions: list[Transaction] = Field(default_factory=list)
    receivables: list[BorrowLend] = Field(default_factory=list)
    repayables: list[BorrowLend] = Field(default_factory=list)
    insights: list[FinancialInsight] = Field(default_factory=list)
    generated_date: datetime = Field(default_factory=datetime.now)

    @property
    def listed_receivable(self) -> Decimal:
        """Sum of the unsettled LENT records in this report."""
        return sum((r.amount for r in self.receivables), Decimal("0"))

    @property
    def listed_repayable(self) -> Decimal:
        """Sum of the unsettled BORROWED records in this report."""
        return sum((r.amount for r in self.repayables), Decimal("0"))

    @property
    def aggregates_consistent(self) -> bool:
        """
        Do the storage-supplied totals match the listed records?

        The summary totals are never corrected; this only reports
        whether they diverge.
        """
        return (
            self.summary.total_receivable == self.listed_receivable
            and self.summary.total_repayable == self.listed_repayable
        )


# =============================================================================
# PROCESSED BORROW/LEND LISTS
# =============================================================================

class PersonGroup(BaseModel):
    """All records for one person name, newest first."""
    model_config = ConfigDict(frozen=True)

    person_name: str
    total_amount: Decimal
    records: list[BorrowLend] = Field(default_factory=list)


class GroupedRecords(BaseModel):
    """Borrow/lend records grouped by person."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["grouped"] = "grouped"
    groups: list[PersonGroup] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.groups)


class FlatRecords(BaseModel):
    """Borrow/lend records in display order, ungrouped."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["flat"] = "flat"
    records: list[BorrowLend] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)


ProcessedRecords = Annotated[
    Union[GroupedRecords, FlatRecords],
    Field(discriminator="kind"),
]
