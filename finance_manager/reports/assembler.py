"""
Report Assembler

Composes the aggregation engine, the unsettled borrow/lend filters and
the insight rules into a single FinancialReport.

No caching: every call recomputes from the snapshot it is given.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from finance_manager.analytics import build_summary, generate_insights
from finance_manager.config import InsightSettings
from finance_manager.models.records import BorrowLend, BorrowLendType, Transaction
from finance_manager.models.report import FinancialReport, ReportPeriod
from finance_manager.queries import filter_unsettled_by_type


def generate_report(
    period: ReportPeriod,
    transactions: Sequence[Transaction],
    borrow_lend_records: Sequence[BorrowLend],
    total_receivable: Decimal,
    total_repayable: Decimal,
    settings: Optional[InsightSettings] = None,
    now: Optional[datetime] = None,
) -> FinancialReport:
    """
    Build a financial report from a record snapshot.

    Args:
        period: Label for the report (transactions are not filtered by it)
        transactions: Full transaction snapshot
        borrow_lend_records: Full borrow/lend snapshot
        total_receivable: Storage-side total of unsettled LENT records
        total_repayable: Storage-side total of unsettled BORROWED records
        settings: Insight thresholds
        now: Generation timestamp, defaults to the current time

    Returns:
        The assembled report
    """
    summary = build_summary(
        transactions,
        borrow_lend_records,
        total_receivable,
        total_repayable,
    )

    receivables = filter_unsettled_by_type(borrow_lend_records, BorrowLendType.LENT)
    repayables = filter_unsettled_by_type(borrow_lend_records, BorrowLendType.BORROWED)

    insights = generate_insights(summary, settings)

    return FinancialReport(
        period=period,
        summary=summary,
        transactions=list(transactions),
        receivables=receivables,
        repayables=repayables,
        insights=insights,
        generated_date=now or datetime.now(),
    )
