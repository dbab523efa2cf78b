"""
Rule-Based Financial Insights

Each rule is evaluated independently against a FinancialSummary and
appends at most one insight. Rules run in a fixed order (savings,
top category, debt) and the result is not re-sorted, so a summary
yields between zero and three insights.

ZERO INCOME: The top-category rule compares spending against a share of
income. When income is zero the ratio has no finite value, so the rule
is skipped entirely.
"""

from decimal import Decimal
from typing import Optional

from finance_manager.config import InsightSettings
from finance_manager.models.report import (
    FinancialInsight,
    FinancialSummary,
    InsightSeverity,
    InsightType,
)


def _savings_insight(
    summary: FinancialSummary,
    settings: InsightSettings,
) -> Optional[FinancialInsight]:
    if summary.savings_rate > settings.high_savings_rate:
        return FinancialInsight(
            type=InsightType.SAVINGS_RATE,
            title="Excellent Savings!",
            message=f"Your savings rate is {summary.savings_rate:.1f}%",
            recommendation="Consider investing your surplus funds",
            severity=InsightSeverity.POSITIVE,
        )
    if summary.savings_rate < 0:
        return FinancialInsight(
            type=InsightType.BUDGET_ALERT,
            title="Spending Exceeds Income",
            message="You're spending more than you earn",
            recommendation="Review your expenses and create a budget",
            severity=InsightSeverity.CRITICAL,
        )
    return None


def _category_insight(
    summary: FinancialSummary,
    settings: InsightSettings,
) -> Optional[FinancialInsight]:
    if summary.total_income == 0:
        return None

    limit = summary.total_income * Decimal(str(settings.category_income_ratio))
    if summary.top_spending_amount <= limit:
        return None

    ratio = float(summary.top_spending_amount / summary.total_income)
    category_name = (
        summary.top_spending_category.name
        if summary.top_spending_category
        else "One category"
    )
    return FinancialInsight(
        type=InsightType.SPENDING_PATTERN,
        title="High Category Spending",
        message=f"{category_name} takes {ratio * 100:.0f}% of income",
        recommendation="Consider diversifying your spending",
        severity=InsightSeverity.WARNING,
    )


def _debt_insight(summary: FinancialSummary) -> Optional[FinancialInsight]:
    if summary.total_repayable > summary.total_income:
        return FinancialInsight(
            type=InsightType.DEBT_MANAGEMENT,
            title="High Debt Level",
            message="Your debt exceeds your monthly income",
            recommendation="Focus on debt repayment strategy",
            severity=InsightSeverity.CRITICAL,
        )
    return None


def generate_insights(
    summary: FinancialSummary,
    settings: Optional[InsightSettings] = None,
) -> list[FinancialInsight]:
    """
    Evaluate every insight rule against ``summary``.

    Args:
        summary: The summary to inspect
        settings: Rule thresholds. Defaults to ``InsightSettings()``
                  (30% savings rate, 40% of income for one category).

    Returns:
        Insights in rule order
    """
    settings = settings or InsightSettings()

    candidates = [
        _savings_insight(summary, settings),
        _category_insight(summary, settings),
        _debt_insight(summary),
    ]
    return [insight for insight in candidates if insight is not None]
