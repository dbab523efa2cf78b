"""Text rendering for amounts and shareable reports."""

from decimal import Decimal

from finance_manager.models.report import FinancialReport

CURRENCY_SYMBOLS = {
    "HKD": "HK$",
    "USD": "$",
    "CNY": "CN¥",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
}


def format_currency(amount: Decimal, currency: str = "HKD") -> str:
    """
    Format an amount with its currency symbol and two decimals.

    Unknown currency codes are printed as a prefix, e.g. ``"JPY 1,000.00"``.
    """
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_report_text(
    report: FinancialReport,
    currency: str = "HKD",
    max_insights: int = 3,
) -> str:
    """
    Render a report as plain text for sharing.

    Includes the period, generation date, the four headline figures and
    up to ``max_insights`` insights.
    """
    summary = report.summary
    lines = [
        f"📊 {report.period.display_name} Financial Report",
        f"Generated on {report.generated_date.strftime('%b %d, %Y')}",
        "",
        "💰 Financial Summary:",
        f"• Income: +{format_currency(summary.total_income, currency)}",
        f"• Expense: -{format_currency(summary.total_expense, currency)}",
        f"• Net Balance: {format_currency(summary.net_balance, currency)}",
        f"• Savings Rate: {summary.savings_rate:.1f}%",
        "",
        "💡 Key Insights:",
    ]
    for insight in report.insights[:max_insights]:
        lines.append(f"• {insight.title}: {insight.message}")
    lines.append("")
    lines.append("--- Generated by Finance Manager ---")
    return "\n".join(lines)
