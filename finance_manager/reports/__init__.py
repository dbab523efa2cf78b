"""Report assembly and export package."""

from finance_manager.reports.assembler import generate_report
from finance_manager.reports.formatting import format_currency, format_report_text

__all__ = ["format_currency", "format_report_text", "generate_report"]
