"""
Data Models Package

This package contains all Pydantic models used in Finance Manager:
stored records, derived report types and audit events.
"""

from finance_manager.models.records import (
    BorrowLend,
    BorrowLendType,
    Category,
    PaymentMethod,
    Transaction,
    User,
)
from finance_manager.models.report import (
    FinancialInsight,
    FinancialReport,
    FinancialSummary,
    FlatRecords,
    GroupedRecords,
    InsightSeverity,
    InsightType,
    PersonGroup,
    ProcessedRecords,
    ReportPeriod,
    WalletSummary,
)
from finance_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "BorrowLend",
    "BorrowLendType",
    "Category",
    "PaymentMethod",
    "Transaction",
    "User",
    # Report models
    "FinancialInsight",
    "FinancialReport",
    "FinancialSummary",
    "FlatRecords",
    "GroupedRecords",
    "InsightSeverity",
    "InsightType",
    "PersonGroup",
    "ProcessedRecords",
    "ReportPeriod",
    "WalletSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
