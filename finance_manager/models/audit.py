"""
Audit Models for Finance Manager

Every write to a user's records, every report and every storage failure
is recorded as an audit event.

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Borrow/lend
    BORROW_LEND_ADDED = "borrow_lend_added"
    BORROW_LEND_UPDATED = "borrow_lend_updated"
    BORROW_LEND_DELETED = "borrow_lend_deleted"
    SETTLEMENT_TOGGLED = "settlement_toggled"

    # Snapshots and reports
    DATA_LOADED = "data_loaded"
    DATA_CLEARED = "data_cleared"
    REPORT_GENERATED = "report_generated"
    AGGREGATE_DIVERGENCE = "aggregate_divergence"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context
    user_id: Optional[str] = Field(
        default=None,
        description="User whose records the event concerns"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'borrow_lend', 'report')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(user_id, transaction_id, "120.00", True)
        event = AuditEventBuilder.report_generated(user_id, "monthly", 3)
    """

    @staticmethod
    def transaction_added(
        user_id: str,
        transaction_id: UUID,
        amount: str,
        is_expense: bool,
    ) -> AuditEvent:
        kind = "Expense" if is_expense else "Income"
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{kind} added: {amount}",
            details={
                "amount": amount,
                "is_expense": is_expense,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(user_id: str, transaction_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction replaced",
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(user_id: str, transaction_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def borrow_lend_added(
        user_id: str,
        record_id: UUID,
        person_name: str,
        record_type: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BORROW_LEND_ADDED,
            user_id=user_id,
            entity_type="borrow_lend",
            entity_id=record_id,
            description=f"Record added ({record_type}): {person_name} - {amount}",
            details={
                "person_name": person_name,
                "type": record_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def borrow_lend_updated(user_id: str, record_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BORROW_LEND_UPDATED,
            user_id=user_id,
            entity_type="borrow_lend",
            entity_id=record_id,
            description="Borrow/lend record replaced",
            is_user_action=True,
        )

    @staticmethod
    def borrow_lend_deleted(user_id: str, record_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BORROW_LEND_DELETED,
            user_id=user_id,
            entity_type="borrow_lend",
            entity_id=record_id,
            description="Borrow/lend record deleted",
            is_user_action=True,
        )

    @staticmethod
    def settlement_toggled(
        user_id: str,
        record_id: UUID,
        is_settled: bool,
    ) -> AuditEvent:
        state = "settled" if is_settled else "unsettled"
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_TOGGLED,
            user_id=user_id,
            entity_type="borrow_lend",
            entity_id=record_id,
            description=f"Record marked as {state}",
            details={"is_settled": is_settled},
            is_user_action=True,
        )

    @staticmethod
    def data_loaded(
        user_id: str,
        transaction_count: int,
        record_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            description=(
                f"Loaded {transaction_count} transactions and "
                f"{record_count} borrow/lend records"
            ),
            details={
                "transaction_count": transaction_count,
                "record_count": record_count,
            },
        )

    @staticmethod
    def data_cleared(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_CLEARED,
            user_id=user_id,
            description="In-memory snapshot cleared",
        )

    @staticmethod
    def report_generated(
        user_id: Optional[str],
        period: str,
        insight_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            user_id=user_id,
            entity_type="report",
            description=f"{period.capitalize()} report generated with {insight_count} insights",
            details={
                "period": period,
                "insight_count": insight_count,
            },
        )

    @staticmethod
    def aggregate_divergence(
        user_id: Optional[str],
        stored_receivable: str,
        listed_receivable: str,
        stored_repayable: str,
        listed_repayable: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AGGREGATE_DIVERGENCE,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="report",
            description="Stored receivable/repayable totals differ from listed records",
            details={
                "stored_receivable": stored_receivable,
                "listed_receivable": listed_receivable,
                "stored_repayable": stored_repayable,
                "listed_repayable": listed_repayable,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
