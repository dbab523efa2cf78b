"""Audit logging package."""

from finance_manager.audit.logger import AuditLogger, AuditSink, configure_logging

__all__ = ["AuditLogger", "AuditSink", "configure_logging"]
