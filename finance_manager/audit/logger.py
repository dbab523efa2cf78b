"""
Audit Logger

Every write to a user's records and every generated report is logged.

The audit logger:
- Always writes a structured local log line
- Forwards the event to an optional sink (e.g. a persistent audit trail)
- Never lets a failing sink break the calling flow

Local log lines go through the standard library root logger, whose
level is ``AppSettings.log_level``.
"""

import logging
from typing import Callable, Optional

import structlog

from finance_manager.config import get_settings
from finance_manager.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: Optional[str] = None) -> None:
    """
    Set the minimum level for local log lines.

    Args:
        level: Level name such as ``"DEBUG"``. Defaults to
               ``AppSettings.log_level``.
    """
    level = level or get_settings().app.log_level
    logging.basicConfig(format="%(message)s")
    logging.getLogger().setLevel(level.upper())


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)
configure_logging()


AuditSink = Callable[[AuditEvent], None]


class AuditLogger:
    """
    Central audit logging service.
    """

    def __init__(self, sink: Optional[AuditSink] = None):
        """
        Initialize audit logger.

        Args:
            sink: Callable receiving every event after it is logged.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger("finance_manager.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the sink accepted the event (or no sink is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink:
            try:
                self._sink(event)
            except Exception as e:
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a storage failure."""
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
        ))
