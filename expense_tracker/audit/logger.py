"""
Audit Logger

DESIGN DECISION: Every ledger mutation and backup run is logged.
This provides:
1. Traceability of what changed and when
2. The detailed diagnostic channel for imports (callers only get a report)
3. A visible trail when persistence fails but the ledger keeps running

The audit logger:
- Writes structured log lines through structlog
- Keeps a bounded in-memory history of recent events
"""

import logging
from collections import deque
from typing import Optional

import structlog

from expense_tracker.config import get_settings
from expense_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog on top of the stdlib logging module."""
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.getLogger("expense_tracker").setLevel(level)


_settings = get_settings()
configure_logging(_settings.log_level, _settings.json_logs)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log
    2. A bounded in-memory history (newest last)
    """

    def __init__(self, history_size: int = 500):
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("expense_tracker.audit")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at its own severity."""
        self._history.append(event)
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def recent(
        self,
        event_type: Optional[AuditEventType] = None,
        limit: Optional[int] = None,
    ) -> list[AuditEvent]:
        """
        Get recent events, oldest first.

        Args:
            event_type: Only return events of this type
            limit: Only return the newest `limit` matching events
        """
        events = [
            event for event in self._history
            if event_type is None or event.event_type == event_type
        ]
        if limit is not None:
            events = events[-limit:]
        return events

    def clear(self) -> None:
        self._history.clear()
