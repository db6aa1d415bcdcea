"""
Audit Logger

DESIGN DECISION: Every significant action on the ledger is logged.
This provides:
1. Traceability of mutations and the records they derived
2. Debugging capability when a snapshot write fails
3. A record of rejected input

The audit logger:
- Is synchronous, like the store it reports on
- Is called only after the in-memory snapshot has been swapped
- Optionally keeps the events it logged in memory for inspection
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

from local_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from local_ledger.models.notification import NotificationEntry


_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]

# Configure structlog for local logging
structlog.configure(
    processors=[*_PROCESSORS, structlog.processors.JSONRenderer()],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Route ledger logs to stdout at `level`.

    json_output=False switches to structlog's human-readable console renderer.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[*_PROCESSORS, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and, when `keep_events` is set,
    keeps them in `events` as well.
    """

    def __init__(self, keep_events: bool = False):
        """
        Initialize audit logger.

        Args:
            keep_events: Keep every logged event in `self.events`.
        """
        self._keep_events = keep_events
        self.events: list[AuditEvent] = []
        self._held: Optional[list[AuditEvent]] = None
        self._logger = structlog.get_logger("local_ledger.audit")

    @contextmanager
    def deferred(self) -> Iterator[None]:
        """
        Hold events logged inside the block until it exits cleanly.

        Events from a block that raises are dropped, so a mutation that
        never commits leaves nothing in the log.
        """
        outer = self._held
        self._held = []
        try:
            yield
            held = self._held
        finally:
            self._held = outer
        for event in held:
            self.log(event)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        if self._held is not None:
            self._held.append(event)
            return

        if self._keep_events:
            self.events.append(event)

        log_dict = event.to_log_dict()
        event_name = event.event_type.value
        if event.severity == AuditSeverity.ERROR:
            self._logger.error(event_name, **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning(event_name, **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug(event_name, **log_dict)
        else:
            self._logger.info(event_name, **log_dict)

    def log_hydrated(self, source: str, counts: dict[str, int]) -> None:
        """Log the snapshot the store started from."""
        self.log(AuditEventBuilder.hydrated(source=source, collections=counts))

    def log_corrupt_snapshot(self, error: str) -> None:
        self.log(AuditEventBuilder.corrupt_snapshot(error=error))

    def log_mutation(self, operation: str, changed: list[str]) -> None:
        """Log a committed mutation and the collections it touched."""
        self.log(AuditEventBuilder.mutation(operation=operation, changed=changed))

    def log_saved(self, operation: str, target: str) -> None:
        self.log(AuditEventBuilder.saved(operation=operation, target=target))

    def log_save_failed(self, operation: str, error: str) -> None:
        self.log(AuditEventBuilder.save_failed(operation=operation, error=error))

    def log_linked_expense(self, expense_id: str, category: str, source_id: str) -> None:
        self.log(AuditEventBuilder.linked_expense(
            expense_id=expense_id,
            category=category,
            source_id=source_id,
        ))

    def log_notification(self, entry: NotificationEntry) -> None:
        self.log(AuditEventBuilder.notification(
            notification_id=entry.id,
            kind=entry.type.value,
            title=entry.title,
        ))

    def log_validation_rejected(self, operation: str, issues: list[dict]) -> None:
        self.log(AuditEventBuilder.validation_rejected(operation=operation, issues=issues))

    def log_import_rejected(self, error: str) -> None:
        self.log(AuditEventBuilder.import_rejected(error=error))
