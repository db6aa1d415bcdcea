"""Audit logging package."""

from local_ledger.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
