"""
Data Models Package

This package contains all Pydantic models used by the Expense Tracker ledger.
"""

from expense_tracker.models.ledger import (
    DEFAULT_CATEGORIES,
    Category,
    CategoryStatistic,
    DateRange,
    Expense,
    Income,
    MonthlyStatistic,
    PeriodComparison,
    default_categories,
)
from expense_tracker.models.backup import (
    BACKUP_VERSION,
    BackupDocument,
    CategoryRecord,
    ExpenseRecord,
    ImportReport,
    IncomeRecord,
    SkippedRecord,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "Category",
    "CategoryStatistic",
    "DateRange",
    "Expense",
    "Income",
    "MonthlyStatistic",
    "PeriodComparison",
    "default_categories",
    # Backup models
    "BACKUP_VERSION",
    "BackupDocument",
    "CategoryRecord",
    "ExpenseRecord",
    "ImportReport",
    "IncomeRecord",
    "SkippedRecord",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
