"""Backup export/import package."""

from expense_tracker.backup.codec import (
    BackupFormatError,
    ReconciledBackup,
    backup_filename,
    build_document,
    decode,
    encode,
    reconcile,
)
from expense_tracker.backup.service import (
    EXPORT_FAILED_MESSAGE,
    IMPORT_FAILED_MESSAGE,
    BackupExportError,
    BackupService,
)

__all__ = [
    "EXPORT_FAILED_MESSAGE",
    "IMPORT_FAILED_MESSAGE",
    "BackupExportError",
    "BackupFormatError",
    "BackupService",
    "ReconciledBackup",
    "backup_filename",
    "build_document",
    "decode",
    "encode",
    "reconcile",
]
