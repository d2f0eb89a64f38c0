"""
Backup Service

Export and import as asynchronous units of work.

DESIGN DECISION: The slow parts (encoding, decoding, file I/O) run in a
worker thread so an event loop driving a UI stays responsive. Runs are
serialized by an asyncio.Lock, and the final replace happens under the
ledger's own lock, so an import is all-or-nothing: either every usable
record replaces the ledger, or the ledger is untouched.

Callers get a simple outcome (bytes / path / ImportReport). The detailed
diagnostics go to the audit log.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union
from uuid import UUID, uuid4

from expense_tracker.backup.codec import (
    BackupFormatError,
    ReconciledBackup,
    backup_filename,
    build_document,
    decode,
    encode,
    reconcile,
)
from expense_tracker.config import LedgerSettings, get_settings
from expense_tracker.ledger import Ledger, LedgerError
from expense_tracker.models.audit import AuditEventBuilder
from expense_tracker.models.backup import ImportReport


EXPORT_FAILED_MESSAGE = "Could not export data"
IMPORT_FAILED_MESSAGE = "Could not import data. Check the file format."


class BackupExportError(Exception):
    """Export did not produce a document. The message is safe to show users."""
    pass


class BackupService:
    """
    Produces and restores backup documents for one Ledger.

    Usage:
        service = BackupService(ledger)
        path = await service.export_to_file()
        report = await service.import_from_file(path)
    """

    def __init__(
        self,
        ledger: Ledger,
        settings: Optional[LedgerSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._ledger = ledger
        self._audit = ledger.audit
        self._settings = settings or get_settings()
        self._clock = clock
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    async def export_bytes(self) -> bytes:
        """
        Serialize the current ledger.

        Raises:
            BackupExportError: If the document could not be produced
        """
        async with self._lock:
            payload, _ = await asyncio.to_thread(self._export_sync)
            return payload

    async def export_to_file(self, directory: Optional[Path] = None) -> Path:
        """
        Write a backup file named ExpenseTracker_<timestamp>.json.

        Args:
            directory: Target directory (defaults to the configured export_dir)

        Returns:
            Path of the written file

        Raises:
            BackupExportError: If the document could not be produced or written
        """
        target_dir = Path(directory) if directory else self._settings.export_dir
        async with self._lock:
            return await asyncio.to_thread(self._export_file_sync, target_dir)

    def _export_sync(self) -> tuple[bytes, tuple[int, int, int]]:
        snapshot = self._ledger.snapshot()
        try:
            document = build_document(
                snapshot.categories,
                snapshot.expenses,
                snapshot.incomes,
                exported_at=self._clock(),
            )
            payload = encode(document)
        except (ValueError, TypeError) as e:
            self._audit.log(AuditEventBuilder.persistence_failed("backup", str(e)))
            raise BackupExportError(EXPORT_FAILED_MESSAGE) from e
        counts = (len(snapshot.categories), len(snapshot.expenses), len(snapshot.incomes))
        return payload, counts

    def _export_file_sync(self, directory: Path) -> Path:
        payload, counts = self._export_sync()
        path = directory / backup_filename(self._clock(), self._settings.backup_filename_prefix)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)
        except OSError as e:
            self._audit.log(AuditEventBuilder.persistence_failed("backup", str(e)))
            raise BackupExportError(EXPORT_FAILED_MESSAGE) from e
        self._audit.log(AuditEventBuilder.backup_exported(*counts, destination=str(path)))
        return path

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    async def import_bytes(self, payload: Union[bytes, str]) -> ImportReport:
        """
        Replace the whole ledger with the contents of a backup document.

        A structurally invalid document changes nothing and yields
        success=False. Unusable individual records are skipped and listed
        in the report.
        """
        correlation_id = uuid4()
        async with self._lock:
            try:
                reconciled = await asyncio.to_thread(self._decode_sync, payload, correlation_id)
            except BackupFormatError:
                return ImportReport(success=False, error=IMPORT_FAILED_MESSAGE)
            return await asyncio.to_thread(self._commit_sync, reconciled, correlation_id)

    async def import_from_file(self, path: Union[str, Path]) -> ImportReport:
        """Read a backup file and import it (see import_bytes)."""
        try:
            payload = await asyncio.to_thread(Path(path).read_bytes)
        except OSError as e:
            self._audit.log(AuditEventBuilder.backup_import_failed(str(e)))
            return ImportReport(success=False, error=IMPORT_FAILED_MESSAGE)
        return await self.import_bytes(payload)

    def _decode_sync(
        self,
        payload: Union[bytes, str],
        correlation_id: UUID,
    ) -> ReconciledBackup:
        try:
            document = decode(payload)
        except BackupFormatError as e:
            self._audit.log(
                AuditEventBuilder.backup_import_failed(
                    str(e),
                    diagnostics=e.diagnostics,
                    correlation_id=correlation_id,
                )
            )
            raise
        reconciled = reconcile(document)
        for skipped in reconciled.skipped:
            self._audit.log(
                AuditEventBuilder.backup_record_skipped(
                    skipped.kind,
                    skipped.record_id,
                    skipped.reason,
                    correlation_id=correlation_id,
                )
            )
        return reconciled

    def _commit_sync(
        self,
        reconciled: ReconciledBackup,
        correlation_id: UUID,
    ) -> ImportReport:
        try:
            self._ledger.replace_all(
                reconciled.categories,
                reconciled.expenses,
                reconciled.incomes,
            )
        except LedgerError as e:
            self._audit.log(
                AuditEventBuilder.backup_import_failed(str(e), correlation_id=correlation_id)
            )
            return ImportReport(
                success=False,
                skipped=reconciled.skipped,
                error=IMPORT_FAILED_MESSAGE,
            )

        self._audit.log(
            AuditEventBuilder.backup_imported(
                len(reconciled.categories),
                len(reconciled.expenses),
                len(reconciled.incomes),
                len(reconciled.skipped),
                correlation_id=correlation_id,
            )
        )
        return ImportReport(
            success=True,
            categories_imported=len(reconciled.categories),
            expenses_imported=len(reconciled.expenses),
            incomes_imported=len(reconciled.incomes),
            skipped=reconciled.skipped,
        )
