"""Tests for the storage backends and ledger persistence across restarts."""

import os
from datetime import datetime
from decimal import Decimal

import pytest

from expense_tracker.ledger import Ledger
from expense_tracker.models.ledger import Expense, Income
from expense_tracker.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    StorageKey,
    StorageWriteError,
    create_storage,
)


class TestInMemoryStorage:
    """Tests for the dict-backed backend."""

    def test_missing_key_is_none(self):
        """Test that an absent key loads as None."""
        assert InMemoryStorage().load(StorageKey.EXPENSES) is None

    def test_save_and_load(self):
        """Test a plain write followed by a read."""
        storage = InMemoryStorage()
        storage.save(StorageKey.INCOMES, b"[]")
        assert storage.load(StorageKey.INCOMES) == b"[]"
        assert storage.keys() == [StorageKey.INCOMES]

    def test_create_storage_by_name(self):
        """Test backend selection."""
        assert isinstance(create_storage("memory"), InMemoryStorage)
        with pytest.raises(ValueError):
            create_storage("sqlite")


class TestJsonFileStorage:
    """Tests for the file-per-key backend."""

    def test_round_trip(self, tmp_path):
        """Test that saved bytes come back unchanged."""
        storage = JsonFileStorage(data_dir=tmp_path / "data")
        storage.save(StorageKey.CATEGORIES, b'[{"id": "x"}]')
        assert storage.load(StorageKey.CATEGORIES) == b'[{"id": "x"}]'
        assert (tmp_path / "data" / "categories.json").exists()

    def test_missing_key_is_none(self, tmp_path):
        """Test that a key never written loads as None."""
        assert JsonFileStorage(data_dir=tmp_path).load(StorageKey.EXPENSES) is None

    def test_invalid_key_rejected(self, tmp_path):
        """Test that keys cannot escape the data directory."""
        storage = JsonFileStorage(data_dir=tmp_path)
        with pytest.raises(ValueError):
            storage.path_for("../outside")

    def test_no_temp_files_left(self, tmp_path):
        """Test that the atomic write cleans up after itself."""
        storage = JsonFileStorage(data_dir=tmp_path)
        storage.save(StorageKey.INCOMES, b"[]")
        storage.save(StorageKey.INCOMES, b"[1]")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["incomes.json"]

    def test_transient_failure_is_retried(self, tmp_path, monkeypatch):
        """Test that a write succeeds after a transient OS error."""
        storage = JsonFileStorage(data_dir=tmp_path, retry_attempts=3)
        real_replace = os.replace
        calls = []

        def flaky_replace(src, dst):
            calls.append(dst)
            if len(calls) == 1:
                raise OSError("device busy")
            real_replace(src, dst)

        monkeypatch.setattr(os, "replace", flaky_replace)
        storage.save(StorageKey.EXPENSES, b"[]")
        assert len(calls) == 2
        assert storage.load(StorageKey.EXPENSES) == b"[]"

    def test_persistent_failure_raises(self, tmp_path, monkeypatch):
        """Test that exhausting the retries raises StorageWriteError."""
        storage = JsonFileStorage(data_dir=tmp_path, retry_attempts=2)

        def broken_replace(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(StorageWriteError):
            storage.save(StorageKey.EXPENSES, b"[]")


class TestLedgerPersistence:
    """Tests for state surviving a restart on the file backend."""

    def test_ledger_survives_restart(self, tmp_path):
        """Test that a second Ledger on the same directory sees the same data."""
        first = Ledger(JsonFileStorage(data_dir=tmp_path))
        food = first.categories()[0]
        first.add_expense(Expense(amount=Decimal("12.5"), category=food, date=datetime(2024, 5, 1)))
        first.add_income(Income(amount=Decimal("900"), date=datetime(2024, 5, 2)))
        first.reorder_categories([c.id for c in reversed(first.categories())])

        second = Ledger(JsonFileStorage(data_dir=tmp_path))
        assert second.snapshot() == first.snapshot()
